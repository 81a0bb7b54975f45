"""
Content hashing for library snapshots.

Snapshots are fingerprinted over their canonical JSON encoding
(canonicaljson: recursively sorted keys, minimal whitespace, UTF-8), so two
equal snapshots hash the same no matter how their dicts were built.

The hash is content-addressed: it leaves out the fields the store rewrites
on every save, so re-saving identical content keeps the same hash while the
version moves on.
"""

import hashlib
from collections.abc import Mapping
from typing import Any

import canonicaljson

HASH_FIELD = "content_hash"

# Per-write bookkeeping, stamped by the store on every save
VOLATILE_FIELDS = frozenset({
    "version",
    "history_head_id",
    "updated_at",
    "last_modified_device_id",
})


def canonical_json(obj: Any) -> bytes:
    """Encode a JSON-compatible object as canonical UTF-8 bytes."""
    return canonicaljson.encode_canonical_json(obj)


def hashable_content(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return the part of a flat snapshot record that the hash covers."""
    return {
        key: value
        for key, value in record.items()
        if key != HASH_FIELD and key not in VOLATILE_FIELDS
    }


def compute_content_hash(record: Mapping[str, Any]) -> str:
    """Compute the SHA256 content hash of a flat snapshot record."""
    return hashlib.sha256(canonical_json(hashable_content(record))).hexdigest()
