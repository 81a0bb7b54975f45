"""
Snapshot Store - the "hot" current state of every library item.

One pretty-printed JSON file per item, named by item id:

    <root>/db/<id>.json

Each write replaces the whole file. The snapshot store is a cache of the
history log's latest commits and can be rebuilt from it.
"""

import json
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from lectern.core.config import get_logger

logger = get_logger("storage.snapshots")

_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def is_valid_id(item_id: str) -> bool:
    """Check that an id is safe to use as a file name."""
    return bool(item_id) and _ID_PATTERN.match(item_id) is not None


class SnapshotStore:
    """JSON file store holding exactly one snapshot per item id."""

    suffix = ".json"

    def __init__(self, directory: Path):
        """Initialize the snapshot store."""
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, item_id: str) -> Path:
        """Get the snapshot path for an item id."""
        if not is_valid_id(item_id):
            raise ValueError(f"Invalid item id: {item_id!r}")
        return self.directory / f"{item_id}{self.suffix}"

    def exists(self, item_id: str) -> bool:
        return is_valid_id(item_id) and self.path_for(item_id).exists()

    def write(self, record: dict[str, Any]) -> Path:
        """
        Write a snapshot record, replacing any prior snapshot for its id.

        The record is written to a sibling temp file first and then moved
        over the target, so readers see either the old or the new snapshot.
        """
        path = self.path_for(record["id"])
        tmp = path.with_suffix(path.suffix + ".tmp")

        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)
        tmp.replace(path)

        logger.debug(f"Wrote snapshot {record['id']} v{record.get('version')} to {path}")
        return path

    def read(self, item_id: str) -> dict[str, Any] | None:
        """
        Read the snapshot record for an item.

        Returns None if the snapshot does not exist or cannot be parsed.
        """
        if not is_valid_id(item_id):
            logger.debug(f"Ignoring read of invalid item id {item_id!r}")
            return None

        return self._load(self.path_for(item_id))

    def iter_records(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """
        Scan every snapshot file, yielding (id, record) pairs.

        Files that cannot be parsed are skipped.
        """
        for path in sorted(self.directory.glob(f"*{self.suffix}")):
            record = self._load(path)
            if record is not None:
                yield path.stem, record

    def item_ids(self) -> list[str]:
        """List the ids of all snapshot files."""
        return sorted(path.stem for path in self.directory.glob(f"*{self.suffix}"))

    def _load(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                record = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupt snapshot {path}: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"Corrupt snapshot {path}: expected a JSON object")
            return None

        return record
