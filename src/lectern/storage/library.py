"""
Library Store - the versioned document store for presentation-library items.

Two stores make up the library:
1. History log (cold) → append-only commits, the source of truth
2. Snapshot store (hot) → current state per item, a rebuildable cache

Every write appends its commit first and then replaces the snapshot, so a
crash between the two leaves the snapshot behind its history, never ahead.
Reads notice a stale or corrupt snapshot and repair it from the latest
commit.

Reads and writes of one item id are serialized by a per-id lock; different
ids never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4
from weakref import WeakValueDictionary

from pydantic import BaseModel, ValidationError

from lectern.core.config import Settings, get_logger, settings
from lectern.core.errors import (
    CommitNotFoundError,
    InvalidPayloadError,
    ItemNotFoundError,
    VersionConflictError,
)
from lectern.core.hashing import compute_content_hash
from lectern.core.types import Commit, HistoryIssue, HistoryReport, Item, ItemType
from lectern.storage.history import HistoryLog
from lectern.storage.snapshots import SnapshotStore, is_valid_id

logger = get_logger("storage.library")


class LibraryStore:
    """
    CRUD and history API over the snapshot store and history log.

    Construct one per process and pass it to whatever needs it.
    """

    def __init__(self, root: Path | None = None, config: Settings | None = None):
        """Initialize the library store, creating its directories."""
        self.config = config or settings
        self.root = root or self.config.library_root
        self.snapshots = SnapshotStore(self.root / "db")
        self.history = HistoryLog(self.root / "history")

        # Dropped once no caller holds them
        self._locks: WeakValueDictionary[str, threading.RLock] = WeakValueDictionary()
        self._locks_guard = threading.Lock()

        logger.debug(f"Library store at {self.root}")

    # ============================================
    # CRUD
    # ============================================

    def create(
        self,
        payload: Mapping[str, Any] | BaseModel,
        author: str | None = None,
        device_id: str | None = None,
    ) -> Item:
        """
        Create a new item at version 1.

        Args:
            payload: Type-specific fields, including the `type` discriminator
            author: Who is creating the item
            device_id: Originating device

        Raises:
            InvalidPayloadError: If the payload is not a valid item payload
        """
        author = author or self.config.default_author
        device_id = device_id or self.config.default_device_id
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")

        now = self._now()
        record = {
            **payload,
            "id": str(uuid4()),
            "version": 1,
            "history_head_id": str(uuid4()),
            "created_at": now,
            "updated_at": now,
            "usage_count": 0,
            "author": author,
            "origin_device_id": device_id,
            "last_modified_device_id": device_id,
        }
        item, record = self._seal(record)

        with self._lock_for(item.id):
            self._commit(item, record, None, author, device_id, "Created item")

        logger.info(f"Created {item.type or 'item'} {item.id}")
        return item

    def get(self, item_id: str) -> Item | None:
        """Get the current state of an item, or None if it does not exist."""
        return self._load_current(item_id)

    def update(
        self,
        item_id: str,
        delta: Mapping[str, Any] | BaseModel,
        author: str | None = None,
        device_id: str | None = None,
        change_summary: str | None = None,
        expected_version: int | None = None,
    ) -> Item:
        """
        Apply a partial update, producing a new version and commit.

        The delta is merged over the current top-level fields: fields it
        leaves out are kept, nested values it includes replace the old ones
        whole. System fields (id, version, history head, timestamps, hash)
        are always set by the store.

        Args:
            item_id: Item to update
            delta: Top-level fields to overwrite
            author: Who is making the change
            device_id: Device making the change
            change_summary: Human-readable note for the commit
            expected_version: If given, the update only applies on this version

        Raises:
            ItemNotFoundError: If the item has no current snapshot
            VersionConflictError: If expected_version is stale
            InvalidPayloadError: If the merged item is not valid
        """
        author = author or self.config.default_author
        device_id = device_id or self.config.default_device_id
        change_summary = change_summary or "Updated item"
        if isinstance(delta, BaseModel):
            delta = delta.model_dump(mode="json", exclude_unset=True)

        with self._lock_for(item_id):
            current = self._load_current(item_id)
            if current is None:
                raise ItemNotFoundError(item_id)

            if expected_version is not None and expected_version != current.version:
                raise VersionConflictError(item_id, expected_version, current.version)

            record = {
                **current.to_record(),
                **delta,
                "id": current.id,
                "version": current.version + 1,
                "history_head_id": str(uuid4()),
                "updated_at": self._now(),
                "last_modified_device_id": device_id,
            }
            item, record = self._seal(record)

            self._commit(item, record, current.history_head_id, author, device_id, change_summary)

        logger.info(f"Updated {item.type or 'item'} {item.id} to v{item.version}: {change_summary}")
        return item

    def list(self, type_filter: ItemType | str | None = None) -> list[Item]:
        """
        List all items, optionally filtered by type.

        Snapshots that cannot be read are skipped.
        """
        type_value = type_filter.value if isinstance(type_filter, ItemType) else type_filter

        items = []
        for item_id, record in self.snapshots.iter_records():
            item = self._parse(item_id, record)
            if item is None:
                continue
            if type_value is None or item.type == type_value:
                items.append(item)

        items.sort(key=lambda i: (i.created_at, i.id))
        return items

    # ============================================
    # History
    # ============================================

    def get_history(self, item_id: str) -> list[Commit]:
        """Get every commit for an item, newest first."""
        return self.history.read_all(item_id)

    def get_commit(self, item_id: str, commit_id: str) -> Commit | None:
        """Find one commit in an item's history."""
        for commit in self.history.read_all(item_id):
            if commit.commit_id == commit_id:
                return commit
        return None

    def get_version(self, item_id: str, version: int) -> Item | None:
        """Get the item as it was at a given version."""
        for commit in self.history.read_all(item_id):
            if commit.version_number == version:
                return self._parse(item_id, commit.full_snapshot)
        return None

    def revert(
        self,
        item_id: str,
        commit_id: str,
        author: str | None = None,
        device_id: str | None = None,
    ) -> Item:
        """
        Restore an earlier state as a new version.

        The commit's full snapshot is applied as an update delta, so the
        version moves forward and history stays linear.

        Raises:
            CommitNotFoundError: If the commit is not in the item's history
        """
        commit = self.get_commit(item_id, commit_id)
        if commit is None:
            raise CommitNotFoundError(item_id, commit_id)

        return self.update(
            item_id,
            commit.full_snapshot,
            author=author,
            device_id=device_id,
            change_summary=f"Reverted to version {commit.version_number} ({commit.commit_id})",
        )

    def verify(self, item_id: str) -> HistoryReport:
        """
        Audit an item's history chain against its snapshot.

        Checks chain linkage, version continuity, each commit's stored
        content hash, and that the current snapshot points at the newest
        commit.
        """
        commits = self.history.read_all(item_id)[::-1]
        report = HistoryReport(item_id=item_id, commits=len(commits))

        def issue(message: str, commit: Commit | None = None) -> None:
            report.issues.append(HistoryIssue(
                message=message,
                commit_id=commit.commit_id if commit else None,
                version_number=commit.version_number if commit else None,
            ))

        previous: Commit | None = None
        for expected_version, commit in enumerate(commits, start=1):
            if commit.version_number != expected_version:
                issue(f"Expected version {expected_version}, found {commit.version_number}", commit)

            if previous is None:
                if commit.parent_commit_id is not None:
                    issue("First commit has a parent", commit)
            elif commit.parent_commit_id != previous.commit_id:
                issue(f"Parent {commit.parent_commit_id} is not previous commit {previous.commit_id}", commit)

            snapshot = commit.full_snapshot
            if snapshot.get("id") != item_id:
                issue(f"Snapshot belongs to item {snapshot.get('id')}", commit)
            if snapshot.get("version") != commit.version_number:
                issue(f"Snapshot version {snapshot.get('version')} does not match commit", commit)
            if snapshot.get("history_head_id") != commit.commit_id:
                issue("Snapshot history head does not match commit id", commit)
            if snapshot.get("content_hash") != compute_content_hash(snapshot):
                issue("Content hash mismatch", commit)

            previous = commit

        if previous is not None:
            report.head_commit_id = previous.commit_id

        current = self.snapshots.read(item_id)
        if current is not None:
            version = current.get("version")
            report.current_version = version if isinstance(version, int) else None
            if previous is None:
                issue("Snapshot exists without any history")
            elif current.get("history_head_id") != previous.commit_id:
                issue(f"Snapshot head {current.get('history_head_id')} is not latest commit {previous.commit_id}")

        if report.issues:
            logger.warning(f"History of {item_id} has {len(report.issues)} issue(s)")
        return report

    def rebuild(self, item_id: str | None = None) -> int:
        """
        Rebuild snapshots from the newest commit in each history log.

        Restores snapshots that are missing, corrupt or behind their history.
        Returns the number of snapshots rewritten.
        """
        item_ids = [item_id] if item_id else self.history.item_ids()
        rewritten = 0

        for current_id in item_ids:
            with self._lock_for(current_id):
                latest = self.history.latest(current_id)
                if latest is None:
                    continue
                if self._parse(current_id, latest.full_snapshot) is None:
                    continue
                if self.snapshots.read(current_id) == latest.full_snapshot:
                    continue
                self.snapshots.write(latest.full_snapshot)
                rewritten += 1
                logger.info(f"Rebuilt snapshot {current_id} at v{latest.version_number}")

        return rewritten

    # ============================================
    # Helpers
    # ============================================

    def _lock_for(self, item_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = self._locks[item_id] = threading.RLock()
            return lock

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _seal(self, record: dict[str, Any]) -> tuple[Item, dict[str, Any]]:
        """Validate a flat record and stamp its content hash."""
        try:
            normalized = Item.from_record(record).to_record()
        except ValidationError as e:
            raise InvalidPayloadError(f"Invalid item data: {e}") from e

        normalized["content_hash"] = compute_content_hash(normalized)
        return Item.from_record(normalized), normalized

    def _commit(
        self,
        item: Item,
        record: dict[str, Any],
        parent_commit_id: str | None,
        author: str,
        device_id: str,
        change_summary: str,
    ) -> None:
        """Append the commit for a sealed item, then replace its snapshot."""
        commit = Commit(
            commit_id=item.history_head_id,
            parent_commit_id=parent_commit_id,
            version_number=item.version,
            timestamp=item.updated_at,
            author=author,
            device_id=device_id,
            change_summary=change_summary,
            full_snapshot=record,
        )
        self.history.append(item.id, commit)
        self.snapshots.write(record)

    def _parse(self, item_id: str, record: dict[str, Any]) -> Item | None:
        try:
            return Item.from_record(record)
        except ValidationError as e:
            logger.warning(f"Invalid snapshot for item {item_id}: {e}")
            return None

    def _load_current(self, item_id: str) -> Item | None:
        """
        Read the current snapshot, repairing it from history if needed.

        A missing snapshot means the item does not exist (or was removed)
        and is never resurrected here; use rebuild() for that. The check and
        the repair run under the item's lock, so a reader never writes back
        a commit that a concurrent update has already moved past.
        """
        if not is_valid_id(item_id):
            return None

        if not self.config.reconcile_on_read:
            record = self.snapshots.read(item_id)
            return self._parse(item_id, record) if record is not None else None

        with self._lock_for(item_id):
            record = self.snapshots.read(item_id)
            item = self._parse(item_id, record) if record is not None else None
            if record is None and not self.snapshots.exists(item_id):
                return None

            latest = self.history.latest(item_id)
            if latest is None:
                return item
            if item is not None and (
                item.history_head_id == latest.commit_id or item.version >= latest.version_number
            ):
                return item

            restored = self._parse(item_id, latest.full_snapshot)
            if restored is None:
                return item

            logger.warning(
                f"Snapshot for {item_id} is "
                f"{'unreadable' if item is None else f'at v{item.version}'}; "
                f"restoring v{latest.version_number} from history"
            )
            self.snapshots.write(latest.full_snapshot)
            return restored
