"""
Storage Layer - Snapshot store, History log, Library store.

The storage hierarchy:
1. History log (JSONL) → Append-only commits, the source of truth
2. Snapshot store (JSON) → Current state per item, rebuildable from history

All reads and writes should go through LibraryStore.
"""

from lectern.storage.history import HistoryLog
from lectern.storage.library import LibraryStore
from lectern.storage.snapshots import SnapshotStore

__all__ = [
    "HistoryLog",
    "LibraryStore",
    "SnapshotStore",
]
