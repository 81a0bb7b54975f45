"""
Lectern

Versioned document store for presentation-library items: songs,
scriptures, schedules, media references and presentations. Keeps the
current state of every item and an append-only history of every change.
"""

__version__ = "0.1.0"
__author__ = "Lectern Team"

from lectern.core.config import Settings, settings
from lectern.core.errors import (
    CommitNotFoundError,
    InvalidPayloadError,
    ItemNotFoundError,
    LibraryStoreError,
    VersionConflictError,
)
from lectern.core.types import Commit, HistoryReport, Item, ItemType
from lectern.storage.library import LibraryStore

__all__ = [
    "Settings",
    "settings",
    "CommitNotFoundError",
    "InvalidPayloadError",
    "ItemNotFoundError",
    "LibraryStoreError",
    "VersionConflictError",
    "Commit",
    "HistoryReport",
    "Item",
    "ItemType",
    "LibraryStore",
]
