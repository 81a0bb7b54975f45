"""
Core module - Configuration, types, hashing, and errors.
"""

from lectern.core.config import Settings, settings
from lectern.core.errors import (
    CommitNotFoundError,
    InvalidPayloadError,
    ItemNotFoundError,
    LibraryStoreError,
    VersionConflictError,
)
from lectern.core.hashing import compute_content_hash
from lectern.core.types import (
    Commit,
    GenericPayload,
    HistoryReport,
    Item,
    ItemType,
    MediaPayload,
    PresentationPayload,
    SchedulePayload,
    ScripturePayload,
    SongPayload,
)

__all__ = [
    "Settings",
    "settings",
    "CommitNotFoundError",
    "InvalidPayloadError",
    "ItemNotFoundError",
    "LibraryStoreError",
    "VersionConflictError",
    "compute_content_hash",
    "Commit",
    "GenericPayload",
    "HistoryReport",
    "Item",
    "ItemType",
    "MediaPayload",
    "PresentationPayload",
    "SchedulePayload",
    "ScripturePayload",
    "SongPayload",
]
