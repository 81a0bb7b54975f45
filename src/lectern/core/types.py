"""
Core type definitions for the Lectern library store.

Every library item shares one envelope (identity, version, attribution,
content hash) and carries one payload variant selected by its `type`:
- Song, Scripture, Schedule, Media, Presentation
- Generic, for any other or missing type (scanned videos and images)

On disk an item is a single flat JSON object: payload fields sit beside
the envelope fields, with `type` as the discriminator.
"""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, computed_field


# ============================================
# Enums
# ============================================

class ItemType(str, Enum):
    """Types of items in the library."""
    SONG = "song"
    SCRIPTURE = "scripture"
    SCHEDULE = "schedule"
    MEDIA = "media"
    PRESENTATION = "presentation"


class MediaKind(str, Enum):
    """Kinds of media a media item can reference."""
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    YOUTUBE = "youtube"


# ============================================
# Payload Variants
# ============================================

class BasePayload(BaseModel):
    """
    Base class for type-specific payloads.

    Unknown fields are kept as-is so callers can store data the store does
    not model.
    """

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    title: str = ""
    """Display title."""

    tags: list[str] = Field(default_factory=list)
    """Library tags (e.g. Hymn, Christmas)."""


class SongPart(BaseModel):
    """A named section of a song (verse, chorus, bridge)."""

    model_config = ConfigDict(extra="allow")

    id: str
    label: str = ""
    slides: list[str] = Field(default_factory=list)


class SongVariation(BaseModel):
    """An arrangement of song parts."""

    model_config = ConfigDict(extra="allow")

    id: int | str
    name: str = ""
    arrangement: list[str] = Field(default_factory=list)


class SongPayload(BasePayload):
    """A song with its lyric parts and arrangements."""

    type: Literal["song"] = "song"

    artist: str | None = None
    parts: list[SongPart] = Field(default_factory=list)
    variations: list[SongVariation] = Field(default_factory=list)


class ScripturePayload(BasePayload):
    """A scripture passage."""

    type: Literal["scripture"] = "scripture"

    reference: str | None = None
    """Human-readable reference, e.g. John 3:16-17."""

    translation: str | None = None
    verses: list[str] = Field(default_factory=list)


class ScheduleEntry(BaseModel):
    """One entry in a service schedule."""

    model_config = ConfigDict(extra="allow")

    item_id: str | None = None
    """Library item this entry projects, if any."""

    type: str
    title: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    """Per-entry overrides (key, loop, variation)."""


class SchedulePayload(BasePayload):
    """A dated running order of library items."""

    type: Literal["schedule"] = "schedule"

    date: str | None = None
    entries: list[ScheduleEntry] = Field(default_factory=list)


class MediaPayload(BasePayload):
    """A reference to a media asset."""

    type: Literal["media"] = "media"

    media_type: MediaKind | None = None
    path: str | None = None
    url: str | None = None
    thumbnail: str | None = None


class PresentationPayload(BasePayload):
    """A free-form slide deck."""

    type: Literal["presentation"] = "presentation"

    slides: list[str] = Field(default_factory=list)


class GenericPayload(BasePayload):
    """
    Any other item, e.g. a scanned video or image.

    The type is kept as given (or left out) and every field is stored as-is.
    """

    type: str | None = None


TYPED_PAYLOADS = frozenset(t.value for t in ItemType)


def payload_tag(value: Any) -> str:
    """Pick the payload variant for a raw dict or a payload model."""
    if isinstance(value, Mapping):
        item_type = value.get("type")
    else:
        item_type = getattr(value, "type", None)

    if isinstance(item_type, str) and item_type in TYPED_PAYLOADS:
        return item_type
    return "generic"


Payload = Annotated[
    Union[
        Annotated[SongPayload, Tag("song")],
        Annotated[ScripturePayload, Tag("scripture")],
        Annotated[SchedulePayload, Tag("schedule")],
        Annotated[MediaPayload, Tag("media")],
        Annotated[PresentationPayload, Tag("presentation")],
        Annotated[GenericPayload, Tag("generic")],
    ],
    Discriminator(payload_tag),
]


# ============================================
# Item (current snapshot)
# ============================================

ENVELOPE_FIELDS = frozenset({
    "id",
    "version",
    "history_head_id",
    "created_at",
    "updated_at",
    "usage_count",
    "author",
    "origin_device_id",
    "last_modified_device_id",
    "content_hash",
})


class Item(BaseModel):
    """The current state of one library item."""

    id: str
    """Stable identifier, assigned at creation."""

    version: int = Field(ge=1)
    """Starts at 1, +1 on every update."""

    history_head_id: str
    """Commit id of the most recent commit for this item."""

    created_at: datetime
    updated_at: datetime

    usage_count: int = 0

    author: str
    """Original creator."""

    origin_device_id: str
    last_modified_device_id: str

    content_hash: str = ""
    """SHA256 over the snapshot content (see lectern.core.hashing)."""

    payload: Payload

    @property
    def type(self) -> str | None:
        return self.payload.type

    def to_record(self) -> dict[str, Any]:
        """Flatten into the persisted JSON form."""
        record = self.payload.model_dump(mode="json")
        if record.get("type") is None:
            record.pop("type", None)
        record.update(self.model_dump(mode="json", exclude={"payload"}))
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Item":
        """Split a flat persisted record back into envelope and payload."""
        envelope = {k: v for k, v in record.items() if k in ENVELOPE_FIELDS}
        payload = {k: v for k, v in record.items() if k not in ENVELOPE_FIELDS}
        return cls.model_validate({**envelope, "payload": payload})


# ============================================
# Commit (history entry)
# ============================================

class Commit(BaseModel):
    """One immutable history record. Commits form a linear chain per item."""

    commit_id: str
    parent_commit_id: str | None = None
    """Previous commit's id; None only for the first commit."""

    version_number: int = Field(ge=1)
    timestamp: datetime
    author: str
    device_id: str
    change_summary: str = ""

    full_snapshot: dict[str, Any]
    """Flat record of the item at this version."""

    def snapshot(self) -> Item:
        """Rebuild the item as it was at this commit."""
        return Item.from_record(self.full_snapshot)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ============================================
# History Audit
# ============================================

class HistoryIssue(BaseModel):
    """A problem found while auditing an item's history."""

    message: str
    commit_id: str | None = None
    version_number: int | None = None


class HistoryReport(BaseModel):
    """Result of auditing one item's history chain."""

    item_id: str
    commits: int = 0
    head_commit_id: str | None = None
    current_version: int | None = None
    issues: list[HistoryIssue] = Field(default_factory=list)

    @computed_field
    @property
    def ok(self) -> bool:
        return not self.issues
