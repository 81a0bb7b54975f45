"""Tests for core types."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from lectern.core.types import (
    Commit,
    GenericPayload,
    HistoryIssue,
    HistoryReport,
    Item,
    MediaPayload,
    SchedulePayload,
    SongPayload,
)


def make_record(**payload) -> dict:
    now = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
    return {
        **payload,
        "id": "item-1",
        "version": 1,
        "history_head_id": "commit-1",
        "created_at": now,
        "updated_at": now,
        "usage_count": 0,
        "author": "Tester",
        "origin_device_id": "test-device",
        "last_modified_device_id": "test-device",
    }


class TestItem:
    """Tests for the Item envelope."""

    def test_from_record_selects_payload_variant(self):
        """Test the type field picks the payload model."""
        item = Item.from_record(make_record(type="song", title="Amazing Grace"))

        assert isinstance(item.payload, SongPayload)
        assert item.type == "song"
        assert item.payload.title == "Amazing Grace"

    def test_to_record_is_flat(self):
        """Test payload fields sit beside envelope fields."""
        record = Item.from_record(make_record(type="schedule", date="2026-10-18")).to_record()

        assert record["type"] == "schedule"
        assert record["date"] == "2026-10-18"
        assert record["id"] == "item-1"
        assert "payload" not in record
        assert record["created_at"].startswith("2026-10-18T09:30:00")

    def test_unknown_fields_are_kept(self):
        """Test payload variants keep fields they do not model."""
        item = Item.from_record(make_record(type="song", title="X", ccli_number="22025"))

        assert item.to_record()["ccli_number"] == "22025"

    def test_record_round_trip(self):
        """Test a flattened record rebuilds the same item."""
        item = Item.from_record(make_record(type="media", title="Intro", media_type="video"))

        assert Item.from_record(item.to_record()).to_record() == item.to_record()
        assert isinstance(item.payload, MediaPayload)
        assert item.payload.media_type == "video"

    def test_unknown_type_is_generic(self):
        """Test other item types keep their type and fields."""
        item = Item.from_record(make_record(type="video", title="Clip", path="/media/clip.mp4"))

        assert isinstance(item.payload, GenericPayload)
        assert item.type == "video"
        record = item.to_record()
        assert record["type"] == "video"
        assert record["path"] == "/media/clip.mp4"

    def test_missing_type_is_generic(self):
        """Test an untyped payload stays untyped on disk."""
        item = Item.from_record(make_record(title="Plain"))

        assert isinstance(item.payload, GenericPayload)
        assert item.type is None
        assert "type" not in item.to_record()

    def test_non_string_type_rejected(self):
        """Test the type must be a string."""
        with pytest.raises(ValidationError):
            Item.from_record(make_record(type=["song"]))

    def test_known_type_validated(self):
        """Test a known type still checks its own fields."""
        with pytest.raises(ValidationError):
            Item.from_record(make_record(type="song", parts="not a list"))

    def test_version_starts_at_one(self):
        """Test version zero is invalid."""
        with pytest.raises(ValidationError):
            Item.from_record({**make_record(type="song"), "version": 0})


class TestPayloads:
    """Tests for payload variants."""

    def test_schedule_entries(self):
        """Test schedule entries are parsed."""
        payload = SchedulePayload(entries=[{"type": "song", "title": "Amazing Grace"}])

        assert payload.type == "schedule"
        assert payload.entries[0].title == "Amazing Grace"
        assert payload.entries[0].settings == {}

    def test_song_defaults(self):
        """Test song defaults."""
        song = SongPayload(title="Be Thou My Vision")

        assert song.artist is None
        assert song.parts == []
        assert song.tags == []


class TestCommit:
    """Tests for Commit."""

    def test_snapshot_rebuilds_item(self):
        """Test a commit's snapshot is the item at that version."""
        item = Item.from_record(make_record(type="song", title="Amazing Grace"))
        commit = Commit(
            commit_id="commit-1",
            version_number=1,
            timestamp=item.updated_at,
            author="Tester",
            device_id="test-device",
            change_summary="Created item",
            full_snapshot=item.to_record(),
        )

        assert commit.parent_commit_id is None
        assert commit.snapshot() == Item.from_record(item.to_record())
        assert commit.to_record()["full_snapshot"]["title"] == "Amazing Grace"


class TestHistoryReport:
    """Tests for HistoryReport."""

    def test_ok_reflects_issues(self):
        """Test ok is computed from the issue list."""
        report = HistoryReport(item_id="item-1")
        assert report.ok

        report.issues.append(HistoryIssue(message="Content hash mismatch"))
        assert not report.ok
        assert report.model_dump()["ok"] is False
