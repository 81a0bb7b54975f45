"""Integration tests for a library item's full lifecycle."""

import json

from typer.testing import CliRunner

from lectern.interface.cli import app
from lectern.storage.library import LibraryStore

runner = CliRunner()


class TestRevertScenario:
    """The create → edit → edit → restore walk-through."""

    def test_revert_by_snapshot(self, temp_data_dir):
        """Test restoring version 1 by applying its snapshot as a delta."""
        store = LibraryStore(temp_data_dir)

        item = store.create(
            {"type": "song", "title": "Amazing Grace", "tags": ["Hymn"]},
            "Tester",
            "test-device",
        )
        assert store.get(item.id).payload.title == "Amazing Grace"

        v2 = store.update(item.id, {"title": "Amazing Grace (Remix)"}, "Tester", "test-device")
        assert v2.version == 2

        v3 = store.update(item.id, {"artist": "Unknown"}, "Tester", "test-device")
        assert v3.version == 3

        history = store.get_history(item.id)
        assert [c.version_number for c in history] == [3, 2, 1]
        v1_commit = history[-1]

        restored = store.update(
            item.id,
            dict(v1_commit.full_snapshot),
            "Tester",
            "test-device",
            "Restoring v1",
        )

        assert restored.version == 4
        assert restored.payload.title == "Amazing Grace"
        assert store.get(item.id) == restored
        assert len(store.get_history(item.id)) == 4
        assert store.verify(item.id).ok

    def test_second_store_sees_same_data(self, temp_data_dir, sample_song):
        """Test state lives on disk, not in the store object."""
        first = LibraryStore(temp_data_dir)
        item = first.create(sample_song)
        first.update(item.id, {"title": "Renamed"})

        second = LibraryStore(temp_data_dir)

        assert second.get(item.id).version == 2
        assert len(second.get_history(item.id)) == 2


class TestCli:
    """Tests for the lectern command line."""

    def test_create_list_history(self, temp_data_dir, tmp_path, sample_song):
        """Test creating and inspecting an item through the CLI."""
        payload = tmp_path / "song.json"
        payload.write_text(json.dumps(sample_song), encoding="utf-8")
        root = str(temp_data_dir)

        result = runner.invoke(app, ["--root", root, "create", str(payload), "--author", "Tester"])
        assert result.exit_code == 0, result.output
        assert "Created song" in result.output

        item = LibraryStore(temp_data_dir).list()[0]

        result = runner.invoke(app, ["--root", root, "list", "--type", "song"])
        assert result.exit_code == 0, result.output
        assert "Library" in result.output

        result = runner.invoke(app, ["--root", root, "list", "--type", "media"])
        assert result.exit_code == 0, result.output
        assert "No items found" in result.output

        result = runner.invoke(app, ["--root", root, "show", item.id])
        assert result.exit_code == 0, result.output
        assert "Amazing Grace" in result.output

        result = runner.invoke(app, ["--root", root, "history", item.id])
        assert result.exit_code == 0, result.output
        assert f"History of {item.id}" in result.output

        result = runner.invoke(app, ["--root", root, "verify", item.id])
        assert result.exit_code == 0, result.output
        assert "consistent" in result.output

    def test_update_and_revert(self, temp_data_dir, tmp_path, sample_song):
        """Test updating and reverting through the CLI."""
        store = LibraryStore(temp_data_dir)
        item = store.create(sample_song)
        delta = tmp_path / "delta.json"
        delta.write_text(json.dumps({"title": "Renamed"}), encoding="utf-8")
        root = str(temp_data_dir)

        result = runner.invoke(app, ["--root", root, "update", item.id, str(delta), "--summary", "Retitle"])
        assert result.exit_code == 0, result.output
        assert store.get(item.id).payload.title == "Renamed"

        result = runner.invoke(app, ["--root", root, "revert", item.id, item.history_head_id])
        assert result.exit_code == 0, result.output
        assert store.get(item.id).payload.title == "Amazing Grace"
        assert store.get(item.id).version == 3

    def test_errors_exit_nonzero(self, temp_data_dir, tmp_path):
        """Test failures are reported with a non-zero exit code."""
        delta = tmp_path / "delta.json"
        delta.write_text(json.dumps({"title": "x"}), encoding="utf-8")
        root = str(temp_data_dir)

        result = runner.invoke(app, ["--root", root, "update", "nonexistent-id", str(delta)])
        assert result.exit_code == 1
        assert "not found" in result.output

        result = runner.invoke(app, ["--root", root, "show", "nonexistent-id"])
        assert result.exit_code == 1
