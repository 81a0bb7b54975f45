"""
History Log - the "cold", append-only change history of every item.

One JSON Lines file per item, one commit per line, in append order:

    <root>/history/<id>.jsonl

Lines are never rewritten or removed. Readers sort by version number,
newest first.
"""

import json
import os
from pathlib import Path

from pydantic import ValidationError

from lectern.core.config import get_logger
from lectern.core.types import Commit
from lectern.storage.snapshots import is_valid_id

logger = get_logger("storage.history")


class HistoryLog:
    """Append-only commit log, one file per item."""

    suffix = ".jsonl"
    tail_chunk = 4096

    def __init__(self, directory: Path):
        """Initialize the history log."""
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, item_id: str) -> Path:
        """Get the log path for an item id."""
        if not is_valid_id(item_id):
            raise ValueError(f"Invalid item id: {item_id!r}")
        return self.directory / f"{item_id}{self.suffix}"

    def exists(self, item_id: str) -> bool:
        return is_valid_id(item_id) and self.path_for(item_id).exists()

    def append(self, item_id: str, commit: Commit) -> None:
        """Append a commit to the item's log."""
        path = self.path_for(item_id)
        line = json.dumps(commit.to_record(), ensure_ascii=False)

        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

        logger.debug(f"Appended commit {commit.commit_id} (v{commit.version_number}) to {path}")

    def read_all(self, item_id: str) -> list[Commit]:
        """
        Read every commit for an item, newest first by version number.

        Returns an empty list if the item has no log. Lines that cannot be
        parsed are skipped.
        """
        if not self.exists(item_id):
            return []

        path = self.path_for(item_id)
        commits = []

        with open(path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    commits.append(Commit.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning(f"Skipping corrupt commit at {path}:{line_number}: {e}")

        commits.sort(key=lambda c: c.version_number, reverse=True)
        return commits

    def latest(self, item_id: str) -> Commit | None:
        """
        Get the newest commit for an item.

        Commits are appended in version order, so only the last line is
        parsed. A corrupt last line falls back to a full read.
        """
        if not self.exists(item_id):
            return None

        path = self.path_for(item_id)
        line = self._last_line(path)
        if line is not None:
            try:
                return Commit.model_validate_json(line)
            except ValidationError:
                logger.debug(f"Last line of {path} is unreadable; scanning the full log")

        commits = self.read_all(item_id)
        return commits[0] if commits else None

    def item_ids(self) -> list[str]:
        """List the ids of all items with a history log."""
        return sorted(path.stem for path in self.directory.glob(f"*{self.suffix}"))

    def _last_line(self, path: Path) -> bytes | None:
        """Read the last non-empty line of a file without reading all of it."""
        with open(path, "rb") as f:
            position = f.seek(0, os.SEEK_END)
            buffer = b""

            while position > 0:
                step = min(self.tail_chunk, position)
                position -= step
                f.seek(position)
                buffer = f.read(step) + buffer

                content = buffer.rstrip()
                if b"\n" in content:
                    return content.rsplit(b"\n", 1)[1]

        content = buffer.strip()
        return content or None
