"""
Pytest configuration and fixtures for Lectern tests.
"""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

# Set test environment before importing app modules
os.environ["LECTERN_DATA_DIR"] = tempfile.mkdtemp()


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary library root for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "library"


@pytest.fixture
def store(temp_data_dir):
    """A library store rooted in the temporary directory."""
    from lectern.storage.library import LibraryStore

    return LibraryStore(temp_data_dir)


@pytest.fixture
def sample_song() -> dict:
    """Sample song payload for testing."""
    return {
        "type": "song",
        "title": "Amazing Grace",
        "tags": ["Hymn"],
        "parts": [
            {
                "id": "v1",
                "label": "Verse 1",
                "slides": ["Amazing grace, how sweet the sound", "That saved a wretch like me"],
            },
        ],
        "variations": [
            {"id": 1, "name": "Default", "arrangement": ["v1"]},
        ],
    }


@pytest.fixture
def sample_scripture() -> dict:
    """Sample scripture payload for testing."""
    return {
        "type": "scripture",
        "title": "John 3:16",
        "reference": "John 3:16",
        "translation": "KJV",
        "verses": ["For God so loved the world..."],
    }


@pytest.fixture
def sample_schedule() -> dict:
    """Sample schedule payload for testing."""
    return {
        "type": "schedule",
        "title": "Sunday Service",
        "date": "2026-10-18",
        "entries": [
            {"type": "song", "title": "Amazing Grace", "settings": {"key": "G"}},
        ],
    }
