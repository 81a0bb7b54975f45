"""
Exceptions raised by the library store.

Read paths degrade to "not found" instead of raising; these cover the
cases a caller has to decide about.
"""


class LibraryStoreError(Exception):
    """Base class for store errors."""


class ItemNotFoundError(LibraryStoreError):
    """Raised when a write targets an item id with no current snapshot."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class CommitNotFoundError(LibraryStoreError):
    """Raised when a commit id is not part of an item's history."""

    def __init__(self, item_id: str, commit_id: str) -> None:
        super().__init__(f"Commit {commit_id} not found in history of item {item_id}")
        self.item_id = item_id
        self.commit_id = commit_id


class VersionConflictError(LibraryStoreError):
    """Raised when an update's expected version is not the current version."""

    def __init__(self, item_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Version conflict on item {item_id}: expected {expected}, current is {actual}"
        )
        self.item_id = item_id
        self.expected = expected
        self.actual = actual


class InvalidPayloadError(LibraryStoreError):
    """Raised when a payload or merged snapshot fails validation."""
