from __future__ import annotations

from abc import ABC, abstractmethod


class ArchiveStorage(ABC):
    """Abstract base class for archive storage backends.

    Keys are ``/``-separated and relative to the archive root, e.g.
    ``3kabc123/raw.json``. Every failure surfaces as a ``FilesystemError``.
    """

    @abstractmethod
    def prepare(self) -> None:
        """Make sure the archive root exists."""
        ...

    @abstractmethod
    def create_post_dir(self, record_key: str) -> None:
        """Create the directory of one post, failing if it already exists."""
        ...

    @abstractmethod
    def write_new(self, key: str, data: bytes) -> None:
        """Write data to a key that must not exist yet."""
        ...

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """Write data to the given key, replacing any previous content."""
        ...

    @abstractmethod
    def read(self, key: str) -> bytes:
        """Read data from the given key."""
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if the key exists."""
        ...

    @abstractmethod
    def list_posts(self) -> list[str]:
        """List the record keys archived so far."""
        ...

    @abstractmethod
    def resolve_uri(self, key: str) -> str:
        """Return a location suitable for display."""
        ...
