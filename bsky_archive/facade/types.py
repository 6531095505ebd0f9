"""Public return types for the bsky_archive API."""

from __future__ import annotations

from dataclasses import dataclass, field

from bsky_archive.core.types import PostReference


@dataclass
class ArchiveResult:
    """Result from :meth:`PostArchiver.archive`."""

    url: str
    reference: PostReference
    did: str | None = None
    directory: str | None = None
    raw_uri: str | None = None
    media: list[str] = field(default_factory=list)
    skipped_images: int = 0
    embed_kind: str | None = None
    mirrored: bool = False

    @property
    def saved(self) -> bool:
        """Whether anything was written locally."""
        return self.raw_uri is not None
