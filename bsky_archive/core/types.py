"""Value types shared across the archive pipeline."""

from __future__ import annotations

from dataclasses import dataclass

POST_COLLECTION = "app.bsky.feed.post"


@dataclass(frozen=True)
class PostReference:
    """The ``(handle, record_key)`` pair extracted from a post URL."""

    handle: str
    record_key: str

    def at_uri(self, did: str) -> str:
        """Build the ``at://`` URI of this post inside the repo of *did*."""
        return f"at://{did}/{POST_COLLECTION}/{self.record_key}"


@dataclass(frozen=True)
class MediaReference:
    """Durable pointer to a content-addressed blob on the origin service.

    ``content_id`` is opaque. Blobs are only retrievable together with the
    DID of the repo that owns them.
    """

    content_id: str
    mime_type: str | None = None
    size_bytes: int | None = None
