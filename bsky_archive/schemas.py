"""Pydantic schemas for the XRPC responses used by the archiver.

Two unrelated embed shapes exist upstream:

- ``RecordEmbed`` is the author's record as stored in their repo. Media are
  blob references (``ref.$link``) and drive the downloads.
- ``ViewEmbed`` is the AppView's hydrated rendering of the same embed (CDN
  URLs, playlists). It is informational only.

They share no base class beyond :class:`BskyBaseModel`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bsky_archive.core.exceptions import MediaReferenceMissingError
from bsky_archive.core.types import MediaReference

EMBED_IMAGES = "app.bsky.embed.images"
EMBED_VIDEO = "app.bsky.embed.video"
EMBED_EXTERNAL = "app.bsky.embed.external"
EMBED_RECORD = "app.bsky.embed.record"
EMBED_RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia"


class BskyBaseModel(BaseModel):
    """Tolerant base: unknown lexicon fields are kept, never rejected."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Session / identity
# ---------------------------------------------------------------------------


class SessionCredential(BskyBaseModel):
    """``com.atproto.server.createSession`` output."""

    access_jwt: str = Field(alias="accessJwt", repr=False)
    refresh_jwt: str | None = Field(None, alias="refreshJwt", repr=False)
    handle: str | None = None
    did: str | None = None


class ActorIdentifier(BskyBaseModel):
    """``com.atproto.identity.resolveHandle`` output."""

    did: str


class XrpcErrorBody(BskyBaseModel):
    error: str | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Record layer
# ---------------------------------------------------------------------------


class BlobLink(BskyBaseModel):
    link: str | None = Field(None, alias="$link")


class BlobData(BskyBaseModel):
    """A blob as referenced from a record.

    Current records carry ``{"$type": "blob", "ref": {"$link": ...}}``;
    legacy records carry a bare ``cid`` string instead.
    """

    type: str | None = Field(None, alias="$type")
    ref: BlobLink | None = None
    cid: str | None = None
    mime_type: str | None = Field(None, alias="mimeType")
    size: int | None = None

    def reference(self) -> MediaReference | None:
        link = self.ref.link if self.ref is not None else None
        content_id = link or self.cid
        if not content_id:
            return None
        return MediaReference(
            content_id=content_id,
            mime_type=self.mime_type,
            size_bytes=self.size,
        )


class AspectRatio(BskyBaseModel):
    width: int
    height: int


class RecordEmbedImage(BskyBaseModel):
    """One entry of an ``app.bsky.embed.images`` record embed."""

    alt: str = ""
    image: BlobData | None = None
    aspect_ratio: AspectRatio | None = Field(None, alias="aspectRatio")

    def reference(self) -> MediaReference | None:
        if self.image is None:
            return None
        return self.image.reference()


@dataclass(frozen=True)
class ImageGallery:
    """Ordered images of a record embed."""

    images: tuple[RecordEmbedImage, ...]

    def references(self) -> list[MediaReference]:
        """Return references in order, stopping at the first image without one.

        Images after a missing reference are never considered.
        """
        refs: list[MediaReference] = []
        for image in self.images:
            ref = image.reference()
            if ref is None:
                break
            refs.append(ref)
        return refs


@dataclass(frozen=True)
class VideoMedia:
    """The single video of a record embed."""

    blob: BlobData | None

    def reference(self) -> MediaReference:
        ref = self.blob.reference() if self.blob is not None else None
        if ref is None:
            raise MediaReferenceMissingError("video embed carries no blob reference")
        return ref


class RecordEmbed(BskyBaseModel):
    """Embed as stored in the author's record.

    Images and a video may coexist in the raw data, so both accessors are
    evaluated independently. ``recordWithMedia`` embeds are unwrapped to
    their nested ``media`` embed.
    """

    type: str | None = Field(None, alias="$type")
    images: list[RecordEmbedImage] = Field(default_factory=list)
    video: BlobData | None = None
    media: RecordEmbed | None = None

    def _media_embed(self) -> RecordEmbed:
        if self.type == EMBED_RECORD_WITH_MEDIA and self.media is not None:
            return self.media
        return self

    @property
    def gallery(self) -> ImageGallery | None:
        embed = self._media_embed()
        if not embed.images:
            return None
        return ImageGallery(images=tuple(embed.images))

    @property
    def video_media(self) -> VideoMedia | None:
        embed = self._media_embed()
        if embed.video is None and embed.type != EMBED_VIDEO:
            return None
        return VideoMedia(blob=embed.video)


class Record(BskyBaseModel):
    """``app.bsky.feed.post`` record: the author's original content."""

    type: str | None = Field(None, alias="$type")
    created_at: datetime | None = Field(None, alias="createdAt")
    text: str = ""
    facets: list[dict[str, Any]] = Field(default_factory=list)
    langs: list[str] = Field(default_factory=list)
    reply: dict[str, Any] | None = None
    embed: RecordEmbed | None = None


# ---------------------------------------------------------------------------
# View layer
# ---------------------------------------------------------------------------


class EmbedKind(StrEnum):
    IMAGES = "images"
    VIDEO = "video"
    EXTERNAL = "external"
    RECORD = "record"
    RECORD_WITH_MEDIA = "record_with_media"
    UNKNOWN = "unknown"


_VIEW_KINDS: dict[str, EmbedKind] = {
    f"{EMBED_IMAGES}#view": EmbedKind.IMAGES,
    f"{EMBED_VIDEO}#view": EmbedKind.VIDEO,
    f"{EMBED_EXTERNAL}#view": EmbedKind.EXTERNAL,
    f"{EMBED_RECORD}#view": EmbedKind.RECORD,
    f"{EMBED_RECORD_WITH_MEDIA}#view": EmbedKind.RECORD_WITH_MEDIA,
}


class ViewImage(BskyBaseModel):
    thumb: str | None = None
    fullsize: str | None = None
    alt: str = ""


class ViewEmbed(BskyBaseModel):
    """Hydrated embed of a post view (CDN URLs, not blob references)."""

    type: str | None = Field(None, alias="$type")
    images: list[ViewImage] = Field(default_factory=list)
    cid: str | None = None
    playlist: str | None = None
    thumbnail: str | None = None
    external: dict[str, Any] | None = None
    media: ViewEmbed | None = None

    @property
    def kind(self) -> EmbedKind:
        return _VIEW_KINDS.get(self.type or "", EmbedKind.UNKNOWN)


class Author(BskyBaseModel):
    did: str
    handle: str
    display_name: str | None = Field(None, alias="displayName")
    avatar: str | None = None


class PostView(BskyBaseModel):
    uri: str | None = None
    cid: str | None = None
    author: Author | None = None
    record: Record | None = None
    embed: ViewEmbed | None = None
    reply_count: int | None = Field(None, alias="replyCount")
    repost_count: int | None = Field(None, alias="repostCount")
    like_count: int | None = Field(None, alias="likeCount")
    quote_count: int | None = Field(None, alias="quoteCount")
    indexed_at: datetime | None = Field(None, alias="indexedAt")
    viewer: dict[str, Any] | None = None
    labels: list[dict[str, Any]] = Field(default_factory=list)


class ThreadViewPost(BskyBaseModel):
    """Root of a thread. ``notFoundPost`` / ``blockedPost`` have no ``post``."""

    type: str | None = Field(None, alias="$type")
    uri: str | None = None
    post: PostView | None = None
    not_found: bool = Field(False, alias="notFound")
    blocked: bool = False


class ThreadResponse(BskyBaseModel):
    """``app.bsky.feed.getPostThread`` output."""

    thread: ThreadViewPost
