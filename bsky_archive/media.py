"""Blob download and naming for the media embedded in a post record."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from enum import StrEnum

from bsky_archive.client import BskyClient
from bsky_archive.core.types import MediaReference
from bsky_archive.schemas import ImageGallery, VideoMedia
from bsky_archive.storage.base import ArchiveStorage

logger = logging.getLogger(__name__)

INVALID_EXTENSION = "invalid"


class MediaType(StrEnum):
    """Output extension of a downloaded video."""

    MP4 = "mp4"
    MOV = "mov"
    WEBM = "webm"
    MPEG = "mpeg"
    INVALID = INVALID_EXTENSION

    @classmethod
    def from_mime(cls, mime_type: str | None) -> MediaType:
        return _VIDEO_MIME_TYPES.get((mime_type or "").lower(), cls.INVALID)


_VIDEO_MIME_TYPES: dict[str, MediaType] = {
    "video/mp4": MediaType.MP4,
    "video/mov": MediaType.MOV,
    "video/quicktime": MediaType.MOV,
    "video/webm": MediaType.WEBM,
    "video/mpeg": MediaType.MPEG,
}

_IMAGE_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def image_extension(ref: MediaReference, *, infer: bool = False) -> str:
    """Extension for a gallery image.

    Images are written as ``png`` whatever their bytes are, unless *infer*
    is set, in which case the declared MIME type decides.
    """
    if not infer:
        return "png"
    return _IMAGE_EXTENSIONS.get((ref.mime_type or "").lower(), INVALID_EXTENSION)


def _noop() -> None:
    pass


class MediaDownloader:
    """Fetches the blobs of one post and writes them next to its ``raw.json``."""

    def __init__(
        self,
        client: BskyClient,
        storage: ArchiveStorage,
        did: str,
        record_key: str,
        checkpoint: Callable[[], None] = _noop,
    ) -> None:
        self._client = client
        self._storage = storage
        self._did = did
        self._record_key = record_key
        self._checkpoint = checkpoint

    def _key(self, ref: MediaReference, extension: str) -> str:
        return f"{self._record_key}/{ref.content_id}.{extension}"

    def _save_image(self, ref: MediaReference) -> str:
        self._checkpoint()
        data = self._client.get_blob(self._did, ref.content_id)
        key = self._key(
            ref,
            image_extension(ref, infer=self._client.settings.infer_image_extension),
        )
        self._checkpoint()
        self._storage.write(key, data)
        logger.info("Saved %s", ref.content_id)
        return key

    def save_gallery(self, gallery: ImageGallery) -> tuple[list[str], int]:
        """Download gallery images in order.

        Returns the written keys and the number of images skipped because an
        earlier image had no blob reference.
        """
        refs = gallery.references()
        skipped = len(gallery.images) - len(refs)
        if skipped:
            logger.warning(
                "Image %d of %d has no blob reference; skipping the remaining %d",
                len(refs) + 1,
                len(gallery.images),
                skipped,
            )

        workers = self._client.settings.image_workers
        if workers == 1 or len(refs) < 2:
            keys = [self._save_image(ref) for ref in refs]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                keys = list(pool.map(self._save_image, refs))
        return keys, skipped

    def save_video(self, video: VideoMedia, token: str) -> str:
        """Download the video with bearer auth.

        Raises:
            MediaReferenceMissingError: if the video has no blob reference.
        """
        ref = video.reference()
        media_type = MediaType.from_mime(ref.mime_type)
        logger.info("Saving video from post (media type %s)", ref.mime_type)
        if media_type is MediaType.INVALID:
            logger.warning(
                "Unrecognised video type %r for %s", ref.mime_type, ref.content_id
            )

        self._checkpoint()
        data = self._client.get_blob(self._did, ref.content_id, token=token)
        key = self._key(ref, media_type.value)
        self._checkpoint()
        self._storage.write(key, data)
        logger.info("Saved %s", ref.content_id)
        return key
