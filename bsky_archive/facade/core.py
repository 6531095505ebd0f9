"""Main facade for the bsky_archive library."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import partial

from bsky_archive.client import BskyClient
from bsky_archive.config import ArchiveSettings
from bsky_archive.core.exceptions import ArchiveCancelledError, ArchiveError
from bsky_archive.core.types import PostReference
from bsky_archive.core.url import extract_post_reference
from bsky_archive.facade.types import ArchiveResult
from bsky_archive.media import MediaDownloader
from bsky_archive.mirror import submit_to_wayback
from bsky_archive.storage.base import ArchiveStorage
from bsky_archive.storage.disk import DiskStorage

logger = logging.getLogger(__name__)

RAW_FILENAME = "raw.json"


def _raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise ArchiveCancelledError()


class PostArchiver:
    """Main entry point for the bsky_archive library.

    Usage::

        archiver = PostArchiver.from_settings(ArchiveSettings(archive_dir="./posts"))
        result = archiver.archive(
            "https://bsky.app/profile/alice.bsky.social/post/3kabc123",
            identifier="alice.bsky.social",
            password="xxxx-xxxx-xxxx-xxxx",
        )
    """

    def __init__(self, storage: ArchiveStorage, client: BskyClient) -> None:
        self._storage = storage
        self._client = client

    @classmethod
    def from_settings(cls, settings: ArchiveSettings | None = None) -> PostArchiver:
        settings = settings or ArchiveSettings()
        return cls(
            storage=DiskStorage(settings.archive_dir),
            client=BskyClient(settings),
        )

    @property
    def storage(self) -> ArchiveStorage:
        return self._storage

    def archive(
        self,
        url: str,
        identifier: str,
        password: str,
        *,
        cancel: threading.Event | None = None,
    ) -> ArchiveResult:
        """Archive the post behind *url*.

        The URL is parsed before any request is sent. Every failure of the
        local pipeline aborts the run and is re-raised as an
        :class:`ArchiveError` subclass; the external mirror never fails the
        run.

        Args:
            url: Post URL (``.../profile/<handle>/post/<rkey>``).
            identifier: Account handle or email used to log in.
            password: Account (app) password.
            cancel: Checked before every request and every file write.

        Returns:
            An :class:`ArchiveResult` describing what was written.
        """
        reference = extract_post_reference(url)
        checkpoint = partial(_raise_if_cancelled, cancel)
        result = ArchiveResult(url=url, reference=reference)

        try:
            self._archive_locally(reference, identifier, password, result, checkpoint)
        except ArchiveError as exc:
            logger.error("Archiving %s failed: %s", url, exc)
            raise

        if self._client.settings.mirror:
            checkpoint()
            result.mirrored = submit_to_wayback(self._client, url)

        logger.info("Post archived successfully.")
        return result

    def _archive_locally(
        self,
        reference: PostReference,
        identifier: str,
        password: str,
        result: ArchiveResult,
        checkpoint: Callable[[], None],
    ) -> None:
        checkpoint()
        session = self._client.create_session(identifier, password)

        checkpoint()
        actor = self._client.resolve_handle(reference.handle)
        result.did = actor.did

        checkpoint()
        raw, thread = self._client.get_post_thread(
            reference, actor.did, session.access_jwt
        )

        post = thread.thread.post
        if post is None:
            logger.info(
                "Thread for %s holds no post; nothing to save", reference.record_key
            )
            return
        if post.embed is not None:
            result.embed_kind = post.embed.kind.value
        if post.record is None:
            logger.info("Post %s has no record; nothing to save", reference.record_key)
            return

        logger.info("Saving post locally...")
        record_key = reference.record_key
        checkpoint()
        self._storage.prepare()
        self._storage.create_post_dir(record_key)
        result.directory = self._storage.resolve_uri(record_key)

        # No checkpoint between the directory and raw.json: an empty post
        # directory would block every later attempt.
        raw_key = f"{record_key}/{RAW_FILENAME}"
        self._storage.write_new(raw_key, raw)
        result.raw_uri = self._storage.resolve_uri(raw_key)
        logger.info("Raw post data archived...Saving associated media...")

        embed = post.record.embed
        if embed is None:
            return

        downloader = MediaDownloader(
            self._client,
            self._storage,
            did=actor.did,
            record_key=record_key,
            checkpoint=checkpoint,
        )
        gallery = embed.gallery
        if gallery is not None:
            keys, skipped = downloader.save_gallery(gallery)
            result.media.extend(self._storage.resolve_uri(k) for k in keys)
            result.skipped_images = skipped

        video = embed.video_media
        if video is not None:
            key = downloader.save_video(video, session.access_jwt)
            result.media.append(self._storage.resolve_uri(key))


def archive_post(
    url: str,
    identifier: str,
    password: str,
    *,
    settings: ArchiveSettings | None = None,
    cancel: threading.Event | None = None,
) -> ArchiveResult:
    """Archive one post with a freshly built :class:`PostArchiver`."""
    archiver = PostArchiver.from_settings(settings)
    return archiver.archive(url, identifier, password, cancel=cancel)
