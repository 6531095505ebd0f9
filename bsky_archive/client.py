"""Thin XRPC client over ``requests``.

Sessions only carry process-wide configuration (default headers, redirect
cap). Bearer tokens are passed per call, so a single client can be shared by
concurrent downloads.
"""

from __future__ import annotations

import logging
import threading
from typing import TypeVar

import requests
from pydantic import BaseModel, ValidationError

from bsky_archive.config import ArchiveSettings
from bsky_archive.core.exceptions import (
    AuthenticationError,
    DeserializationError,
    FetchError,
    ResolutionError,
    TransportError,
)
from bsky_archive.core.types import PostReference
from bsky_archive.schemas import (
    ActorIdentifier,
    SessionCredential,
    ThreadResponse,
    XrpcErrorBody,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CREATE_SESSION = "com.atproto.server.createSession"
RESOLVE_HANDLE = "com.atproto.identity.resolveHandle"
GET_POST_THREAD = "app.bsky.feed.getPostThread"
GET_BLOB = "com.atproto.sync.getBlob"


def build_session(settings: ArchiveSettings) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": settings.user_agent,
            "Content-Type": "application/json",
        }
    )
    session.max_redirects = settings.max_redirects
    return session


def _xrpc_error_detail(response: requests.Response) -> str:
    try:
        body = XrpcErrorBody.model_validate_json(response.content)
    except ValidationError:
        return ""
    parts = [p for p in (body.error, body.message) if p]
    return f" ({': '.join(parts)})" if parts else ""


def _decode(model: type[M], response: requests.Response) -> M:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise DeserializationError(
            f"expected {model.__name__}, got HTTP {response.status_code}"
            f"{_xrpc_error_detail(response)}"
        ) from exc


class BskyClient:
    """XRPC client shared by every step of a run.

    requests does not promise that a ``Session`` is thread-safe, so unless a
    session is injected each thread lazily builds its own from the same
    settings. An injected session is used by every thread as-is.
    """

    def __init__(
        self,
        settings: ArchiveSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or ArchiveSettings()
        self._shared_session = session
        self._local = threading.local()

    @property
    def settings(self) -> ArchiveSettings:
        return self._settings

    @property
    def session(self) -> requests.Session:
        """The session used by the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = build_session(self._settings)
            self._local.session = session
        return session

    def xrpc_url(self, nsid: str) -> str:
        return f"{self._settings.service_url.rstrip('/')}/xrpc/{nsid}"

    def request(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        **kwargs,
    ) -> requests.Response:
        """Send one request. Transport failures become :class:`TransportError`."""
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            return self.session.request(
                method,
                url,
                headers=headers,
                timeout=self._settings.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url}: {exc}") from exc

    # ---- XRPC calls ----

    def create_session(self, identifier: str, password: str) -> SessionCredential:
        try:
            response = self.request(
                "POST",
                self.xrpc_url(CREATE_SESSION),
                json={"identifier": identifier, "password": password},
            )
            return _decode(SessionCredential, response)
        except (TransportError, DeserializationError) as exc:
            raise AuthenticationError(exc.message) from exc

    def resolve_handle(self, handle: str) -> ActorIdentifier:
        try:
            response = self.request(
                "GET",
                self.xrpc_url(RESOLVE_HANDLE),
                params={"handle": handle},
            )
            return _decode(ActorIdentifier, response)
        except (TransportError, DeserializationError) as exc:
            raise ResolutionError(f"{handle}: {exc.message}") from exc

    def get_post_thread(
        self,
        reference: PostReference,
        did: str,
        token: str,
    ) -> tuple[bytes, ThreadResponse]:
        """Fetch the thread of one post.

        Returns the raw body, kept verbatim for persistence, and its parsed
        form. Only the requested post is asked for (no parents or replies).
        """
        try:
            response = self.request(
                "GET",
                self.xrpc_url(GET_POST_THREAD),
                token=token,
                params={
                    "uri": reference.at_uri(did),
                    "depth": 0,
                    "parentHeight": 0,
                },
            )
            return response.content, _decode(ThreadResponse, response)
        except (TransportError, DeserializationError) as exc:
            raise FetchError(exc.message) from exc

    def get_blob(self, did: str, cid: str, token: str | None = None) -> bytes:
        response = self.request(
            "GET",
            self.xrpc_url(GET_BLOB),
            token=token,
            params={"did": did, "cid": cid},
        )
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise TransportError(f"blob {cid}: HTTP {response.status_code}") from exc
        logger.debug("Fetched blob %s (%d bytes)", cid, len(response.content))
        return response.content
