from __future__ import annotations

import copy
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import requests

from bsky_archive import PostArchiver
from bsky_archive.client import BskyClient
from bsky_archive.config import ArchiveSettings
from bsky_archive.storage.disk import DiskStorage

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SERVICE = "https://bsky.social"
XRPC = f"{SERVICE}/xrpc"
DID = "did:plc:alice123"
ACCESS_JWT = "jwt-access-token"
POST_URL = "https://bsky.app/profile/alice.bsky.social/post/3kabc123"
VIDEO_POST_URL = "https://bsky.app/profile/alice.bsky.social/post/3kvid999"
MIRROR_TARGET = f"https://web.archive.org/save/{POST_URL}"


def _load(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text())


THREAD_ONE_IMAGE: dict = _load("thread_one_image.json")
THREAD_VIDEO: dict = _load("thread_video.json")
THREAD_NOT_FOUND: dict = _load("thread_not_found.json")


def blob(cid: str | None, mime_type: str = "image/jpeg") -> dict:
    """Build a record-layer blob; ``cid=None`` drops the reference."""
    data: dict[str, Any] = {"$type": "blob", "mimeType": mime_type, "size": 1024}
    if cid is not None:
        data["ref"] = {"$link": cid}
    return data


def thread_with_embed(embed: dict | None) -> dict:
    """Copy of the one-image thread with its record embed replaced."""
    body = copy.deepcopy(THREAD_ONE_IMAGE)
    record = body["thread"]["post"]["record"]
    if embed is None:
        record.pop("embed", None)
    else:
        record["embed"] = embed
    return body


# ── Fake requests session ───────────────────────────────────────────


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        json_body: Any = None,
    ) -> None:
        if json_body is not None:
            content = json.dumps(json_body).encode()
        self.status_code = status_code
        self.content = content

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


@dataclass
class Call:
    method: str
    url: str
    params: dict[str, Any]
    headers: dict[str, str]
    json: Any
    timeout: float | None


@dataclass
class _Route:
    method: str
    url: str
    params: dict[str, Any] | None
    outcome: FakeResponse | Exception | Callable[[], FakeResponse]


@dataclass
class FakeSession:
    """Stands in for ``requests.Session``; records every request."""

    calls: list[Call] = field(default_factory=list)
    _routes: list[_Route] = field(default_factory=list)

    def add(
        self,
        method: str,
        url: str,
        outcome: FakeResponse | Exception | Callable[[], FakeResponse],
        params: dict[str, Any] | None = None,
    ) -> None:
        self._routes.append(_Route(method, url, params, outcome))

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        params = kwargs.get("params") or {}
        self.calls.append(
            Call(
                method=method,
                url=url,
                params=params,
                headers=dict(headers or {}),
                json=kwargs.get("json"),
                timeout=timeout,
            )
        )
        for route in self._routes:
            if route.method != method or route.url != url:
                continue
            if route.params is not None and any(
                params.get(k) != v for k, v in route.params.items()
            ):
                continue
            if isinstance(route.outcome, Exception):
                raise route.outcome
            if callable(route.outcome):
                return route.outcome()
            return route.outcome
        return FakeResponse(404, json_body={"error": "NotFound", "message": url})

    def calls_to(self, nsid_or_url: str) -> list[Call]:
        return [c for c in self.calls if c.url.endswith(nsid_or_url)]

    # ---- canned service ----

    def stub_service(self, thread: dict, blobs: dict[str, bytes] | None = None) -> None:
        self.add(
            "POST",
            f"{XRPC}/com.atproto.server.createSession",
            FakeResponse(
                json_body={
                    "accessJwt": ACCESS_JWT,
                    "refreshJwt": "jwt-refresh-token",
                    "handle": "alice.bsky.social",
                    "did": DID,
                }
            ),
        )
        self.add(
            "GET",
            f"{XRPC}/com.atproto.identity.resolveHandle",
            FakeResponse(json_body={"did": DID}),
            params={"handle": "alice.bsky.social"},
        )
        self.add(
            "GET",
            f"{XRPC}/app.bsky.feed.getPostThread",
            FakeResponse(json_body=thread),
        )
        for cid, data in (blobs or {}).items():
            self.add(
                "GET",
                f"{XRPC}/com.atproto.sync.getBlob",
                FakeResponse(content=data),
                params={"did": DID, "cid": cid},
            )


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def settings(tmp_path: Path) -> ArchiveSettings:
    return ArchiveSettings(archive_dir=str(tmp_path / "posts"))


@pytest.fixture()
def client(settings: ArchiveSettings, fake_session: FakeSession) -> BskyClient:
    return BskyClient(settings, session=fake_session)  # type: ignore[arg-type]


@pytest.fixture()
def storage(settings: ArchiveSettings) -> DiskStorage:
    return DiskStorage(settings.archive_dir)


@pytest.fixture()
def archiver(storage: DiskStorage, client: BskyClient) -> PostArchiver:
    return PostArchiver(storage=storage, client=client)
