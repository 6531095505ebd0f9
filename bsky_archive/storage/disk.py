from __future__ import annotations

from pathlib import Path

from bsky_archive.config import DEFAULT_ARCHIVE_DIR
from bsky_archive.core.exceptions import AlreadyArchivedError, FilesystemError
from bsky_archive.storage.base import ArchiveStorage


class DiskStorage(ArchiveStorage):
    """Local filesystem storage backend.

    Layout::

        <base>/<record_key>/raw.json
        <base>/<record_key>/<cid>.<ext>
    """

    def __init__(self, base_path: str = DEFAULT_ARCHIVE_DIR) -> None:
        self._base = Path(base_path)

    def _resolve(self, key: str) -> Path:
        path = self._base / key
        if not path.resolve().is_relative_to(self._base.resolve()):
            raise FilesystemError(f"key {key!r} escapes archive root {self._base}")
        return path

    # ---- interface ----

    def prepare(self) -> None:
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"{self._base}: {exc}") from exc

    def create_post_dir(self, record_key: str) -> None:
        path = self._resolve(record_key)
        if path.resolve() == self._base.resolve():
            raise FilesystemError(f"invalid record key {record_key!r}")
        try:
            path.mkdir()
        except FileExistsError as exc:
            raise AlreadyArchivedError(record_key) from exc
        except OSError as exc:
            raise FilesystemError(f"{path}: {exc}") from exc

    def write_new(self, key: str, data: bytes) -> None:
        path = self._resolve(key)
        try:
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError as exc:
            raise FilesystemError(f"{path} already exists") from exc
        except OSError as exc:
            raise FilesystemError(f"{path}: {exc}") from exc

    def write(self, key: str, data: bytes) -> None:
        path = self._resolve(key)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise FilesystemError(f"{path}: {exc}") from exc

    def read(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FilesystemError(f"{path}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._resolve(key).exists()

    def list_posts(self) -> list[str]:
        if not self._base.is_dir():
            return []
        return sorted(p.name for p in self._base.iterdir() if p.is_dir())

    def resolve_uri(self, key: str) -> str:
        return str(self._resolve(key))
