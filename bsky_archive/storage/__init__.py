from bsky_archive.storage.base import ArchiveStorage
from bsky_archive.storage.disk import DiskStorage

__all__ = [
    "ArchiveStorage",
    "DiskStorage",
]
