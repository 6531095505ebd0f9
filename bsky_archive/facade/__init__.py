from bsky_archive.facade.core import PostArchiver, archive_post
from bsky_archive.facade.types import ArchiveResult

__all__ = [
    "ArchiveResult",
    "PostArchiver",
    "archive_post",
]
