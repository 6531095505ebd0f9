from bsky_archive.config import ArchiveSettings
from bsky_archive.core.exceptions import ArchiveError, InputFormatError
from bsky_archive.facade import ArchiveResult, PostArchiver, archive_post

__all__ = [
    "ArchiveError",
    "ArchiveResult",
    "ArchiveSettings",
    "InputFormatError",
    "PostArchiver",
    "archive_post",
]
