from bsky_archive.core.exceptions import (
    AlreadyArchivedError,
    ArchiveCancelledError,
    ArchiveError,
    AuthenticationError,
    DeserializationError,
    FetchError,
    FilesystemError,
    InputFormatError,
    MediaReferenceMissingError,
    ResolutionError,
    TransportError,
)
from bsky_archive.core.types import MediaReference, PostReference
from bsky_archive.core.url import extract_post_reference

__all__ = [
    "PostReference",
    "MediaReference",
    "extract_post_reference",
    "ArchiveError",
    "AlreadyArchivedError",
    "ArchiveCancelledError",
    "AuthenticationError",
    "DeserializationError",
    "FetchError",
    "FilesystemError",
    "InputFormatError",
    "MediaReferenceMissingError",
    "ResolutionError",
    "TransportError",
]
