"""Custom exceptions for archive pipeline operations."""


class ArchiveError(Exception):
    """Base class for every failure surfaced by the archive pipeline."""

    prefix = "Archive failed"

    def __init__(self, message: str | None = None):
        self.message = f"{self.prefix}: {message}" if message else self.prefix
        super().__init__(self.message)


class InputFormatError(ArchiveError, ValueError):
    """Raised when a URL carries no extractable post reference."""

    prefix = "No post reference in URL"

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(message or repr(url))


class TransportError(ArchiveError):
    prefix = "Request failed"


class DeserializationError(ArchiveError):
    """Raised when a response body does not match the expected shape."""

    prefix = "Could not deserialize response"


class AuthenticationError(ArchiveError):
    prefix = "Authentication failed"


class ResolutionError(ArchiveError):
    prefix = "Handle resolution failed"


class FetchError(ArchiveError):
    prefix = "Thread fetch failed"


class FilesystemError(ArchiveError):
    prefix = "Unable to write archive"


class AlreadyArchivedError(FilesystemError):
    """Raised when the per-post directory already exists."""

    prefix = "Post already archived"

    def __init__(self, record_key: str, message: str | None = None):
        self.record_key = record_key
        super().__init__(message or record_key)


class MediaReferenceMissingError(ArchiveError):
    """Raised when a video embed carries no blob reference."""

    prefix = "Media reference missing"


class ArchiveCancelledError(ArchiveError):
    prefix = "Archive cancelled"
