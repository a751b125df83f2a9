"""
Exception hierarchy for the image gallery service.

HTTP-facing errors carry the status code and the short detail text sent to
the client, so endpoints can translate them without a lookup table.
"""


class GalleryError(Exception):
    """Base exception for all gallery errors."""

    status_code: int = 500
    detail: str = "Internal server error"


class PathViolationError(GalleryError):
    """Raised when a requested path escapes the image root."""

    status_code = 403
    detail = "Forbidden"


class ImageNotFoundError(GalleryError):
    """Raised when the requested file or directory does not exist or is unreadable."""

    status_code = 404
    detail = "File not found"


class InvalidFileTypeError(GalleryError):
    """Raised when the path exists but is not a regular file."""

    status_code = 400
    detail = "Not a file"


class StreamFailureError(GalleryError):
    """Raised when the original file cannot be opened for the fallback stream."""

    status_code = 500
    detail = "Error reading file"


class FileVanishedError(GalleryError):
    """Raised when a file disappears while its metadata is being read."""
