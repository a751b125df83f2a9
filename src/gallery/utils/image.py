import os
from typing import Optional

# Extensions listed by the directory scanner.
LISTED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})

# Extensions the metadata extractor attempts to parse.
METADATA_EXTENSIONS = frozenset({".jpg", ".jpeg", ".tiff", ".png"})

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def extension_of(path: str) -> str:
    return os.path.splitext(path)[1].lower()


def media_type_for(path: str) -> str:
    return MIME_TYPES.get(extension_of(path), DEFAULT_MIME_TYPE)


def pillow_format_for(path: str) -> Optional[str]:
    """Return the Pillow encoder name for re-encoding in the source container, if supported."""
    ext = extension_of(path)
    if ext in (".jpg", ".jpeg"):
        return "JPEG"
    if ext == ".png":
        return "PNG"
    return None
