from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class GpsCoordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Metadata:
    file_name: str
    file_size_bytes: int
    capture_timestamp: str  # ISO-8601; file mtime when no EXIF date exists
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    orientation: int = 1
    width: Optional[int] = None
    height: Optional[int] = None
    gps_coordinates: Optional[GpsCoordinates] = None
    extraction_error: Optional[str] = None


@dataclass(frozen=True)
class ImageRecord:
    relative_path: str  # root-relative, always "/" separated
    file_name: str
    metadata: Optional[Metadata] = None


class OutputFormat(str, Enum):
    AUTO = "auto"
    WEBP = "webp"
    ORIGINAL = "original"


@dataclass(frozen=True)
class TransformOptions:
    target_width: int = 1280
    quality: int = 80
    format: OutputFormat = OutputFormat.AUTO
    client_accepts_webp: bool = False

    @property
    def wants_webp(self) -> bool:
        if self.format == OutputFormat.WEBP:
            return True
        return self.format == OutputFormat.AUTO and self.client_accepts_webp

    @classmethod
    def from_query(
        cls,
        width: Optional[str],
        quality: Optional[str],
        output_format: Optional[str],
        accept: Optional[str],
        default_width: int = 1280,
        default_quality: int = 80,
    ) -> "TransformOptions":
        """Build options from raw query values, falling back to defaults on bad input."""
        target_width = _parse_int(width)
        if target_width is None or target_width <= 0:
            target_width = default_width

        parsed_quality = _parse_int(quality)
        if parsed_quality is None:
            parsed_quality = default_quality
        parsed_quality = max(1, min(100, parsed_quality))

        try:
            fmt = OutputFormat((output_format or "auto").lower())
        except ValueError:
            fmt = OutputFormat.AUTO

        return cls(
            target_width=target_width,
            quality=parsed_quality,
            format=fmt,
            client_accepts_webp="image/webp" in (accept or "").lower(),
        )


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
