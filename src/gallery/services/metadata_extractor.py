import asyncio
import io
import logging
import os
import stat as stat_module
from datetime import datetime, timezone
from typing import Any, Optional

import aiofiles.os
import piexif
from PIL import Image

from gallery.exceptions import FileVanishedError, InvalidFileTypeError
from gallery.models import GpsCoordinates, Metadata
from gallery.utils.fileIO import read_bytes
from gallery.utils.image import METADATA_EXTENSIONS, extension_of

logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


class MetadataExtractor:
    """
    Reads capture time, camera, orientation, dimensions and GPS from image files.

    ``extract`` degrades instead of failing: when the file cannot be parsed the
    result still carries name, size and modification time, with
    ``extraction_error`` describing what went wrong.
    """

    def __init__(self, extensions=METADATA_EXTENSIONS):
        self.extensions = frozenset(extensions)

    def supports(self, file_path: str) -> bool:
        return extension_of(file_path) in self.extensions

    async def extract(self, file_path: str) -> Optional[Metadata]:
        """
        Returns None for extensions outside the supported set.

        Raises FileVanishedError only when the file is gone by the time the
        degraded result is built.
        """
        if not self.supports(file_path):
            return None

        try:
            st = await aiofiles.os.stat(file_path)
            if not stat_module.S_ISREG(st.st_mode):
                raise InvalidFileTypeError(file_path)
            content = await read_bytes(file_path)
            return await asyncio.to_thread(self._build_metadata, file_path, st, content)
        except Exception as e:
            logger.warning(f"Failed to extract metadata for {file_path}: {e}")
            return await self._degraded_metadata(file_path, e)

    async def _degraded_metadata(self, file_path: str, error: Exception) -> Metadata:
        try:
            st = await aiofiles.os.stat(file_path)
        except OSError as e:
            raise FileVanishedError(file_path) from e

        return Metadata(
            file_name=os.path.basename(file_path),
            file_size_bytes=st.st_size,
            capture_timestamp=_mtime_iso(st),
            extraction_error=str(error) or type(error).__name__,
        )

    def _build_metadata(self, file_path: str, st: os.stat_result, content: bytes) -> Metadata:
        with Image.open(io.BytesIO(content)) as img:
            image_size = img.size
            image_format = img.format
            exif_bytes = img.info.get("exif")

        if exif_bytes:
            exif = piexif.load(exif_bytes)
        elif image_format == "TIFF":
            exif = piexif.load(content)
        else:
            exif = {}

        exif_0th = exif.get("0th", {})
        exif_exif = exif.get("Exif", {})

        capture_timestamp = (
            _parse_exif_datetime(exif_exif.get(piexif.ExifIFD.DateTimeOriginal))
            or _parse_exif_datetime(exif_0th.get(piexif.ImageIFD.DateTime))
            or _mtime_iso(st)
        )

        width = _as_int(exif_exif.get(piexif.ExifIFD.PixelXDimension)) or image_size[0]
        height = _as_int(exif_exif.get(piexif.ExifIFD.PixelYDimension)) or image_size[1]

        return Metadata(
            file_name=os.path.basename(file_path),
            file_size_bytes=st.st_size,
            capture_timestamp=capture_timestamp,
            camera_make=_decode_text(exif_0th.get(piexif.ImageIFD.Make)),
            camera_model=_decode_text(exif_0th.get(piexif.ImageIFD.Model)),
            orientation=_orientation(exif_0th.get(piexif.ImageIFD.Orientation)),
            width=width,
            height=height,
            gps_coordinates=self._get_gps_from_exif(exif.get("GPS")),
        )

    def _get_gps_from_exif(self, gps: Optional[dict]) -> Optional[GpsCoordinates]:
        if not gps:
            return None

        def convert_coord(coord, ref) -> Optional[float]:
            try:
                degrees, minutes, seconds = [x[0] / x[1] for x in coord]
            except (TypeError, ValueError, ZeroDivisionError, IndexError):
                return None
            result = degrees + (minutes / 60.0) + (seconds / 3600.0)

            if isinstance(ref, bytes):
                ref = ref.decode("ascii", errors="ignore")
            if isinstance(ref, str) and ref.strip("\x00 ").upper() in ("S", "W"):
                return -result
            return result

        lat = convert_coord(gps.get(piexif.GPSIFD.GPSLatitude), gps.get(piexif.GPSIFD.GPSLatitudeRef))
        lon = convert_coord(gps.get(piexif.GPSIFD.GPSLongitude), gps.get(piexif.GPSIFD.GPSLongitudeRef))
        if lat is None or lon is None:
            return None

        # (0, 0) usually means the GPS receiver never got a fix
        if lat == 0.0 and lon == 0.0:
            return None
        return GpsCoordinates(latitude=lat, longitude=lon)


def _mtime_iso(st: os.stat_result) -> str:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat()


def _decode_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip("\x00 ").strip()
    return text or None


def _parse_exif_datetime(value: Any) -> Optional[str]:
    text = _decode_text(value)
    if text is None:
        return None
    try:
        return datetime.strptime(text, EXIF_DATETIME_FORMAT).isoformat()
    except ValueError:
        # "0000:00:00 00:00:00", blank-padded and other placeholder values
        return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and value > 0:
        return value
    return None


def _orientation(value: Any) -> int:
    if isinstance(value, int) and 1 <= value <= 8:
        return value
    return 1
