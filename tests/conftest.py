import os
import sys
from pathlib import Path

import piexif
import pytest
from PIL import Image

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from core.config import Settings


def _rational(value: float, denominator: int = 10000):
    return (int(round(value * denominator)), denominator)


def _dms(value: float):
    degrees = int(value)
    minutes_float = (value - degrees) * 60
    minutes = int(minutes_float)
    seconds = (minutes_float - minutes) * 60
    return ((degrees, 1), (minutes, 1), _rational(seconds, 100))


def make_exif_bytes(
    make="Canon",
    model="EOS R5",
    datetime_original="2023:05:14 09:30:00",
    orientation=1,
    lat=None,
    lon=None,
) -> bytes:
    exif = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
    if make:
        exif["0th"][piexif.ImageIFD.Make] = make.encode()
    if model:
        exif["0th"][piexif.ImageIFD.Model] = model.encode()
    exif["0th"][piexif.ImageIFD.Orientation] = orientation
    if datetime_original:
        exif["Exif"][piexif.ExifIFD.DateTimeOriginal] = datetime_original.encode()
    if lat is not None and lon is not None:
        exif["GPS"][piexif.GPSIFD.GPSLatitudeRef] = b"N" if lat >= 0 else b"S"
        exif["GPS"][piexif.GPSIFD.GPSLatitude] = _dms(abs(lat))
        exif["GPS"][piexif.GPSIFD.GPSLongitudeRef] = b"E" if lon >= 0 else b"W"
        exif["GPS"][piexif.GPSIFD.GPSLongitude] = _dms(abs(lon))
    return piexif.dump(exif)


def write_jpeg(path: Path, size=(400, 200), exif: bytes = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, (200, 80, 40))
    if exif:
        img.save(path, "JPEG", quality=90, exif=exif)
    else:
        img.save(path, "JPEG", quality=90)
    return path


def write_png(path: Path, size=(300, 150)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, (10, 120, 200, 180)).save(path, "PNG")
    return path


def write_gif(path: Path, size=(64, 64)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("P", size, 3).save(path, "GIF")
    return path


@pytest.fixture
def image_root(tmp_path):
    """
    root/
      photo.jpg        EXIF: make/model/date/GPS
      plain.png
      icon.gif
      corrupt.jpg      not an image
      notes.txt
      sub/a.jpg, sub/b.png, sub/ignore.txt, sub/c/ (empty)
      nested/deeper/deep.jpeg
    """
    root = tmp_path / "images"
    root.mkdir()
    write_jpeg(root / "photo.jpg", exif=make_exif_bytes(lat=37.5665, lon=-126.978))
    write_png(root / "plain.png")
    write_gif(root / "icon.gif")
    (root / "corrupt.jpg").write_bytes(b"\xff\xd8\xff\xe0 this is not really a jpeg")
    (root / "notes.txt").write_text("not an image")

    write_jpeg(root / "sub" / "a.jpg", size=(120, 80))
    write_png(root / "sub" / "b.png", size=(90, 60))
    (root / "sub" / "ignore.txt").write_text("skip me")
    (root / "sub" / "c").mkdir()

    write_jpeg(root / "nested" / "deeper" / "deep.jpeg", size=(50, 50))
    return root


@pytest.fixture
def settings(image_root):
    return Settings(EXTERNAL_IMAGE_DIR=str(image_root), LOG_LEVEL="DEBUG")
