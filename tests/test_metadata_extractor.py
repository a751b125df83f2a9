import os
from datetime import datetime, timezone

import pytest

from gallery.exceptions import FileVanishedError
from gallery.services.metadata_extractor import MetadataExtractor
from conftest import make_exif_bytes, write_jpeg


@pytest.fixture
def extractor():
    return MetadataExtractor()


def _mtime_iso(path) -> str:
    return datetime.fromtimestamp(os.stat(path).st_mtime, tz=timezone.utc).isoformat()


@pytest.mark.asyncio
async def test_extracts_exif_fields(extractor, image_root):
    path = image_root / "photo.jpg"
    meta = await extractor.extract(str(path))

    assert meta.file_name == "photo.jpg"
    assert meta.file_size_bytes == path.stat().st_size
    assert meta.capture_timestamp == "2023-05-14T09:30:00"
    assert meta.camera_make == "Canon"
    assert meta.camera_model == "EOS R5"
    assert meta.orientation == 1
    assert (meta.width, meta.height) == (400, 200)
    assert meta.gps_coordinates is not None
    assert meta.gps_coordinates.latitude == pytest.approx(37.5665, abs=1e-3)
    assert meta.gps_coordinates.longitude == pytest.approx(-126.978, abs=1e-3)
    assert meta.extraction_error is None


@pytest.mark.asyncio
async def test_timestamp_falls_back_to_datetime_tag(extractor, tmp_path):
    import piexif

    exif = piexif.dump({"0th": {piexif.ImageIFD.DateTime: b"2020:01:02 03:04:05"}, "Exif": {}, "GPS": {}})
    path = write_jpeg(tmp_path / "dt.jpg", exif=exif)

    meta = await extractor.extract(str(path))
    assert meta.capture_timestamp == "2020-01-02T03:04:05"


@pytest.mark.asyncio
async def test_timestamp_falls_back_to_mtime_without_tags(extractor, image_root):
    path = image_root / "plain.png"
    meta = await extractor.extract(str(path))

    assert meta.capture_timestamp == _mtime_iso(path)
    assert meta.camera_make is None
    assert meta.camera_model is None
    assert meta.orientation == 1
    assert (meta.width, meta.height) == (300, 150)
    assert meta.gps_coordinates is None
    assert meta.extraction_error is None


@pytest.mark.asyncio
async def test_zero_gps_fix_is_ignored(extractor, tmp_path):
    path = write_jpeg(tmp_path / "nofix.jpg", exif=make_exif_bytes(lat=0.0, lon=0.0))
    meta = await extractor.extract(str(path))
    assert meta.gps_coordinates is None


@pytest.mark.asyncio
async def test_orientation_is_read(extractor, tmp_path):
    path = write_jpeg(tmp_path / "rotated.jpg", exif=make_exif_bytes(orientation=6))
    meta = await extractor.extract(str(path))
    assert meta.orientation == 6


@pytest.mark.asyncio
async def test_corrupt_file_degrades_to_filesystem_facts(extractor, image_root):
    path = image_root / "corrupt.jpg"
    meta = await extractor.extract(str(path))

    assert meta.file_name == "corrupt.jpg"
    assert meta.file_size_bytes == path.stat().st_size
    assert meta.capture_timestamp == _mtime_iso(path)
    assert meta.extraction_error
    assert meta.width is None and meta.height is None


@pytest.mark.asyncio
async def test_unsupported_extension_returns_none(extractor, image_root):
    assert await extractor.extract(str(image_root / "icon.gif")) is None


@pytest.mark.asyncio
async def test_directory_with_image_extension_degrades(extractor, tmp_path):
    folder = tmp_path / "album.jpg"
    folder.mkdir()
    meta = await extractor.extract(str(folder))
    assert meta.extraction_error
    assert meta.file_name == "album.jpg"


@pytest.mark.asyncio
async def test_vanished_file_is_fatal_for_that_file(extractor, tmp_path):
    with pytest.raises(FileVanishedError):
        await extractor.extract(str(tmp_path / "gone.jpg"))


@pytest.mark.asyncio
async def test_placeholder_date_original_falls_through_to_datetime(extractor, tmp_path):
    import piexif

    exif = piexif.dump({
        "0th": {piexif.ImageIFD.DateTime: b"2021:07:08 10:11:12"},
        "Exif": {piexif.ExifIFD.DateTimeOriginal: b"0000:00:00 00:00:00"},
        "GPS": {},
    })
    path = write_jpeg(tmp_path / "zeroed.jpg", exif=exif)

    meta = await extractor.extract(str(path))
    assert meta.capture_timestamp == "2021-07-08T10:11:12"


@pytest.mark.asyncio
async def test_blank_dates_fall_through_to_mtime(extractor, tmp_path):
    import piexif

    exif = piexif.dump({
        "0th": {piexif.ImageIFD.DateTime: b"    :  :     :  :  "},
        "Exif": {piexif.ExifIFD.DateTimeOriginal: b"0000:00:00 00:00:00"},
        "GPS": {},
    })
    path = write_jpeg(tmp_path / "blank.jpg", exif=exif)

    meta = await extractor.extract(str(path))
    assert meta.capture_timestamp == _mtime_iso(path)
