from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gallery.models import ImageRecord, Metadata


class GpsCoordinatesResponse(BaseModel):
    latitude: float
    longitude: float


class MetadataResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_name: Optional[str] = None
    file_size_bytes: Optional[int] = None
    capture_timestamp: Optional[str] = None
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    orientation: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    gps_coordinates: Optional[GpsCoordinatesResponse] = None
    extraction_error: Optional[str] = None

    @classmethod
    def from_metadata(cls, metadata: Optional[Metadata]) -> "MetadataResponse":
        # Files without metadata support serialize as an empty object.
        if metadata is None:
            return cls()
        gps = metadata.gps_coordinates
        return cls(
            file_name=metadata.file_name,
            file_size_bytes=metadata.file_size_bytes,
            capture_timestamp=metadata.capture_timestamp,
            camera_make=metadata.camera_make,
            camera_model=metadata.camera_model,
            orientation=metadata.orientation,
            width=metadata.width,
            height=metadata.height,
            gps_coordinates=GpsCoordinatesResponse(latitude=gps.latitude, longitude=gps.longitude) if gps else None,
            extraction_error=metadata.extraction_error,
        )


class ImageEntryResponse(BaseModel):
    path: str
    filename: str
    metadata: MetadataResponse


class ImageListResponse(BaseModel):
    images: List[ImageEntryResponse]

    @classmethod
    def from_records(cls, records: List[ImageRecord]) -> "ImageListResponse":
        return cls(
            images=[
                ImageEntryResponse(
                    path=record.relative_path,
                    filename=record.file_name,
                    metadata=MetadataResponse.from_metadata(record.metadata),
                )
                for record in records
            ]
        )


class ErrorResponse(BaseModel):
    error: str
