from api.endpoints import images, stream
from fastapi import APIRouter

api_router = APIRouter()
api_router.include_router(images.router, prefix="/images", tags=["Image Listing"])

stream_router = APIRouter()
stream_router.include_router(stream.router, prefix="/image", tags=["Image Streaming"])
