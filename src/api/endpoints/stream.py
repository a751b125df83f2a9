import logging
import os
from typing import Optional

import aiofiles
from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from core.config import Settings
from core.dependencies import get_app_settings, get_path_guard, get_transcoder
from gallery.exceptions import GalleryError, StreamFailureError
from gallery.models import TransformOptions
from gallery.services.path_guard import PathGuard
from gallery.services.transcoder import PassThrough, TranscodedImage, Transcoder
from gallery.utils.fileIO import iter_buffer_chunks, iter_file_chunks, stat_regular_file
from gallery.utils.image import media_type_for
from gallery.utils.performance import FALLBACK_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()

FALLBACK_HEADER = "X-Image-Fallback"

# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


@router.get("/{image_path:path}")
async def stream_image(
    request: Request,
    image_path: str,
    w: Optional[str] = Query(None, description="Target width in pixels (never enlarges)"),
    q: Optional[str] = Query(None, description="Quality 1-100 for lossy formats"),
    format: Optional[str] = Query(None, description="auto | webp | original"),
    accept: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
    guard: PathGuard = Depends(get_path_guard),
    transcoder: Transcoder = Depends(get_transcoder),
):
    """
    Serve one image, resized and re-encoded when possible.

    If the transform fails the original bytes are served instead, marked with
    the X-Image-Fallback header.
    """
    try:
        full_path = guard.resolve(image_path)
        await stat_regular_file(full_path)
    except GalleryError as e:
        logger.error(f"Rejected stream request for {image_path!r}: {type(e).__name__}")
        return PlainTextResponse(e.detail, status_code=e.status_code)

    try:
        options = TransformOptions.from_query(
            w, q, format, accept,
            default_width=settings.DEFAULT_TARGET_WIDTH,
            default_quality=settings.DEFAULT_QUALITY,
        )
        if await request.is_disconnected():
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        result = await transcoder.transcode(full_path, options)

        if await request.is_disconnected():
            logger.info(f"Client disconnected before streaming {full_path}")
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        if isinstance(result, TranscodedImage):
            return StreamingResponse(
                iter_buffer_chunks(result.body, settings.STREAM_CHUNK_SIZE),
                media_type=result.media_type,
                headers={
                    "Cache-Control": settings.cache_control,
                    "Content-Length": str(len(result.body)),
                    "Vary": "Accept",
                },
            )

        if isinstance(result, PassThrough):
            try:
                return await stream_original(full_path, settings, media_type=result.media_type)
            except StreamFailureError as e:
                return PlainTextResponse(e.detail, status_code=e.status_code)

        logger.warning(f"Serving original file for {full_path} after transcode failure: {result.reason}")
        try:
            response = await stream_original(full_path, settings, fallback=True)
        except StreamFailureError:
            FALLBACK_TOTAL.labels(result="failed").inc()
            return PlainTextResponse(StreamFailureError.detail, status_code=StreamFailureError.status_code)
        FALLBACK_TOTAL.labels(result="served").inc()
        return response

    except Exception:
        logger.exception(f"Error handling stream request for {full_path}")
        return PlainTextResponse("Internal server error", status_code=500)


async def stream_original(
    path: str,
    settings: Settings,
    media_type: Optional[str] = None,
    fallback: bool = False,
) -> StreamingResponse:
    """Stream the untouched file; the handle is owned by the response iterator."""
    try:
        handle = await aiofiles.open(path, "rb")
    except OSError as e:
        logger.error(f"Failed to open original file {path}: {e}")
        raise StreamFailureError(path) from e

    try:
        size = os.fstat(handle.fileno()).st_size
    except OSError as e:
        await handle.close()
        raise StreamFailureError(path) from e

    headers = {
        "Cache-Control": settings.cache_control,
        "Content-Length": str(size),
        "Vary": "Accept",
    }
    if fallback:
        headers[FALLBACK_HEADER] = "original"

    return StreamingResponse(
        iter_file_chunks(handle, settings.STREAM_CHUNK_SIZE, path),
        media_type=media_type or media_type_for(path),
        headers=headers,
    )
