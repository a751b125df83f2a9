import logging

import aiofiles.os
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from core.dependencies import get_path_guard, get_scanner
from gallery.exceptions import PathViolationError
from gallery.schemas import ErrorResponse, ImageListResponse
from gallery.services.path_guard import PathGuard
from gallery.services.scanner import DirectoryScanner

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=ImageListResponse,
    response_model_exclude_none=True,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_images(
    folder: str = Query("", description="Subfolder relative to the image root"),
    guard: PathGuard = Depends(get_path_guard),
    scanner: DirectoryScanner = Depends(get_scanner),
):
    """
    List images under the root (or a subfolder of it) recursively, with metadata.
    """
    try:
        target_dir = guard.resolve(folder)
    except PathViolationError:
        return JSONResponse(status_code=403, content={"error": "Invalid path"})

    if not await aiofiles.os.path.isdir(target_dir):
        return JSONResponse(status_code=404, content={"error": "Directory not found"})

    try:
        records = await scanner.scan(target_dir)
    except Exception:
        logger.exception(f"Error reading directory {target_dir}")
        return JSONResponse(status_code=500, content={"error": "Failed to read directory"})

    logger.info(f"Found {len(records)} images in {target_dir}")
    return ImageListResponse.from_records(records)
