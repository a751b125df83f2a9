import logging
import os
import stat as stat_module
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from aiofiles.threadpool.binary import AsyncBufferedReader

from gallery.exceptions import ImageNotFoundError, InvalidFileTypeError

logger = logging.getLogger(__name__)


async def stat_regular_file(path: str) -> os.stat_result:
    """Stat ``path`` and require a readable regular file."""
    try:
        st = await aiofiles.os.stat(path)
    except FileNotFoundError as e:
        raise ImageNotFoundError(path) from e
    except (OSError, ValueError) as e:
        logger.error(f"File access error for {path!r}: {e}")
        raise ImageNotFoundError(path) from e

    if not stat_module.S_ISREG(st.st_mode):
        raise InvalidFileTypeError(path)
    if not await aiofiles.os.access(path, os.R_OK):
        raise ImageNotFoundError(path)
    return st


async def read_bytes(path: str) -> bytes:
    async with aiofiles.open(path, "rb") as f:
        return await f.read()


async def iter_file_chunks(
    handle: AsyncBufferedReader,
    chunk_size: int,
    path: Optional[str] = None,
) -> AsyncIterator[bytes]:
    """Yield chunks from an already opened file, closing it on every exit path."""
    try:
        while True:
            chunk = await handle.read(chunk_size)
            if not chunk:
                break
            yield chunk
    except OSError as e:
        # Headers are already committed here; the transport closes the response short.
        logger.error(f"Stream error for {path}: {e}")
        raise
    finally:
        await handle.close()


async def iter_buffer_chunks(data: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    view = memoryview(data)
    for offset in range(0, len(view), chunk_size):
        yield bytes(view[offset:offset + chunk_size])
