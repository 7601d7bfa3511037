import inspect
import logging
from typing import AsyncIterator

logger = logging.getLogger(__name__)


def validate_buffer_size(buffer_size: int) -> int:
    if buffer_size <= 0:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")
    return buffer_size


async def read_chunk(stream, size: int) -> bytes:
    """Reads up to size bytes from a sync (io.BytesIO, open file) or async (aiofiles) stream."""
    data = stream.read(size)
    if inspect.isawaitable(data):
        data = await data
    return data


async def iter_chunks(stream, buffer_size: int) -> AsyncIterator[bytes]:
    """Yields successive chunks of at most buffer_size bytes until the stream is exhausted."""
    validate_buffer_size(buffer_size)
    while True:
        chunk = await read_chunk(stream, buffer_size)
        if not chunk:
            break
        yield bytes(chunk)
