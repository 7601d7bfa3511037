import asyncio
import io
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Union

import aiofiles
import aiofiles.os

from ..exceptions import DataNotFoundError, InvalidPathError
from ..interfaces import IFileService, DEFAULT_STREAM_BUFFER_SIZE
from ..models import FileMetadata
from ..path_utility import FilePathUtility
from ..streams import iter_chunks, validate_buffer_size

logger = logging.getLogger(__name__)


class FileSystemService(IFileService):
    """Implements IFileService on the local filesystem, rooted under a content root."""

    IDENTIFIER = "FileSystemService"

    def __init__(self, content_root_path: str, use_forward_slashes: bool = True):
        if not content_root_path:
            raise ValueError("content_root_path is required for the filesystem service.")
        self.content_root = Path(content_root_path).resolve()
        self.use_forward_slashes = use_forward_slashes
        os.makedirs(self.content_root, exist_ok=True)
        logger.info(f"Initialized FileSystemService with content root: {self.content_root}")

    @property
    def implementation_identifier(self) -> str:
        return self.IDENTIFIER

    def _get_file_path(self, absolute_path: str) -> Path:
        """Resolves a logical path to a filesystem path, ensuring it stays within the content root."""
        segments = FilePathUtility.split_segments(absolute_path)
        full_path = self.content_root.joinpath(*segments).resolve()
        if full_path != self.content_root and self.content_root not in full_path.parents:
            raise InvalidPathError(
                "absolute_path", f"Path '{absolute_path}' resolves outside the content root."
            )
        return full_path

    async def _get_file_path_validate_exists(self, absolute_file_path: str) -> Path:
        full_path = self._get_file_path(absolute_file_path)
        if not await aiofiles.os.path.isfile(full_path):
            logger.warning(f"File not found: {full_path}")
            raise DataNotFoundError(absolute_file_path)
        return full_path

    def _render(self, path: Path) -> str:
        return path.as_posix() if self.use_forward_slashes else str(path)

    def _get_absolute_path(self, full_path: Path) -> str:
        """Returns the forward-slash path relative to the content root."""
        try:
            relative = full_path.relative_to(self.content_root).as_posix()
        except ValueError:
            logger.warning(
                f"The full path '{full_path}' does not start with the content root path '{self.content_root}'"
            )
            return self._render(full_path)
        # The content root itself
        if relative == ".":
            return ""
        return FilePathUtility.strip_slashes(relative)

    async def _build_metadata(self, full_path: Path) -> FileMetadata:
        stat = await aiofiles.os.stat(full_path)
        return FileMetadata(
            file_name=full_path.name,
            extension=FilePathUtility.get_file_extension(full_path.name),
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, timezone.utc),
            absolute_file_path=self._get_absolute_path(full_path),
            absolute_directory_path=self._get_absolute_path(full_path.parent),
            full_path=self._render(full_path),
            full_directory_path=self._render(full_path.parent),
        )

    async def _list_entries(self, absolute_directory_path: str, want_directories: bool) -> List[Path]:
        search_path = self._get_file_path(absolute_directory_path)
        if not await aiofiles.os.path.isdir(search_path):
            logger.debug(f"Directory not found for listing: {search_path}")
            return []
        entries = []
        for entry_name in await aiofiles.os.listdir(search_path):
            entry_path = search_path / entry_name
            if want_directories:
                matches = await aiofiles.os.path.isdir(entry_path)
            else:
                matches = await aiofiles.os.path.isfile(entry_path)
            if matches:
                entries.append(entry_path)
        entries.sort(key=lambda p: p.name.lower())
        logger.debug(
            f"Listed {len(entries)} {'directories' if want_directories else 'files'} in {search_path}"
        )
        return entries

    async def exists(self, absolute_file_path: str) -> bool:
        full_path = self._get_file_path(absolute_file_path)
        exists = await aiofiles.os.path.isfile(full_path)
        logger.debug(f"Checked existence for {full_path}: {exists}")
        return exists

    async def read_all_bytes(self, absolute_file_path: str) -> bytes:
        full_path = await self._get_file_path_validate_exists(absolute_file_path)
        try:
            async with aiofiles.open(full_path, mode="rb") as f:
                data = await f.read()
            logger.debug(f"Loaded {len(data)} bytes from {full_path}")
            return data
        except FileNotFoundError:
            logger.warning(f"File disappeared while reading: {full_path}")
            raise DataNotFoundError(absolute_file_path)

    async def read_all_text(self, absolute_file_path: str) -> str:
        data = await self.read_all_bytes(absolute_file_path)
        return data.decode("utf-8")

    async def get_stream(self, absolute_file_path: str) -> io.BytesIO:
        return io.BytesIO(await self.read_all_bytes(absolute_file_path))

    async def write_all_bytes(self, absolute_file_path: str, data: Union[bytes, bytearray]):
        full_path = self._get_file_path(absolute_file_path)
        try:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
            async with aiofiles.open(full_path, mode="wb") as f:
                await f.write(bytes(data))
            logger.debug(f"Saved {len(data)} bytes to {full_path}")
        except Exception as e:
            logger.error(f"Error saving bytes to {full_path}: {e}")
            raise

    async def write_all_text(self, absolute_file_path: str, content: str):
        await self.write_all_bytes(absolute_file_path, content.encode("utf-8"))

    async def write_stream(
        self,
        absolute_file_path: str,
        stream,
        buffer_size: int = DEFAULT_STREAM_BUFFER_SIZE,
    ):
        validate_buffer_size(buffer_size)
        full_path = self._get_file_path(absolute_file_path)
        total = 0
        try:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
            async with aiofiles.open(full_path, mode="wb") as f:
                async for chunk in iter_chunks(stream, buffer_size):
                    await f.write(chunk)
                    total += len(chunk)
            logger.debug(f"Streamed {total} bytes to {full_path} (buffer size {buffer_size})")
        except Exception as e:
            logger.error(f"Error streaming to {full_path}: {e}")
            raise

    async def delete(self, absolute_file_path: str):
        full_path = await self._get_file_path_validate_exists(absolute_file_path)
        await aiofiles.os.remove(full_path)
        logger.info(f"Deleted file: {full_path}")

    async def delete_directory_and_contents(self, absolute_directory_path: str):
        # The content root itself is never deleted
        if not FilePathUtility.split_segments(absolute_directory_path):
            raise InvalidPathError(
                "absolute_path", f"absolute_path '{absolute_directory_path}' is not valid."
            )
        full_path = self._get_file_path(absolute_directory_path)
        if not await aiofiles.os.path.isdir(full_path):
            logger.debug(f"Directory to delete does not exist: {full_path}")
            return
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, shutil.rmtree, full_path)
            logger.info(f"Deleted directory: {full_path}")
        except Exception as e:
            logger.error(f"Error deleting directory {full_path}: {e}")
            raise

    async def list_files(self, absolute_directory_path: str) -> List[str]:
        return [p.name for p in await self._list_entries(absolute_directory_path, want_directories=False)]

    async def list_sub_directories(self, absolute_directory_path: str) -> List[str]:
        return [p.name for p in await self._list_entries(absolute_directory_path, want_directories=True)]

    async def list_files_with_metadata(self, absolute_directory_path: str) -> List[FileMetadata]:
        files = []
        for full_path in await self._list_entries(absolute_directory_path, want_directories=False):
            files.append(await self._build_metadata(full_path))
        return files

    async def get_file_metadata(self, absolute_file_path: str) -> FileMetadata:
        full_path = await self._get_file_path_validate_exists(absolute_file_path)
        return await self._build_metadata(full_path)
