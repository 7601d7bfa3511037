import abc
from typing import BinaryIO, List, Union

from .models import FileMetadata

DEFAULT_STREAM_BUFFER_SIZE = 4 * 1024 * 1024  # 4 MB


class IFileService(abc.ABC):
    """
    Uniform contract for file storage, independent of the physical medium.
    Paths are forward-slash delimited and relative to the storage root
    (content root for the filesystem, storage account for blob storage).
    Reads, deletes and metadata lookups on a missing file raise DataNotFoundError;
    writes create any missing parent directories (or containers) implicitly.
    """

    @property
    @abc.abstractmethod
    def implementation_identifier(self) -> str:
        """Name identifying the backend behind this service."""
        pass

    @abc.abstractmethod
    async def exists(self, absolute_file_path: str) -> bool:
        """Checks if a file exists at the path. Directories do not count."""
        pass

    @abc.abstractmethod
    async def read_all_bytes(self, absolute_file_path: str) -> bytes:
        """Returns the full contents of the file."""
        pass

    @abc.abstractmethod
    async def read_all_text(self, absolute_file_path: str) -> str:
        """Returns the contents of the file decoded as UTF-8."""
        pass

    @abc.abstractmethod
    async def get_stream(self, absolute_file_path: str) -> BinaryIO:
        """Returns a readable in-memory stream over the file, positioned at the start."""
        pass

    @abc.abstractmethod
    async def write_all_bytes(self, absolute_file_path: str, data: Union[bytes, bytearray]):
        """Writes bytes to the path, replacing any existing file."""
        pass

    @abc.abstractmethod
    async def write_all_text(self, absolute_file_path: str, content: str):
        """Writes text to the path encoded as UTF-8, replacing any existing file."""
        pass

    @abc.abstractmethod
    async def write_stream(
        self,
        absolute_file_path: str,
        stream,
        buffer_size: int = DEFAULT_STREAM_BUFFER_SIZE,
    ):
        """
        Copies a readable stream to the path in chunks of buffer_size bytes.
        The stream may expose a regular read(n) or a coroutine read(n).
        """
        pass

    @abc.abstractmethod
    async def delete(self, absolute_file_path: str):
        """Deletes the file at the path."""
        pass

    @abc.abstractmethod
    async def delete_directory_and_contents(self, absolute_directory_path: str):
        """Deletes the directory and everything below it. A missing directory is ignored."""
        pass

    @abc.abstractmethod
    async def list_files(self, absolute_directory_path: str) -> List[str]:
        """Lists the names of the files directly inside the directory."""
        pass

    @abc.abstractmethod
    async def list_sub_directories(self, absolute_directory_path: str) -> List[str]:
        """Lists the names of the directories directly inside the directory."""
        pass

    @abc.abstractmethod
    async def list_files_with_metadata(self, absolute_directory_path: str) -> List[FileMetadata]:
        """Lists metadata for the files directly inside the directory."""
        pass

    @abc.abstractmethod
    async def get_file_metadata(self, absolute_file_path: str) -> FileMetadata:
        """Returns metadata for a single file."""
        pass

    async def close(self):
        """Releases any client resources held by the service."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
