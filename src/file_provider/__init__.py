from .exceptions import DataNotFoundError, InvalidPathError
from .interfaces import IFileService
from .models import FileMetadata

__all__ = [
    "DataNotFoundError",
    "InvalidPathError",
    "IFileService",
    "FileMetadata",
]
