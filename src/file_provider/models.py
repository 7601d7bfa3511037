from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator


class FileMetadata(BaseModel):
    """
    Describes a stored file independently of the backend holding it.

    Attributes:
        file_name: Name of the file, including its extension.
        extension: Lower-cased extension with a leading dot, or "" when there is none.
        size: Size of the file in bytes.
        last_modified: Time of the last write, always timezone-aware UTC.
        absolute_file_path: Forward-slash path of the file relative to the storage root.
        absolute_directory_path: Forward-slash path of the containing directory.
        full_path: Backend-native location of the file (filesystem path or blob URL).
        full_directory_path: Backend-native location of the containing directory.
        metadata: Free-form key/value pairs (content type and hash on blob storage).
    """

    file_name: str
    extension: str = ""
    size: int = 0
    last_modified: datetime
    absolute_file_path: str
    absolute_directory_path: str = ""
    full_path: Optional[str] = None
    full_directory_path: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("last_modified")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
