# Path helpers shared by the file services.
# All logical paths are forward-slash delimited and relative to a storage root.

import logging
from typing import List

logger = logging.getLogger(__name__)


class FilePathUtility:
    @staticmethod
    def to_forward_slashes(path: str) -> str:
        return path.replace("\\", "/")

    @staticmethod
    def strip_slashes(path: str) -> str:
        """Removes every leading and trailing slash (either direction)."""
        return path.strip("/\\")

    @staticmethod
    def split_segments(path: str) -> List[str]:
        """
        Splits a logical path into its non-empty, whitespace-trimmed segments.
        Backslashes are treated as separators too.
        """
        if path is None:
            return []
        segments = FilePathUtility.to_forward_slashes(path).split("/")
        return [s.strip() for s in segments if s.strip()]

    @staticmethod
    def merge(*parts: str) -> str:
        """
        Joins path parts with single forward slashes.
        merge("container/a/", "/b.txt") -> "container/a/b.txt"
        """
        segments = []
        for part in parts:
            segments.extend(FilePathUtility.split_segments(part))
        return "/".join(segments)

    @staticmethod
    def get_file_name(path: str) -> str:
        segments = FilePathUtility.split_segments(path)
        return segments[-1] if segments else ""

    @staticmethod
    def get_file_extension(file_name: str) -> str:
        """
        Returns the lower-cased extension including the dot ('.txt'),
        or an empty string when the name has none or ends with a dot.
        """
        if not file_name:
            return ""
        last_dot = file_name.rfind(".")
        if last_dot < 0 or last_dot == len(file_name) - 1:
            return ""
        return file_name[last_dot:].lower()

    @staticmethod
    def make_blob_name_safe(path: str, make_lower: bool = False) -> str:
        """Normalises a logical path into a blob name: forward slashes, no empty segments."""
        safe = FilePathUtility.merge(path)
        if make_lower:
            safe = safe.lower()
        logger.debug(f"Blob-safe name for '{path}': '{safe}'")
        return safe
