from .file_system_service import FileSystemService
from .azure_blob_file_service import AzureBlobFileService

__all__ = ["FileSystemService", "AzureBlobFileService"]
