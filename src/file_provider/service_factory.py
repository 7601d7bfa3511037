"""
Configuration factory for creating file services based on settings.
"""

import logging

from .interfaces import IFileService
from .services.azure_blob_file_service import AzureBlobFileService
from .services.file_system_service import FileSystemService
from .storage_settings import FileSystemSettings, StorageAccountConfig, StorageConfig

logger = logging.getLogger(__name__)


def create_file_system_service(settings: FileSystemSettings) -> FileSystemService:
    logger.info(f"Creating FileSystemService with content root: {settings.content_root_path}")
    return FileSystemService(
        content_root_path=settings.content_root_path,
        use_forward_slashes=settings.use_forward_slashes,
    )


def create_azure_blob_file_service(config: StorageAccountConfig) -> AzureBlobFileService:
    if config.connection_string:
        logger.info("Creating AzureBlobFileService with connection string")
        return AzureBlobFileService(
            connection_string=config.connection_string.get_secret_value(),
            use_lower_case=config.use_lower_case,
        )
    if config.account_name and config.access_key:
        logger.info(f"Creating AzureBlobFileService with access key for account: {config.account_name}")
        return AzureBlobFileService(
            account_name=config.account_name,
            access_key=config.access_key.get_secret_value(),
            endpoint_suffix=config.endpoint_suffix,
            use_lower_case=config.use_lower_case,
        )
    if config.account_name and config.use_managed_identity:
        logger.info(f"Creating AzureBlobFileService with managed identity for account: {config.account_name}")
        return AzureBlobFileService(
            account_name=config.account_name,
            endpoint_suffix=config.endpoint_suffix,
            use_lower_case=config.use_lower_case,
            use_managed_identity=True,
        )
    raise ValueError(
        "Azure storage configuration requires a connection_string, "
        "(account_name + access_key) or (account_name + use_managed_identity=True)"
    )


def create_file_service(storage_config: StorageConfig) -> IFileService:
    """
    Create the appropriate file service based on configuration.

    Args:
        storage_config: Unified storage configuration

    Returns:
        Configured file service instance

    Raises:
        ValueError: If neither the filesystem nor Azure storage is configured
    """
    if storage_config.is_azure_storage():
        return create_azure_blob_file_service(storage_config.to_storage_account_config())

    if storage_config.is_local_storage():
        return create_file_system_service(storage_config.to_file_system_settings())

    raise ValueError(
        "Unsupported storage configuration: neither filesystem nor Azure storage is properly configured"
    )
