import logging
import sys
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .storage_settings import StorageConfig

# Basic logging configuration, level refined by get_settings()
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ],
)

logger = logging.getLogger(__name__)


def _create_storage_config() -> StorageConfig:
    """Create the storage config from available environment variables."""
    logger.info("Default factory for storage invoked.")
    try:
        return StorageConfig()
    except Exception as e:
        logger.error(f"Failed to create storage config: {e}")
        raise


class Settings(BaseSettings):
    # Top-level settings object to hold nested configs
    storage: StorageConfig = Field(default_factory=_create_storage_config)
    log_level: str = Field(default="INFO", validation_alias="FILE_PROVIDER_LOG_LEVEL")

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings(env_file: Optional[str] = ".env") -> Settings:
    logger.info(f"Attempting to load Settings with env_file: {env_file}")
    try:
        storage_config = StorageConfig(_env_file=env_file)
        settings = Settings(storage=storage_config, _env_file=env_file)
        logging.getLogger().setLevel(settings.log_level.upper())
        logger.info(
            f"Successfully loaded Settings (azure={storage_config.is_azure_storage()}, "
            f"local={storage_config.is_local_storage()})."
        )
        return settings
    except Exception as e:
        logger.error(f"Error loading Settings with env_file {env_file}: {e}", exc_info=True)
        raise


def get_file_service(env_file: Optional[str] = ".env"):
    """
    Create and return the file service configured by the current settings.

    Returns:
        Configured IFileService instance
    """
    from .service_factory import create_file_service

    settings = get_settings(env_file)
    return create_file_service(settings.storage)
