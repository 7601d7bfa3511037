import logging
from typing import Any, Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# Define settings for the local filesystem
class FileSystemSettings(BaseSettings):
    # Allow ignoring extra fields from environment
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    content_root_path: str = Field(validation_alias="STORAGE_CONTENT_ROOT_PATH")
    use_forward_slashes: bool = Field(default=True, validation_alias="STORAGE_USE_FORWARD_SLASHES")

    @model_validator(mode="before")
    @classmethod
    def resolve_content_root_path(cls, data: Any) -> Any:
        if isinstance(data, dict):
            # Check for both the field name and the environment variable name
            path = data.get("content_root_path") or data.get("STORAGE_CONTENT_ROOT_PATH")
            if not path:
                raise ValueError("content_root_path is required for filesystem storage")
            data.pop("STORAGE_CONTENT_ROOT_PATH", None)
            data["content_root_path"] = path
            # Directory creation is left to the service
        return data


# Define settings for an Azure storage account
class StorageAccountConfig(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    account_name: Optional[str] = Field(default=None, validation_alias="STORAGE_AZURE_ACCOUNT_NAME")
    access_key: Optional[SecretStr] = Field(default=None, validation_alias="STORAGE_AZURE_ACCESS_KEY")
    endpoint_suffix: str = Field(
        default="core.windows.net", validation_alias="STORAGE_AZURE_ENDPOINT_SUFFIX"
    )
    use_lower_case: bool = Field(default=False, validation_alias="STORAGE_AZURE_USE_LOWER_CASE")
    connection_string: Optional[SecretStr] = Field(
        default=None, validation_alias="STORAGE_AZURE_CONNECTION_STRING"
    )
    use_managed_identity: bool = Field(
        default=False, validation_alias="STORAGE_AZURE_USE_MANAGED_IDENTITY"
    )

    def model_post_init(self, __context) -> None:
        """Validate that at least one authentication option is complete."""
        if not self.connection_string and not (
            self.account_name and (self.access_key or self.use_managed_identity)
        ):
            raise ValueError(
                "Either STORAGE_AZURE_CONNECTION_STRING, "
                "(STORAGE_AZURE_ACCOUNT_NAME + STORAGE_AZURE_ACCESS_KEY) or "
                "(STORAGE_AZURE_ACCOUNT_NAME + STORAGE_AZURE_USE_MANAGED_IDENTITY=true) must be provided."
            )


class StorageConfig(BaseSettings):
    """
    Unified storage configuration that supports both filesystem and Azure storage
    based on available environment variables. Azure wins when both are configured.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # Filesystem fields
    content_root_path: Optional[str] = Field(default=None, validation_alias="STORAGE_CONTENT_ROOT_PATH")
    use_forward_slashes: bool = Field(default=True, validation_alias="STORAGE_USE_FORWARD_SLASHES")

    # Azure fields
    account_name: Optional[str] = Field(default=None, validation_alias="STORAGE_AZURE_ACCOUNT_NAME")
    access_key: Optional[SecretStr] = Field(default=None, validation_alias="STORAGE_AZURE_ACCESS_KEY")
    endpoint_suffix: str = Field(
        default="core.windows.net", validation_alias="STORAGE_AZURE_ENDPOINT_SUFFIX"
    )
    use_lower_case: bool = Field(default=False, validation_alias="STORAGE_AZURE_USE_LOWER_CASE")
    connection_string: Optional[SecretStr] = Field(
        default=None, validation_alias="STORAGE_AZURE_CONNECTION_STRING"
    )
    use_managed_identity: bool = Field(
        default=False, validation_alias="STORAGE_AZURE_USE_MANAGED_IDENTITY"
    )

    def is_azure_storage(self) -> bool:
        """Check if this configuration is for Azure storage."""
        return bool(
            self.connection_string
            or (self.account_name and (self.access_key or self.use_managed_identity))
        )

    def is_local_storage(self) -> bool:
        """Check if this configuration is for the local filesystem."""
        return bool(self.content_root_path and not self.is_azure_storage())

    def to_file_system_settings(self) -> FileSystemSettings:
        return FileSystemSettings(
            content_root_path=self.content_root_path,
            use_forward_slashes=self.use_forward_slashes,
        )

    def to_storage_account_config(self) -> StorageAccountConfig:
        return StorageAccountConfig(
            account_name=self.account_name,
            access_key=self.access_key,
            endpoint_suffix=self.endpoint_suffix,
            use_lower_case=self.use_lower_case,
            connection_string=self.connection_string,
            use_managed_identity=self.use_managed_identity,
        )
