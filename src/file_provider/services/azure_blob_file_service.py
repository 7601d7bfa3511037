import base64
import io
import logging
import mimetypes
from typing import Dict, List, NamedTuple, Optional, Set, Tuple, Union

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import BlobBlock, ContentSettings
from azure.storage.blob.aio import BlobClient, BlobServiceClient, ContainerClient

from ..exceptions import DataNotFoundError, InvalidPathError
from ..interfaces import IFileService, DEFAULT_STREAM_BUFFER_SIZE
from ..models import FileMetadata
from ..path_utility import FilePathUtility
from ..streams import iter_chunks, validate_buffer_size

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"
DELIMITER = "/"


class BlobPath(NamedTuple):
    container_name: str
    path: str
    original_path: str
    original_file_name: str

    @property
    def prefix(self) -> str:
        """The listing prefix for this path treated as a directory ("" for a container root)."""
        return f"{self.path}{DELIMITER}" if self.path else ""


class AzureBlobFileService(IFileService):
    """
    Implements IFileService on Azure Blob Storage.

    The first path segment names the container, the rest is the blob name.
    Directories are virtual: they are emulated with prefix + delimiter listings.
    """

    IDENTIFIER = "AzureBlobFileService"

    def __init__(
        self,
        account_name: Optional[str] = None,
        access_key: Optional[str] = None,
        endpoint_suffix: Optional[str] = None,
        use_lower_case: bool = False,
        connection_string: Optional[str] = None,
        use_managed_identity: bool = False,
    ):
        """
        Initialize the blob file service with one of three authentication options.

        Args:
            account_name: Storage account name
            access_key: Storage account key, combined with account_name into a connection string
            endpoint_suffix: Endpoint suffix, defaults to core.windows.net
            use_lower_case: Lower-case blob names on every call
            connection_string: Complete connection string (takes precedence, e.g. Azurite)
            use_managed_identity: Authenticate account_name with DefaultAzureCredential
        """
        self.endpoint_suffix = endpoint_suffix.strip() if endpoint_suffix and endpoint_suffix.strip() else DEFAULT_ENDPOINT_SUFFIX
        self.use_lower_case = use_lower_case

        if connection_string:
            self.auth_mode = "connection_string"
            self.connection_string = connection_string
            parts = self._parse_connection_string(connection_string)
            self.account_name = parts.get("accountname") or account_name
            self.account_url = (parts.get("blobendpoint") or "").rstrip("/") or None
        elif account_name and access_key:
            self.auth_mode = "connection_string"
            self.account_name = account_name
            self.connection_string = (
                f"DefaultEndpointsProtocol=https;AccountName={account_name};"
                f"AccountKey={access_key};EndpointSuffix={self.endpoint_suffix}"
            )
            self.account_url = None
        elif account_name and use_managed_identity:
            self.auth_mode = "managed_identity"
            self.account_name = account_name
            self.connection_string = None
            self.account_url = None
        else:
            raise ValueError(
                "Either connection_string, (account_name + access_key) or "
                "(account_name + use_managed_identity=True) must be provided."
            )

        if not self.account_url:
            if not self.account_name:
                raise ValueError("Could not determine the storage account name.")
            self.account_url = f"https://{self.account_name}.blob.{self.endpoint_suffix}"

        self._service_client: Optional[BlobServiceClient] = None
        self._credential = None
        self._known_containers: Set[str] = set()
        logger.info(
            f"Initialized AzureBlobFileService for {self.account_url} using {self.auth_mode} authentication"
        )

    @property
    def implementation_identifier(self) -> str:
        return self.IDENTIFIER

    @staticmethod
    def _parse_connection_string(connection_string: str) -> Dict[str, str]:
        return {
            p.split("=", 1)[0].strip().lower(): p.split("=", 1)[1].strip()
            for p in connection_string.split(";")
            if "=" in p
        }

    def _get_service_client(self) -> BlobServiceClient:
        if self._service_client is None:
            if self.auth_mode == "managed_identity":
                self._credential = DefaultAzureCredential()
                self._service_client = BlobServiceClient(
                    account_url=self.account_url, credential=self._credential
                )
                logger.info(f"Using managed identity for Azure authentication: {self.account_url}")
            else:
                self._service_client = BlobServiceClient.from_connection_string(
                    self.connection_string
                )
                logger.info("Using connection string for Azure authentication")
        return self._service_client

    async def _get_container_client(self, container_name: str) -> ContainerClient:
        """Returns the ContainerClient, creating the container the first time it is touched."""
        container_client = self._get_service_client().get_container_client(container_name)
        if container_name not in self._known_containers:
            try:
                await container_client.create_container()
                logger.info(f"Created Azure container: {container_name}")
            except ResourceExistsError:
                logger.debug(f"Azure container already exists: {container_name}")
            self._known_containers.add(container_name)
        return container_client

    def _get_blob_path(self, absolute_path: str, root_path_is_ok: bool = False) -> BlobPath:
        """Splits a logical path into container name and blob name."""
        original_file_name = FilePathUtility.get_file_name(absolute_path or "")
        blob_file_path = FilePathUtility.make_blob_name_safe(absolute_path or "", make_lower=self.use_lower_case)
        segments = FilePathUtility.split_segments(blob_file_path)

        if len(segments) == 1 and root_path_is_ok:
            return BlobPath(segments[0].lower(), "", absolute_path, original_file_name)
        if len(segments) < 2:
            raise InvalidPathError("absolute_path", f"absolute_path '{absolute_path}' is not valid.")
        return BlobPath(
            segments[0].lower(),
            DELIMITER.join(segments[1:]),
            absolute_path,
            original_file_name,
        )

    async def _get_blob_client(self, absolute_path: str) -> Tuple[BlobClient, BlobPath]:
        blob_path = self._get_blob_path(absolute_path)
        container_client = await self._get_container_client(blob_path.container_name)
        return container_client.get_blob_client(blob_path.path), blob_path

    def _get_upload_options(self, blob_path: BlobPath) -> dict:
        content_type = mimetypes.guess_type(blob_path.original_file_name)[0] or "application/octet-stream"
        return {
            "metadata": {
                "absoluteFilePath": blob_path.original_path,
                "originalFileNameCase": blob_path.original_file_name,
            },
            "content_settings": ContentSettings(content_type=content_type),
        }

    def _build_metadata(self, container_name: str, properties) -> FileMetadata:
        blob_name = properties.name
        directory = blob_name.rsplit(DELIMITER, 1)[0] if DELIMITER in blob_name else ""
        metadata = dict(properties.metadata or {})
        content_settings = getattr(properties, "content_settings", None)
        if content_settings is not None:
            if content_settings.content_type:
                metadata["content_type"] = content_settings.content_type
            if content_settings.content_md5:
                metadata["content_md5"] = base64.b64encode(bytes(content_settings.content_md5)).decode("ascii")

        file_name = FilePathUtility.get_file_name(blob_name)
        return FileMetadata(
            file_name=file_name,
            extension=FilePathUtility.get_file_extension(file_name),
            size=properties.size or 0,
            last_modified=properties.last_modified,
            absolute_file_path=FilePathUtility.merge(container_name, blob_name),
            absolute_directory_path=FilePathUtility.merge(container_name, directory),
            full_path=f"{self.account_url}/{FilePathUtility.merge(container_name, blob_name)}",
            full_directory_path=f"{self.account_url}/{FilePathUtility.merge(container_name, directory)}",
            metadata=metadata,
        )

    async def _walk(self, absolute_directory_path: str, include_metadata: bool = False):
        """Yields (is_directory, name relative to the directory, item) for the immediate children."""
        blob_path = self._get_blob_path(absolute_directory_path, root_path_is_ok=True)
        container_client = await self._get_container_client(blob_path.container_name)
        prefix = blob_path.prefix
        kwargs = {"name_starts_with": prefix or None, "delimiter": DELIMITER}
        if include_metadata:
            kwargs["include"] = ["metadata"]
        async for item in container_client.walk_blobs(**kwargs):
            # BlobPrefix names carry the trailing delimiter
            is_directory = item.name.endswith(DELIMITER)
            relative_name = FilePathUtility.strip_slashes(item.name[len(prefix):])
            if relative_name:
                yield is_directory, relative_name, item

    async def exists(self, absolute_file_path: str) -> bool:
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        try:
            exists = await blob_client.exists()
            logger.debug(f"Checked existence for blob {blob_path.container_name}/{blob_path.path}: {exists}")
            return exists
        except Exception as e:
            logger.error(f"Error checking existence for blob {blob_path.container_name}/{blob_path.path}: {e}")
            raise

    async def read_all_bytes(self, absolute_file_path: str) -> bytes:
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        try:
            downloader = await blob_client.download_blob()
            data = await downloader.readall()
            logger.debug(f"Loaded {len(data)} bytes from Azure blob: {blob_path.container_name}/{blob_path.path}")
            return data
        except ResourceNotFoundError:
            logger.warning(f"Azure blob not found: {blob_path.container_name}/{blob_path.path}")
            raise DataNotFoundError(absolute_file_path)
        except Exception as e:
            logger.error(f"Error loading bytes from Azure blob {blob_path.container_name}/{blob_path.path}: {e}")
            raise

    async def read_all_text(self, absolute_file_path: str) -> str:
        data = await self.read_all_bytes(absolute_file_path)
        return data.decode("utf-8")

    async def get_stream(self, absolute_file_path: str) -> io.BytesIO:
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        stream = io.BytesIO()
        try:
            downloader = await blob_client.download_blob()
            await downloader.readinto(stream)
        except ResourceNotFoundError:
            logger.warning(f"Azure blob not found: {blob_path.container_name}/{blob_path.path}")
            raise DataNotFoundError(absolute_file_path)
        stream.seek(0)
        return stream

    async def write_all_bytes(self, absolute_file_path: str, data: Union[bytes, bytearray]):
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        try:
            await blob_client.upload_blob(bytes(data), overwrite=True, **self._get_upload_options(blob_path))
            logger.debug(f"Saved {len(data)} bytes to Azure blob: {blob_path.container_name}/{blob_path.path}")
        except Exception as e:
            logger.error(f"Error saving bytes to Azure blob {blob_path.container_name}/{blob_path.path}: {e}")
            raise

    async def write_all_text(self, absolute_file_path: str, content: str):
        await self.write_all_bytes(absolute_file_path, content.encode("utf-8"))

    async def write_stream(
        self,
        absolute_file_path: str,
        stream,
        buffer_size: int = DEFAULT_STREAM_BUFFER_SIZE,
    ):
        """Stages one block per buffer_size chunk, then commits the block list as the new blob."""
        validate_buffer_size(buffer_size)
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        block_ids: List[str] = []
        total = 0
        try:
            async for chunk in iter_chunks(stream, buffer_size):
                # Block ids must all have the same length
                block_id = f"block-{len(block_ids):08d}"
                await blob_client.stage_block(block_id=block_id, data=chunk, length=len(chunk))
                block_ids.append(block_id)
                total += len(chunk)

            if not block_ids:
                await blob_client.upload_blob(b"", overwrite=True, **self._get_upload_options(blob_path))
            else:
                await blob_client.commit_block_list(
                    [BlobBlock(block_id=block_id) for block_id in block_ids],
                    **self._get_upload_options(blob_path),
                )
            logger.debug(
                f"Streamed {total} bytes in {len(block_ids)} blocks to Azure blob: "
                f"{blob_path.container_name}/{blob_path.path}"
            )
        except Exception as e:
            logger.error(f"Error streaming to Azure blob {blob_path.container_name}/{blob_path.path}: {e}")
            raise

    async def delete(self, absolute_file_path: str):
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        try:
            await blob_client.delete_blob(delete_snapshots="include")
            logger.info(f"Deleted blob: {blob_path.container_name}/{blob_path.path}")
        except ResourceNotFoundError:
            logger.warning(f"Attempted to delete non-existent blob: {blob_path.container_name}/{blob_path.path}")
            raise DataNotFoundError(absolute_file_path)

    async def delete_directory_and_contents(self, absolute_directory_path: str):
        blob_path = self._get_blob_path(absolute_directory_path, root_path_is_ok=True)
        container_client = await self._get_container_client(blob_path.container_name)
        deleted = 0
        async for blob in container_client.list_blobs(name_starts_with=blob_path.prefix or None):
            await container_client.delete_blob(blob.name, delete_snapshots="include")
            logger.debug(f"Deleted blob: {blob_path.container_name}/{blob.name}")
            deleted += 1
        logger.info(f"Deleted {deleted} blobs under {blob_path.container_name}/{blob_path.prefix}")

    async def list_files(self, absolute_directory_path: str) -> List[str]:
        files = []
        async for is_directory, name, _ in self._walk(absolute_directory_path):
            if not is_directory:
                files.append(name)
        files.sort(key=str.lower)
        logger.debug(f"Listed {len(files)} files under {absolute_directory_path}")
        return files

    async def list_sub_directories(self, absolute_directory_path: str) -> List[str]:
        directories = []
        async for is_directory, name, _ in self._walk(absolute_directory_path):
            if is_directory:
                directories.append(name)
        directories.sort(key=str.lower)
        logger.debug(f"Listed {len(directories)} directories under {absolute_directory_path}")
        return directories

    async def list_files_with_metadata(self, absolute_directory_path: str) -> List[FileMetadata]:
        container_name = self._get_blob_path(absolute_directory_path, root_path_is_ok=True).container_name
        files = []
        async for is_directory, _, item in self._walk(absolute_directory_path, include_metadata=True):
            if not is_directory:
                files.append(self._build_metadata(container_name, item))
        files.sort(key=lambda f: f.file_name.lower())
        return files

    async def get_file_metadata(self, absolute_file_path: str) -> FileMetadata:
        blob_client, blob_path = await self._get_blob_client(absolute_file_path)
        try:
            properties = await blob_client.get_blob_properties()
        except ResourceNotFoundError:
            logger.warning(f"Azure blob not found: {blob_path.container_name}/{blob_path.path}")
            raise DataNotFoundError(absolute_file_path)
        return self._build_metadata(blob_path.container_name, properties)

    async def close(self):
        """Closes the underlying BlobServiceClient and credential."""
        if self._service_client is not None:
            try:
                await self._service_client.close()
                logger.info("Closed Azure BlobServiceClient.")
            finally:
                self._service_client = None
                self._known_containers.clear()
        if self._credential is not None:
            try:
                await self._credential.close()
                logger.info("Closed Azure credential.")
            finally:
                self._credential = None

    async def __aenter__(self):
        self._get_service_client()
        return self
