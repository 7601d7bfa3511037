"""
In-memory stand-ins for the azure.storage.blob.aio clients used by AzureBlobFileService.

Only the calls the service makes are modelled. Blob listings are returned in name order,
as the real service does.
"""

import hashlib
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import ContentSettings


class AsyncIter:
    """Wraps a list so it can be consumed with `async for`."""

    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._items):
            raise StopAsyncIteration
        item = self._items[self._index]
        self._index += 1
        return item


class FakeDownloader:
    def __init__(self, data: bytes):
        self._data = data

    async def readall(self) -> bytes:
        return self._data

    async def readinto(self, stream) -> int:
        stream.write(self._data)
        return len(self._data)


class FakeBlobClient:
    def __init__(self, container: "FakeContainerClient", name: str):
        self.container = container
        self.blob_name = name
        self._staged: Dict[str, bytes] = {}

    def _stored(self):
        blob = self.container.blobs.get(self.blob_name)
        if blob is None:
            raise ResourceNotFoundError(f"The specified blob does not exist: {self.blob_name}")
        return blob

    def _store(self, data: bytes, metadata=None, content_settings=None):
        settings = content_settings or ContentSettings()
        settings.content_md5 = bytearray(hashlib.md5(data).digest())
        self.container.blobs[self.blob_name] = SimpleNamespace(
            name=self.blob_name,
            data=data,
            size=len(data),
            last_modified=datetime.now(timezone.utc),
            metadata=dict(metadata or {}),
            content_settings=settings,
        )

    async def exists(self) -> bool:
        return self.blob_name in self.container.blobs

    async def download_blob(self) -> FakeDownloader:
        return FakeDownloader(self._stored().data)

    async def upload_blob(self, data, overwrite=False, metadata=None, content_settings=None, **kwargs):
        if not overwrite and self.blob_name in self.container.blobs:
            raise ResourceExistsError("The specified blob already exists.")
        self._store(bytes(data), metadata, content_settings)

    async def stage_block(self, block_id, data, length=None, **kwargs):
        self._staged[block_id] = bytes(data)

    async def commit_block_list(self, block_list, metadata=None, content_settings=None, **kwargs):
        data = b"".join(self._staged[block.id] for block in block_list)
        self._staged.clear()
        self._store(data, metadata, content_settings)

    async def delete_blob(self, delete_snapshots=None, **kwargs):
        self._stored()
        del self.container.blobs[self.blob_name]

    async def get_blob_properties(self):
        blob = self._stored()
        return SimpleNamespace(
            name=blob.name,
            size=blob.size,
            last_modified=blob.last_modified,
            metadata=dict(blob.metadata),
            content_settings=blob.content_settings,
        )


class FakeContainerClient:
    def __init__(self, service: "FakeBlobServiceClient", name: str):
        self.service = service
        self.container_name = name
        self.blobs: Dict[str, SimpleNamespace] = {}
        self.create_calls = 0

    async def create_container(self, **kwargs):
        self.create_calls += 1
        if self.container_name in self.service.created:
            raise ResourceExistsError("The specified container already exists.")
        self.service.created.add(self.container_name)

    def get_blob_client(self, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self, blob)

    def list_blobs(self, name_starts_with: Optional[str] = None, **kwargs) -> AsyncIter:
        prefix = name_starts_with or ""
        return AsyncIter(self.blobs[name] for name in sorted(self.blobs) if name.startswith(prefix))

    def walk_blobs(self, name_starts_with: Optional[str] = None, include=None, delimiter="/", **kwargs) -> AsyncIter:
        prefix = name_starts_with or ""
        items: List[SimpleNamespace] = []
        seen_prefixes = set()
        for name in sorted(self.blobs):
            if not name.startswith(prefix):
                continue
            remainder = name[len(prefix):]
            if delimiter in remainder:
                sub_prefix = prefix + remainder.split(delimiter, 1)[0] + delimiter
                if sub_prefix not in seen_prefixes:
                    seen_prefixes.add(sub_prefix)
                    items.append(SimpleNamespace(name=sub_prefix, prefix=sub_prefix))
            else:
                items.append(self.blobs[name])
        return AsyncIter(items)

    async def delete_blob(self, blob: str, delete_snapshots=None, **kwargs):
        if blob not in self.blobs:
            raise ResourceNotFoundError(f"The specified blob does not exist: {blob}")
        del self.blobs[blob]


class FakeBlobServiceClient:
    def __init__(self):
        self.containers: Dict[str, FakeContainerClient] = {}
        self.created = set()
        self.closed = False

    def get_container_client(self, container: str) -> FakeContainerClient:
        if container not in self.containers:
            self.containers[container] = FakeContainerClient(self, container)
        return self.containers[container]

    async def close(self):
        self.closed = True
