# Ensure the src directory is in sys.path for test discovery and imports
import sys
import os

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

tests_path = os.path.abspath(os.path.dirname(__file__))
if tests_path not in sys.path:
    sys.path.insert(0, tests_path)

import logging
import secrets
import uuid
from pathlib import Path
from unittest.mock import patch

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from file_provider.services.file_system_service import FileSystemService
from file_provider.services.azure_blob_file_service import AzureBlobFileService
from helpers.blob.fake_blob_storage import FakeBlobServiceClient

logger = logging.getLogger(__name__)

FAKE_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=devaccount;"
    "AccountKey=ZmFrZS1rZXk=;EndpointSuffix=core.windows.net"
)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests exercising a real or emulated backend")


@pytest.fixture(scope="session", autouse=True)
def load_test_env():
    """
    Automatically load .env.test for all tests in this session.
    """
    env_path = Path(__file__).parent.parent / ".env.test"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)
        print(f"Loaded test environment from: {env_path}")
    else:
        print(f"Warning: .env.test file not found at {env_path}")


@pytest.fixture
def clean_storage_env(monkeypatch):
    """Removes STORAGE_* variables so settings tests only see what they set."""
    for key in list(os.environ.keys()):
        if key.startswith("STORAGE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def random_bytes():
    """Returns a function generating random payloads, 256 bytes by default."""
    def _generate(size: int = 256) -> bytes:
        return secrets.token_bytes(size)
    return _generate


# --- Service Fixtures ---


@pytest.fixture(scope="function")
def file_system_service(tmp_path) -> FileSystemService:
    """FileSystemService rooted in a fresh temporary content root."""
    return FileSystemService(content_root_path=str(tmp_path / "test-file-store"))


@pytest.fixture(scope="function")
def fake_blob_service_client() -> FakeBlobServiceClient:
    return FakeBlobServiceClient()


@pytest.fixture(scope="function")
def azure_blob_file_service(fake_blob_service_client) -> AzureBlobFileService:
    """AzureBlobFileService whose BlobServiceClient is replaced by an in-memory fake."""
    with patch(
        "file_provider.services.azure_blob_file_service.BlobServiceClient"
    ) as mock_service_client:
        mock_service_client.from_connection_string.return_value = fake_blob_service_client
        yield AzureBlobFileService(connection_string=FAKE_CONNECTION_STRING)


@pytest_asyncio.fixture(scope="function")
async def live_azure_blob_file_service(test_container_name):
    """
    AzureBlobFileService against the account in .env.test, skipped when none is configured.
    The per-test container is deleted afterwards.
    """
    from file_provider.storage_settings import StorageConfig
    from file_provider.service_factory import create_azure_blob_file_service

    config = StorageConfig()
    if not config.is_azure_storage():
        pytest.skip("Azure storage settings (STORAGE_AZURE_*) not configured")
    service = create_azure_blob_file_service(config.to_storage_account_config())
    yield service
    try:
        await service._get_service_client().delete_container(test_container_name)
        print(f"Deleted test container: {test_container_name}")
    except Exception as e:
        print(f"Warning: Failed to delete test container {test_container_name}: {e}")
    await service.close()


@pytest.fixture
def test_container_name() -> str:
    # Container names must be lower case, 3-63 characters
    return f"pytst-{uuid.uuid4().hex[:8]}"
