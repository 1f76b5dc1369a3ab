"""
Pytest fixtures for Context Cache Gateway tests.

Remote collaborators (Gemini, S3, the template endpoint) are replaced with
mocks; the FastAPI app is driven in-process through httpx's ASGI transport.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from app import app
from src.config import Settings
from src.dependencies import get_context_cache_service, get_reformat_service
from src.services import ContextCacheService, ReformatService
from src.utils.csv_utils import ReformatTemplate


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing scratch files at a per-test temp dir."""
    return Settings(
        environment="test",
        google_api_key="test-key",
        cache_model="models/test-model",
        s3_bucket_name="bucket",
        s3_key_name="context.txt",
        scratch_dir=str(tmp_path),
        template_url="https://templates.example.com/template.json",
    )


@pytest.fixture
def genai_client() -> MagicMock:
    """Mock google-genai client exposing the async surface the services use."""
    client = MagicMock()
    client.aio.files.upload = AsyncMock(
        return_value=SimpleNamespace(uri="U", mime_type="text/plain")
    )
    client.aio.caches.create = AsyncMock(return_value=SimpleNamespace(name="H2"))
    client.aio.caches.delete = AsyncMock(return_value=None)
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text="closest entry")
    )
    return client


@pytest.fixture
def storage() -> MagicMock:
    """Mock object storage returning a fixed document."""
    storage = MagicMock()
    storage.get_object_text = AsyncMock(return_value="B")
    return storage


@pytest.fixture
def context_service(settings, storage, genai_client) -> ContextCacheService:
    return ContextCacheService(settings, storage, client=genai_client)


@pytest.fixture
def loaded_context_service(context_service) -> ContextCacheService:
    """Context service with handle "H" already set."""
    context_service._cache_name = "H"
    return context_service


@pytest.fixture
def reformat_client() -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text="Bob,35\n")
    )
    return client


@pytest.fixture
def client_factory(reformat_client) -> MagicMock:
    return MagicMock(return_value=reformat_client)


@pytest.fixture
def reformat_service(settings, client_factory) -> ReformatService:
    service = ReformatService(settings, client_factory=client_factory)
    service.template = ReformatTemplate(headers=["Name", "Age"], sample_row="Alice,30")
    return service


@pytest_asyncio.fixture
async def client(context_service, reformat_service):
    """Async HTTP client bound to the app with mocked services."""
    app.dependency_overrides[get_context_cache_service] = lambda: context_service
    app.dependency_overrides[get_reformat_service] = lambda: reformat_service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
