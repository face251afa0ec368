"""Shared pytest fixtures for vidshield tests."""
import httpx
import pytest
from fastapi.testclient import TestClient
from vidshield.client import ApiClient, AssetRegistryClient, CredentialStore, IdentityClient
from vidshield.config import Settings
from vidshield.main import create_app

PIPELINE_SECRET = "pipeline-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment, with an in-memory database."""
    return Settings(
        _env_file=None,
        api_base_url="http://testserver/api",
        database_url="sqlite://",
        video_storage_path=str(tmp_path / "videos"),
        jwt_secret_key="test-secret",
        pipeline_secret=PIPELINE_SECRET,
        max_upload_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    """Synchronous client for server contract tests."""
    return TestClient(app)


@pytest.fixture
def navigations() -> list:
    """Routes the client asked to navigate to, in order."""
    return []


@pytest.fixture
def store(navigations, settings) -> CredentialStore:
    return CredentialStore(navigate=navigations.append, settings=settings)


@pytest.fixture
async def api(store, settings, app):
    """Async client wired to the in-process application."""
    api = ApiClient(store, settings, transport=httpx.ASGITransport(app=app))
    yield api
    await api.aclose()


@pytest.fixture
def identities(api) -> IdentityClient:
    return IdentityClient(api)


@pytest.fixture
def registry(api) -> AssetRegistryClient:
    return AssetRegistryClient(api)


def register(client: TestClient, email: str, password: str = "password123", name: str = "Test User") -> dict:
    """Register through the API and return the credential body."""
    response = client.post(
        "/api/auth/register",
        json={"displayName": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(credential: dict) -> dict:
    return {"Authorization": f"Bearer {credential['token']}"}


def upload(client: TestClient, credential: dict, title: str = "Clip", content: bytes = b"\x00" * 2048,
           media_type: str = "video/mp4", filename: str = "clip.mp4"):
    return client.post(
        "/api/videos/upload",
        headers=auth_headers(credential),
        data={"title": title},
        files={"video": (filename, content, media_type)},
    )


def report_status(client: TestClient, video_id: str, processing: str, sensitivity: str = None, **extra):
    body = {"processingStatus": processing, **extra}
    if sensitivity is not None:
        body["sensitivityStatus"] = sensitivity
    return client.put(
        f"/api/videos/{video_id}/status",
        headers={"X-Pipeline-Secret": PIPELINE_SECRET},
        json=body,
    )
