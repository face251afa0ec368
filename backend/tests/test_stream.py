"""Tests for playback URL derivation."""
import httpx
import pytest
from conftest import upload
from factories import make_credential
from vidshield.client import StreamAuthorizer
from vidshield.errors import CredentialRequiredError

ASSET_ID = "7d3b2c4e-0000-4000-8000-000000000001"


@pytest.fixture
def authorizer(api, store):
    return StreamAuthorizer(api, store)


async def test_url_carries_current_token(authorizer, store):
    store.set(make_credential(token="abc"))
    
    assert authorizer.url_for(ASSET_ID) == f"http://testserver/api/videos/{ASSET_ID}/stream?token=abc"


async def test_url_without_credential_has_no_token(authorizer):
    assert authorizer.url_for(ASSET_ID) == f"http://testserver/api/videos/{ASSET_ID}/stream"


async def test_authorized_url_requires_login(authorizer, navigations):
    with pytest.raises(CredentialRequiredError):
        authorizer.authorized_url_for(ASSET_ID)
    assert navigations == ["/login"]


async def test_url_follows_rotated_credential(authorizer, store):
    store.set(make_credential(token="first"))
    first = authorizer.authorized_url_for(ASSET_ID)
    store.set(make_credential(token="second"))
    
    assert first.endswith("token=first")
    assert authorizer.authorized_url_for(ASSET_ID).endswith("token=second")


async def test_stream_url_plays_without_headers(app, client, identities, api, store):
    credential = await identities.register("Editor", "editor@example.com", "password123")
    content = bytes(range(256)) * 4
    video_id = upload(client, {"token": credential.token}, content=content).json()["id"]
    
    authorizer = StreamAuthorizer(api)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as player:
        response = await player.get(authorizer.url_for(video_id), headers={"Range": "bytes=0-9"})
        assert response.status_code == 206
        assert response.content == content[:10]
        
        store.clear()
        response = await player.get(authorizer.url_for(video_id))
        assert response.status_code == 401
