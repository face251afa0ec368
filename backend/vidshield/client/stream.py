"""Playback URL derivation."""
from typing import Optional
from vidshield.client.credentials import CredentialStore
from vidshield.client.http import ApiClient
from vidshield.client.registry import AssetId


class StreamAuthorizer:
    """Builds stream URLs carrying the current credential as a query parameter.
    
    Embedded players cannot set an Authorization header, so the token rides
    in the URL. URLs are rebuilt on every call because the credential may be
    rotated mid-session.
    """
    
    def __init__(self, api: ApiClient, store: Optional[CredentialStore] = None):
        self._api = api
        self._store = store or api.store
    
    def _path(self, asset_id: AssetId) -> str:
        return self._api.settings.stream_path_template.format(asset_id=asset_id)
    
    def url_for(self, asset_id: AssetId) -> str:
        """Stream URL; without a credential the server will reject it."""
        credential = self._store.current()
        if credential is None:
            return self._api.url(self._path(asset_id))
        return self._api.url(self._path(asset_id), token=credential.token)
    
    def authorized_url_for(self, asset_id: AssetId) -> str:
        """Stream URL for authenticated views; redirects to login without a credential."""
        credential = self._store.require()
        return self._api.url(self._path(asset_id), token=credential.token)
