"""HTTP transport shared by every client component."""
import logging
from typing import Any, Optional
import httpx
from vidshield.client.credentials import CredentialStore
from vidshield.config import Settings, get_settings
from vidshield.errors import (
    ApiError,
    AuthorizationError,
    ConflictOrNotFoundError,
    CredentialRejectedError,
    TransportError,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _bearer_token(request: httpx.Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if header and header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):]
    return None


def error_message(response: httpx.Response) -> Optional[str]:
    """Extract the server-provided message from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    
    if not isinstance(body, dict):
        return None
    
    detail = body.get("detail", body.get("message"))
    if isinstance(detail, str) and detail:
        return detail
    
    # FastAPI request validation errors
    if isinstance(detail, list):
        messages = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
        if messages:
            return "; ".join(messages)
    
    return None


class ApiClient:
    """Async HTTP client that attaches the current credential to every request.
    
    Every response passes through one shared hook: a 401 from any endpoint
    clears the credential that request carried before the failure reaches
    the caller.
    """
    
    def __init__(
        self,
        store: CredentialStore,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._http = httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
            event_hooks={
                "request": [self._attach_credential],
                "response": [self._check_unauthorized],
            },
        )
    
    async def _attach_credential(self, request: httpx.Request) -> None:
        credential = self.store.current()
        if credential is not None:
            request.headers["Authorization"] = f"{BEARER_PREFIX}{credential.token}"
    
    async def _check_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning(f"Unauthorized response from {response.request.method} {response.request.url.path}")
            self.store.reject(_bearer_token(response.request))
    
    async def request(self, method: str, path: str, fallback: str = "Request failed", **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.
        
        Raises the error type matching the response status; `fallback` is used
        as the message when the server did not provide one.
        """
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Network error: {exc}") from exc
        
        if response.is_success:
            if response.status_code == httpx.codes.NO_CONTENT or not response.content:
                return None
            return response.json()
        
        status_code = response.status_code
        message = error_message(response) or fallback
        
        if status_code == httpx.codes.UNAUTHORIZED:
            raise CredentialRejectedError(message, status_code)
        if status_code == httpx.codes.FORBIDDEN:
            raise AuthorizationError(message, status_code)
        if status_code in (httpx.codes.NOT_FOUND, httpx.codes.CONFLICT, httpx.codes.GONE):
            raise ConflictOrNotFoundError(message, status_code)
        raise ApiError(message, status_code)
    
    def url(self, path: str, **params: Any) -> str:
        """Absolute URL for `path` under the API base URL."""
        return str(self._http.build_request("GET", path, params=params or None).url)
    
    async def aclose(self) -> None:
        await self._http.aclose()
    
    async def __aenter__(self) -> "ApiClient":
        return self
    
    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
