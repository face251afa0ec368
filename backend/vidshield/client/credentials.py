"""Process-wide credential store."""
import logging
from typing import Callable, List, Optional
from vidshield.config import Settings, get_settings
from vidshield.errors import CredentialRequiredError
from vidshield.schemas.auth import Credential

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Credential]], None]
Navigator = Callable[[str], None]


class CredentialStore:
    """Single slot holding the current session credential.
    
    Writes replace the whole credential at once. Subscribers are told about
    every change, and the navigator is sent to the login route whenever a
    present credential goes away. Clearing an empty store does nothing, so
    any number of concurrent failures produce at most one redirect.
    """
    
    def __init__(self, navigate: Optional[Navigator] = None, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._navigate = navigate
        self._credential: Optional[Credential] = None
        self._listeners: List[Listener] = []
    
    def current(self) -> Optional[Credential]:
        return self._credential
    
    def require(self) -> Credential:
        """Return the credential, or request login and raise if there is none."""
        credential = self._credential
        if credential is None:
            self._redirect_to_login()
            raise CredentialRequiredError()
        return credential
    
    def set(self, credential: Credential) -> None:
        self._credential = credential
        logger.info(f"Credential set for identity {credential.identity.id}")
        self._notify()
    
    def clear(self) -> None:
        if self._credential is None:
            return
        
        self._credential = None
        logger.info("Credential cleared")
        self._notify()
        self._redirect_to_login()
    
    def reject(self, token: Optional[str]) -> None:
        """Clear the credential if `token` is still the current one.
        
        Called by the shared unauthorized hook with the token the failed
        request carried.
        """
        credential = self._credential
        if credential is None:
            return
        
        if token is not None and token != credential.token:
            logger.debug("Ignoring rejection of a credential that was already replaced")
            return
        
        logger.warning("Credential rejected by the server")
        self.clear()
    
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)
        
        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        
        return unsubscribe
    
    def _notify(self) -> None:
        credential = self._credential
        for listener in list(self._listeners):
            listener(credential)
    
    def _redirect_to_login(self) -> None:
        if self._navigate is not None:
            self._navigate(self._settings.login_route)
