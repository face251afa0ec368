"""Roster controller for admins managing other identities."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from vidshield.client.credentials import CredentialStore
from vidshield.client.registry import AssetId, IdentityClient
from vidshield.errors import (
    AuthorizationError,
    ConflictOrNotFoundError,
    ErrorKind,
    ValidationError,
    VidshieldError,
)
from vidshield.models.enums import Role
from vidshield.schemas.user import Identity
from vidshield.services.access_control import (
    REMOVE_IDENTITY,
    VIEW_ADMIN_ROSTER,
    Action,
    can_perform,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovalRequest:
    """First step of a two-step identity removal."""
    identity: Identity


class RosterController:
    """Lists other identities and applies role changes and removals.
    
    The self-targeting checks here only spare the user a round trip; the
    server enforces the same rules.
    """
    
    def __init__(self, identities: IdentityClient, store: CredentialStore):
        self._identities = identities
        self._store = store
        self._roster: List[Identity] = []
        self._pending: Dict[str, RemovalRequest] = {}
        
        self.error: Optional[VidshieldError] = None
    
    def _actor(self) -> Identity:
        return self._store.require().identity
    
    def _is_self(self, target_id: AssetId) -> bool:
        return str(self._actor().id) == str(target_id)
    
    def _find(self, target_id: AssetId) -> Optional[Identity]:
        for identity in self._roster:
            if str(identity.id) == str(target_id):
                return identity
        return None
    
    def _forget(self, target_id: AssetId) -> None:
        self._roster = [identity for identity in self._roster if str(identity.id) != str(target_id)]
    
    async def load(self) -> List[Identity]:
        """Fetch every identity from the registry."""
        actor = self._actor()
        if not can_perform(actor.role, VIEW_ADMIN_ROSTER, is_self=False):
            raise AuthorizationError("Admin access required")
        
        try:
            self._roster = await self._identities.list_identities()
        except VidshieldError as e:
            self.error = e
            raise
        
        self.error = None
        return self.list()
    
    def list(self, search_term: str = "") -> List[Identity]:
        """Identities other than the actor, optionally filtered by email."""
        credential = self._store.current()
        if credential is None:
            return []
        
        actor_id = str(credential.identity.id)
        needle = search_term.strip().lower()
        
        return [
            identity for identity in self._roster
            if str(identity.id) != actor_id and needle in identity.email.lower()
        ]
    
    async def change_role(self, target_id: AssetId, new_role: Union[Role, str, None]) -> Identity:
        """Assign `new_role` to another identity."""
        if not new_role:
            raise ValidationError(ErrorKind.EMPTY_ROLE, "Please choose a role")
        try:
            role = Role(new_role)
        except ValueError:
            raise ValidationError(ErrorKind.EMPTY_ROLE, f"Unknown role: {new_role}")
        
        actor = self._actor()
        is_self = self._is_self(target_id)
        if not can_perform(actor.role, Action.change_role(role), is_self=is_self):
            if is_self:
                raise AuthorizationError("You cannot change your own role")
            raise AuthorizationError("Admin access required")
        
        self.error = None
        try:
            updated = await self._identities.change_role(target_id, role)
        except ConflictOrNotFoundError as e:
            self.error = e
            self._forget(target_id)
            raise
        except VidshieldError as e:
            self.error = e
            raise
        
        self._roster = [updated if str(identity.id) == str(target_id) else identity for identity in self._roster]
        logger.info(f"Changed role of {updated.email} to {role.value}")
        return updated
    
    def request_removal(self, target_id: AssetId) -> RemovalRequest:
        """First step of removing an identity; confirm with remove()."""
        actor = self._actor()
        is_self = self._is_self(target_id)
        if not can_perform(actor.role, REMOVE_IDENTITY, is_self=is_self):
            if is_self:
                raise AuthorizationError("You cannot remove yourself")
            raise AuthorizationError("Admin access required")
        
        identity = self._find(target_id)
        if identity is None:
            raise ConflictOrNotFoundError("User not found")
        
        request = RemovalRequest(identity)
        self._pending[str(identity.id)] = request
        return request
    
    def cancel_removal(self, request: RemovalRequest) -> None:
        self._pending.pop(str(request.identity.id), None)
    
    async def remove(self, request: RemovalRequest) -> None:
        """Remove a confirmed identity; the row stays until the server agrees."""
        key = str(request.identity.id)
        if self._pending.get(key) is not request:
            raise ValueError("Removal was not requested or already handled")
        del self._pending[key]
        
        self.error = None
        try:
            await self._identities.remove(request.identity.id)
        except ConflictOrNotFoundError as e:
            self.error = e
            self._forget(key)
            raise
        except VidshieldError as e:
            self.error = e
            raise
        
        self._forget(key)
        logger.info(f"Removed user {request.identity.email}")
