"""Access control policy for identities and video assets.

Pure decision functions with no storage or network dependency. The client
evaluates them before attempting an action and the reference server
evaluates the same rules before honouring one.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Union
from vidshield.models.enums import DisplayStatus, Role


class ActionKind(str, enum.Enum):
    """Actions gated by the policy."""
    VIEW_ADMIN_ROSTER = "view_admin_roster"
    CHANGE_ROLE = "change_role"
    REMOVE_IDENTITY = "remove_identity"
    EDIT_ANY_TITLE = "edit_any_title"
    EDIT_OWN_TITLE = "edit_own_title"
    DELETE_ANY_ASSET = "delete_any_asset"
    DELETE_OWN_ASSET = "delete_own_asset"


@dataclass(frozen=True)
class Action:
    """An action, tagged with its kind.
    
    Only CHANGE_ROLE carries a payload: the role being assigned.
    """
    kind: ActionKind
    target_role: Optional[Role] = None
    
    @classmethod
    def change_role(cls, target_role: Optional[Role]) -> "Action":
        return cls(ActionKind.CHANGE_ROLE, target_role)


VIEW_ADMIN_ROSTER = Action(ActionKind.VIEW_ADMIN_ROSTER)
REMOVE_IDENTITY = Action(ActionKind.REMOVE_IDENTITY)
EDIT_ANY_TITLE = Action(ActionKind.EDIT_ANY_TITLE)
EDIT_OWN_TITLE = Action(ActionKind.EDIT_OWN_TITLE)
DELETE_ANY_ASSET = Action(ActionKind.DELETE_ANY_ASSET)
DELETE_OWN_ASSET = Action(ActionKind.DELETE_OWN_ASSET)


def _coerce_role(role: Union[Role, str, None]) -> Optional[Role]:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def can_perform(actor_role: Union[Role, str, None], action: Union[Action, ActionKind], is_self: bool) -> bool:
    """Decide whether an actor may perform an action.
    
    Rules:
    1. Roster, role changes, identity removal and editing or deleting any
       asset require the admin role
    2. Role changes and identity removal are never allowed on oneself,
       whatever the role
    3. Editing or deleting one's own asset only requires ownership
    
    `is_self` means "the target is the actor" for identity actions and
    "the actor owns the asset" for asset actions. Unknown roles and actions
    are denied.
    """
    if isinstance(action, ActionKind):
        action = Action(action)
    
    role = _coerce_role(actor_role)
    if role is None:
        return False
    
    kind = action.kind
    
    if kind == ActionKind.VIEW_ADMIN_ROSTER:
        return role == Role.ADMIN
    
    if kind == ActionKind.CHANGE_ROLE:
        if _coerce_role(action.target_role) is None:
            return False
        return role == Role.ADMIN and not is_self
    
    if kind == ActionKind.REMOVE_IDENTITY:
        return role == Role.ADMIN and not is_self
    
    if kind in (ActionKind.EDIT_ANY_TITLE, ActionKind.DELETE_ANY_ASSET):
        return role == Role.ADMIN
    
    if kind in (ActionKind.EDIT_OWN_TITLE, ActionKind.DELETE_OWN_ASSET):
        return is_self
    
    return False


def can_mutate_asset(actor_role: Union[Role, str, None], is_owner: bool, delete: bool = False) -> bool:
    """Check if an actor may edit (or delete) an asset, as owner or as admin."""
    if delete:
        own, any_ = DELETE_OWN_ASSET, DELETE_ANY_ASSET
    else:
        own, any_ = EDIT_OWN_TITLE, EDIT_ANY_TITLE
    
    return can_perform(actor_role, own, is_owner) or can_perform(actor_role, any_, is_owner)


def can_view_asset(actor_role: Union[Role, str, None], is_owner: bool, display_status: DisplayStatus) -> bool:
    """Check if an actor may see or stream an asset.
    
    Admins and owners see every asset; everyone else only sees assets whose
    moderation resolved safe.
    """
    role = _coerce_role(actor_role)
    if role is None:
        return False
    
    if role == Role.ADMIN or is_owner:
        return True
    
    return display_status == DisplayStatus.SAFE
