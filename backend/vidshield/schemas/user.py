"""Identity schemas."""
from pydantic import EmailStr
from datetime import datetime
import uuid
from vidshield.models.enums import Role
from vidshield.schemas.base import CamelModel


class Identity(CamelModel):
    """Identity as returned by the identity provider."""
    id: uuid.UUID
    display_name: str
    email: EmailStr
    role: Role
    created_at: datetime


class RoleUpdate(CamelModel):
    """Role change request body."""
    role: Role
