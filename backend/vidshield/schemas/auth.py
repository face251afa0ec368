"""Authentication schemas."""
from pydantic import ConfigDict, EmailStr, Field
from vidshield.schemas.base import CamelModel
from vidshield.schemas.user import Identity


class UserRegister(CamelModel):
    """Registration request body."""
    display_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)


class UserLogin(CamelModel):
    """Login request body."""
    email: EmailStr
    password: str


class Credential(CamelModel):
    """Bearer token together with the identity it was issued for.
    
    Returned by login and register, and held by the client's credential store.
    Frozen so the store can only ever swap whole credentials.
    """
    token: str
    identity: Identity
    
    model_config = ConfigDict(frozen=True)
