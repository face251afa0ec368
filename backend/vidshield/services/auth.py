"""Password hashing and bearer tokens."""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from passlib.context import CryptContext
from typing import Any, Dict, Optional
import uuid
from vidshield.config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _expiry(settings: Settings, lifetime: Optional[timedelta]) -> datetime:
    if lifetime is None:
        lifetime = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    return datetime.now(timezone.utc) + lifetime


def issue_token(
    subject: uuid.UUID,
    settings: Settings,
    claims: Optional[Dict[str, Any]] = None,
    lifetime: Optional[timedelta] = None,
) -> str:
    """Sign a token for `subject`; `claims` ride along for display only."""
    payload = dict(claims or {}, sub=str(subject), exp=_expiry(settings, lifetime))
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def token_subject(token: str, settings: Settings) -> uuid.UUID:
    """Identity id a token was issued for.
    
    Raises ValueError for bad signatures, expired tokens and malformed subjects.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e
    
    return uuid.UUID(str(payload.get("sub") or ""))
