"""FastAPI dependencies for authentication and authorization."""
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from vidshield.config import Settings
from vidshield.database import get_db
from vidshield.models.user import User
from vidshield.models.enums import Role
from vidshield.services.auth import token_subject

security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def resolve_token(token: Optional[str], db: Session, settings: Settings) -> Optional[User]:
    """Return the user a token was issued for, or None if it is invalid."""
    if not token:
        return None
    
    try:
        user_id = token_subject(token, settings)
    except ValueError:
        return None
    
    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """Get current authenticated user from JWT token."""
    token = credentials.credentials if credentials else None
    user = resolve_token(token, db, settings)
    
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return user


async def get_stream_user(
    request: Request,
    token: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """Get current user from header or query parameter (for video streaming).
    
    Video elements cannot send headers, so the token may arrive as ?token=.
    """
    auth_header = request.headers.get("Authorization")
    auth_token = None
    
    if auth_header and auth_header.startswith("Bearer "):
        auth_token = auth_header.split(" ", 1)[1]
    elif token:
        auth_token = token
    
    user = resolve_token(auth_token, db, settings)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    
    return user


async def get_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Require admin role."""
    if current_user.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
