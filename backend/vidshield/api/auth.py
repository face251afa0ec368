"""Authentication and identity management endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pathlib import Path
from typing import List
import logging
import uuid
from vidshield.config import Settings
from vidshield.database import get_db
from vidshield.schemas.auth import UserRegister, UserLogin, Credential
from vidshield.schemas.user import Identity, RoleUpdate
from vidshield.models.user import User
from vidshield.models.enums import Role
from vidshield.services.access_control import Action, REMOVE_IDENTITY, can_perform
from vidshield.services.auth import get_password_hash, issue_token, verify_password
from vidshield.dependencies import get_admin, get_app_settings, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def issue_credential(user: User, settings: Settings) -> Credential:
    """Create a bearer credential for a user."""
    access_token = issue_token(user.id, settings, claims={"email": user.email, "role": user.role.value})
    return Credential(token=access_token, identity=Identity.model_validate(user))


@router.post("/register", response_model=Credential, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new identity and log it in."""
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    
    # First identity of the platform is admin
    if db.query(User).count() == 0:
        role = Role.ADMIN
    else:
        role = Role(settings.default_role)
    
    user = User(
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        display_name=user_data.display_name,
        role=role,
    )
    
    db.add(user)
    db.commit()
    db.refresh(user)
    
    logger.info(f"Registered {user.email} as {role.value}")
    return issue_credential(user, settings)


@router.post("/login", response_model=Credential)
async def login(
    user_data: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Login and get a credential."""
    user = db.query(User).filter(User.email == user_data.email).first()
    
    if not user or not verify_password(user_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return issue_credential(user, settings)


@router.get("/profile", response_model=Identity)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get current identity."""
    return current_user


@router.get("/users", response_model=List[Identity])
async def list_users(
    current_user: User = Depends(get_admin),
    db: Session = Depends(get_db)
):
    """List all identities (admin only)."""
    return db.query(User).order_by(User.created_at).all()


@router.put("/users/{user_id}/role", response_model=Identity)
async def update_role(
    user_id: uuid.UUID,
    role_update: RoleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change another identity's role (admin only)."""
    is_self = user_id == current_user.id
    if not can_perform(current_user.role, Action.change_role(role_update.role), is_self=is_self):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot change your own role" if is_self else "Admin access required"
        )
    
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    
    user.role = role_update.role
    db.commit()
    db.refresh(user)
    
    logger.info(f"{current_user.email} changed role of {user.email} to {user.role.value}")
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an identity and every video it owns (admin only)."""
    is_self = user_id == current_user.id
    if not can_perform(current_user.role, REMOVE_IDENTITY, is_self=is_self):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot remove yourself" if is_self else "Admin access required"
        )
    
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    
    email = user.email
    file_paths = [Path(video.file_path) for video in user.videos]
    
    db.delete(user)
    db.commit()
    
    for file_path in file_paths:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete {file_path}: {e}")
    
    logger.info(f"{current_user.email} removed {email} and {len(file_paths)} videos")
    return None
