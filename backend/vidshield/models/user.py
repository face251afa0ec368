"""Identity model."""
from sqlalchemy import Column, String, DateTime, Enum, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from vidshield.database import Base
from vidshield.models.enums import Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Identity model."""
    __tablename__ = "users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.VIEWER)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    
    # Deleting an identity deletes every video it owns
    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
