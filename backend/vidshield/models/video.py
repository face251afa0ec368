"""Video model."""
from sqlalchemy import BigInteger, Column, String, Float, ForeignKey, DateTime, Enum, Uuid
from sqlalchemy.orm import relationship
import uuid
from vidshield.database import Base
from vidshield.models.enums import ProcessingStatus, SensitivityStatus
from vidshield.models.user import utcnow


class Video(Base):
    """Video asset model."""
    __tablename__ = "videos"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(500), nullable=False)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=False)
    media_type = Column(String(100), nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    duration_seconds = Column(Float, nullable=True)  # Unknown until processed
    processing_status = Column(Enum(ProcessingStatus), nullable=False, default=ProcessingStatus.PENDING)
    sensitivity_status = Column(Enum(SensitivityStatus), nullable=False, default=SensitivityStatus.UNSET)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
    
    owner = relationship("User", back_populates="videos")
    
    @property
    def owner_email(self):
        return self.owner.email if self.owner is not None else None
    
    def __repr__(self):
        return f"<Video(id={self.id}, title={self.title}, status={self.processing_status})>"
