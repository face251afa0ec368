"""Application configuration settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Settings shared by the client components and the reference server."""
    
    # Application
    app_name: str = "Vidshield"
    debug: bool = False
    api_prefix: str = "/api"
    
    # Client
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 30.0
    poll_interval_seconds: float = 5.0
    login_route: str = "/login"
    library_route: str = "/videos"
    stream_path_template: str = "/videos/{asset_id}/stream"
    recent_uploads_limit: int = 5
    
    # Upload limits
    allowed_media_types: List[str] = [
        "video/mp4",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
    ]
    max_upload_bytes: int = 5 * 1024 * 1024 * 1024  # 5GiB
    
    # Database
    database_url: str = "sqlite:///./vidshield.db"
    
    # JWT
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24  # 24 hours
    
    # Storage
    video_storage_path: str = "./videos"
    
    # Processing pipeline callback
    pipeline_secret: str = "change-me-too"
    
    # Registration
    default_role: str = "editor"
    
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    
    model_config = SettingsConfigDict(env_file=".env", env_prefix="VIDSHIELD_", case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
