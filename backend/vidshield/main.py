"""FastAPI application implementing the video platform's REST contract.

Run with: uvicorn vidshield.main:create_app --factory
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging
from vidshield.config import Settings, get_settings
from vidshield.database import Base, create_db_engine, create_session_factory
from vidshield.api import auth, videos

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its database for the given settings."""
    settings = settings or get_settings()
    
    engine = create_db_engine(settings.database_url)
    
    # Create database tables
    Base.metadata.create_all(bind=engine)
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle - startup and shutdown."""
        logger.info(f"Starting {settings.app_name}...")
        yield
        logger.info(f"Shutting down {settings.app_name}...")
        engine.dispose()
    
    app = FastAPI(
        title=settings.app_name,
        description="Video hosting with moderation lifecycle and role-based access",
        version="1.0.0",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan
    )
    
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Include routers
    app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["Authentication"])
    app.include_router(videos.router, prefix=f"{settings.api_prefix}/videos", tags=["Videos"])
    
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": f"{settings.app_name} API",
            "version": "1.0.0",
            "docs": f"{settings.api_prefix}/docs"
        }
    
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}
    
    return app
