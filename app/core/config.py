"""
Configuration module for the real-estate listings API.

This module handles all environment variables and application settings.
It uses Pydantic to validate and parse environment variables automatically.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Settings class that manages all environment variables.

    Pydantic reads environment variables automatically:
    if MONGODB_URI exists in the environment, it maps to mongodb_uri.
    Every field has a default so the dev (in-memory) mode starts
    with no environment at all.

    Example:
        STORE_BACKEND=memory python run.py
    """

    # Document store
    mongodb_uri: str = "mongodb://localhost:27017/realestate"
    mongodb_db: str = "realestate"  # Used when the URI names no database
    store_backend: str = "mongo"    # "mongo" or "memory" (non-persistent dev mode)

    # Server
    debug: bool = False
    port: int = 5000
    environment: str = "development"

    # CORS - FRONTEND_URL is added to the local dev origins
    frontend_url: Optional[str] = None

    # Uploads
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    upload_dir: str = "uploads"

    # Outbound mail (notifications are skipped unless user and password are set)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    from_email: Optional[str] = None
    from_name: str = "Real Estate Platform"

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    class Config:
        """
        Pydantic configuration.

        - env_file: Load from .env file if it exists (for local dev)
        - case_sensitive: False means MONGODB_URI or mongodb_uri both work
        """
        env_file = ".env"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def allowed_origins(self) -> List[str]:
        """Local dev origins plus FRONTEND_URL (trailing slash removed)."""
        origins = [
            "http://localhost:3000",
            "http://localhost:3001",
            "http://localhost:5173",
        ]
        if self.frontend_url:
            origins.append(self.frontend_url.rstrip("/"))
        return origins

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.smtp_user and self.smtp_pass)


# Create a single instance to use throughout the app
settings = Settings()
