# bcalm/core/config.py
from typing import Optional
from pydantic import AnyUrl
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Persistence: 'sql' (SQLAlchemy, async driver) or 'memory'
    REPOSITORY_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./bcalm.db"
    DATABASE_ECHO: bool = False

    # Identity provider tokens (HS256 shared secret, e.g. Supabase JWT secret)
    AUTH_JWT_SECRET: str = "change-me"  # override in .env / secrets
    AUTH_JWT_AUDIENCE: Optional[str] = None

    # Public base url used to build links handed to the analysis worker
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Uploads
    UPLOAD_DIR: str = "uploads/cv-analysis"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # External analysis worker (webhook). Leaving the url unset is valid.
    ANALYSIS_WEBHOOK_URL: Optional[AnyUrl] = None
    ANALYSIS_WEBHOOK_API_KEY: Optional[str] = None
    # shared secret checked on the file-serving and callback endpoints
    ANALYSIS_CALLBACK_SECRET: Optional[str] = None
    ANALYSIS_TIMEOUT_SEC: float = 20.0
    # Placeholder completion used when no worker url is configured.
    # Turn off in production so no fake results are ever served.
    ANALYSIS_PLACEHOLDER_ENABLED: bool = True
    ANALYSIS_PLACEHOLDER_DELAY_SEC: float = 5.0

    # Pydantic v2 settings: read from .env file
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# single shared settings instance
settings = Settings()
