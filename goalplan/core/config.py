# goalplan/core/config.py

from pathlib import Path
from typing import Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Goal Plan API"
    DEBUG: bool = False
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./goalplan.db"
    DB_MAX_RETRIES: int = 3
    DB_RETRY_DELAY: float = 0.5

    # CORS Configuration
    FRONTEND_URL: str = "http://localhost:3000"

    # Planning defaults
    DEFAULT_FUNDING_STYLE: Literal["waterfall", "parallel", "hybrid"] = "hybrid"
    DEFAULT_BUFFER_MONTHS: int = 3

    # Read-through cache in front of the goal store
    GOAL_CACHE_TTL_SECONDS: float = 60.0

    # Optional: Environment
    ENVIRONMENT: str = "development"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_sqlite(self) -> bool:
        """Check if we're running against a local SQLite database"""
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_supabase(self) -> bool:
        """Check if we're using Supabase database"""
        # Cover both to ensure DB engine gets the right settings
        return any(d in self.DATABASE_URL for d in [
            "supabase.co",
            "supabase.com",
            "pooler.supabase",
        ])

# Create a global settings instance
settings = Settings()
