from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_SECRET_KEY = "dev_secret_key_change_in_production"


class Settings(BaseSettings):
    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    PROJECT_NAME: str = "Marketplace Moderation"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api/v1"

    # Security
    SECRET_KEY: str = _DEV_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5000",
        "http://127.0.0.1:5000",
    ]

    # Database
    DATABASE_URL: str = "sqlite:///./moderation.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Moderation
    MODERATION_LOW_RATING_THRESHOLD: int = 2  # ratings at or below this are flagged
    MODERATION_PROFANITY_SEVERITY: int = 3
    MODERATION_SEED_DEFAULT_KEYWORDS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()

    # Refuse to sign tokens with the development key in production
    if settings.ENVIRONMENT == "production" and settings.SECRET_KEY == _DEV_SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production environment")

    if not 1 <= settings.MODERATION_PROFANITY_SEVERITY <= 5:
        raise ValueError("MODERATION_PROFANITY_SEVERITY must be between 1 and 5")

    return settings
