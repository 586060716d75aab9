from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = "StepsChallenge"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",  # Dashboard development
    ]

    # Storage backend: "sql", "memory" or "redis"
    STORAGE_BACKEND: str = "sql"

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./steps.db"
    DB_LOGGING_ENABLED: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5

    # Redis Settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10
    REDIS_KEY_PREFIX: str = "steps"

    # Leaderboard Settings
    LEADERBOARD_LIMIT: int = 10

    # Telegram Settings
    TELEGRAM_BOT_TOKEN: Optional[str] = None  # Replies are only logged when unset
    TELEGRAM_API_URL: str = "https://api.telegram.org"

    # HTTP Client Settings
    HTTP_DEFAULT_TIMEOUT: float = 10.0
    HTTP_TELEGRAM_TIMEOUT: float = 15.0
    HTTP_MAX_CONNECTIONS: int = 20
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 5

    # Metrics Settings
    METRICS_RETENTION_HOURS: int = 24

    class Config:
        env_file = ".env"
        case_sensitive = True

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
