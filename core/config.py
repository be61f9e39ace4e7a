#/core/config.py
"""
Конфигурация приложения через Pydantic.
Все переменные берутся из .env файла.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Настройки приложения"""

    # ========== BOT ==========
    BOT_TOKEN: str  # Telegram bot token (обязательно)

    # ========== DATABASE ==========
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str  # Обязательно из .env
    DATABASE_NAME: str = "pairdate"
    DATABASE_POOL_SIZE: int = 20

    @property
    def DATABASE_URL(self) -> str:
        """Construct async PostgreSQL connection string"""
        return (
            f"postgresql+asyncpg://"
            f"{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@"
            f"{self.DATABASE_HOST}:{self.DATABASE_PORT}/"
            f"{self.DATABASE_NAME}"
        )

    # ========== REDIS ==========
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    @property
    def REDIS_URL(self) -> str:
        """Construct Redis connection string"""
        if self.REDIS_PASSWORD:
            return (
                f"redis://:{self.REDIS_PASSWORD}@"
                f"{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
            )
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ========== COUPLE SETTINGS ==========
    MAX_COUPLE_MEMBERS: int = 2
    INVITE_CODE_LENGTH: int = 6
    INVITE_CODE_FALLBACK_LENGTH: int = 8
    INVITE_CODE_MAX_ATTEMPTS: int = 10

    # ========== USAGE LIMITS (free tier) ==========
    DAILY_LIKE_LIMIT: int = 10
    DAILY_SUPER_LIKE_LIMIT: int = 1

    # ========== PUSH NOTIFICATIONS ==========
    PUSH_API_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT_SECONDS: float = 10.0
    PUSH_POLL_SECONDS: int = 15
    NOTIFICATION_RETENTION_DAYS: int = 7

    # ========== STORAGE ==========
    STORAGE_BASE_URL: str = "https://storage.pairdate.app/files"

    # ========== LOGGING ==========
    LOG_LEVEL: str = "INFO"

    # ========== ENVIRONMENT ==========
    ENVIRONMENT: str = "development"  # development | production
    DEBUG: bool = False

    class Config:
        """Pydantic configuration"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

        json_schema_extra = {
            "example": {
                "BOT_TOKEN": "123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11",
                "DATABASE_PASSWORD": "secure_password_here",
            }
        }


# Глобальный экземпляр конфигурации
settings = Settings()
