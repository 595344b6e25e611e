"""Mock Backend Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Mock backend settings loaded from environment"""

    host: str = "0.0.0.0"
    port: int = 8001
    debug: bool = True

    # Bearer credentials
    jwt_secret: str = "kape-development-secret-change-me-in-prod"
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 480

    # Checkout links are built on this base URL
    qr_base_url: str = "http://localhost:8001"

    # Seconds after which a pending payment reports "authorized" on its own.
    # Unset: payments only move through the webhook or the simulate endpoint.
    auto_authorize_after: Optional[float] = None

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        env_prefix = "MOCK_BACKEND_"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
