"""Cashier Terminal Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "KapeRest Cashier Terminal"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Backend Configuration
    backend_base_url: str = "http://localhost:8001"
    api_token: Optional[str] = None
    request_timeout: float = 30.0

    # Checkout
    tax_percent: int = 12
    currency: str = "PHP"
    hold_completion_delay: float = 0.8

    # GCash polling interval in seconds
    gcash_poll_interval: float = 3.0

    # Held transactions mirror and pending payment snapshots.
    # Kept in memory when no path is configured.
    local_state_path: Optional[str] = None

    # Idle sessions older than this are dropped when a new one opens
    session_max_age_hours: int = 24

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        env_prefix = "POS_"
        case_sensitive = False
        extra = "ignore"

    @property
    def backend_configured(self) -> bool:
        """Check if the backend credential is configured"""
        return bool(self.backend_base_url and self.api_token)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
