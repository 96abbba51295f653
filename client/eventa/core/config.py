"""
Client configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from typing import Optional

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "eventA Client"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Backend REST API
    API_BASE_URL: str = "http://localhost:4001/api/v1"
    HTTP_TIMEOUT: Optional[float] = 30.0  # None disables the transport timeout

    # Push channel
    WS_URL: str = "ws://localhost:4001/ws"
    NOTIFICATIONS_ENABLED: bool = True
    MAX_RECONNECT_ATTEMPTS: int = 3
    RECONNECT_DELAY_SECONDS: float = 2.0  # flat, no backoff
    WS_HEARTBEAT_SECONDS: float = 30.0

    # Forms
    FORM_DISMISS_SECONDS: float = 2.0

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
