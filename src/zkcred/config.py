"""Runtime configuration, read from ZKCRED_* environment variables or .env."""

import logging
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ROOT_VALIDITY_DURATION = 3600  # 1 hour


class Settings(BaseSettings):
    """Service settings."""

    model_config = SettingsConfigDict(env_prefix="ZKCRED_", env_file=".env", extra="ignore")

    database_url: str = "sqlite:///zk_cred.db"
    default_root_validity_duration: int = Field(DEFAULT_ROOT_VALIDITY_DURATION, ge=0)
    max_tree_depth: int = Field(32, ge=1, le=32)
    supported_depths: List[int] = Field(default_factory=lambda: list(range(16, 33)))

    # JWT configuration
    secret_key: str = "your-secret-key-change-in-production-12345"
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24

    log_level: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create default settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root log format used by the service."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
