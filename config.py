"""
Configuration management for MoneyMap.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_prefix='MONEYMAP_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Allow extra fields in .env for flexibility
    )

    # Database
    database_url: str = "sqlite:///moneymap.db"
    db_echo: bool = False
    busy_timeout_ms: int = 5000

    # Logging
    log_level: str = "INFO"
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        """Check if the configured database lives only in memory."""
        return self.database_url in ("sqlite://", "sqlite:///:memory:")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
