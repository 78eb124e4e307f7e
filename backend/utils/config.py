"""
SimWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


DEFAULT_DEVICES_ROOT = Path("~/Library/Developer/CoreSimulator/Devices")


class WatcherSettings(BaseSettings):
    """Device directory watcher settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    devices_root: Path = Field(
        default=DEFAULT_DEVICES_ROOT,
        description="Directory holding one subdirectory per simulator device",
    )
    root_reload_delay: float = Field(
        default=5.0,
        ge=0.0,
        le=60.0,
        description="Quiet period (seconds) after a change in the devices root",
    )
    device_reload_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Quiet period (seconds) after a change inside a device",
    )
    join_timeout: float = Field(default=5.0, ge=0.0)

    @field_validator("devices_root", mode="after")
    @classmethod
    def expand_devices_root(cls, v: Path) -> Path:
        """Expand ``~`` so the root is always absolute."""
        return v.expanduser()


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="SimWatch")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev", "local")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()
