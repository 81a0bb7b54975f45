"""
Configuration management for the Lectern library store.

Uses pydantic-settings for environment variable binding.
All settings can be overridden via environment variables with LECTERN_ prefix.
"""

import logging
import sys
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable binding."""

    model_config = SettingsConfigDict(
        env_prefix="LECTERN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================
    # Data Storage
    # ==========================================
    data_dir: Path = Path("./data")
    """Root directory for all persisted data."""

    library_dir: Path | None = None
    """Overrides the library root (defaults to <data_dir>/library)."""

    # ==========================================
    # Attribution Defaults
    # ==========================================
    default_author: str = "System"
    """Author recorded when a caller does not supply one."""

    default_device_id: str = "unknown-device"
    """Device recorded when a caller does not supply one."""

    # ==========================================
    # Consistency
    # ==========================================
    reconcile_on_read: bool = True
    """Repair stale or corrupt snapshots from the history log when reading."""

    # ==========================================
    # Logging
    # ==========================================
    log_level: str = "INFO"
    log_file: Path | None = None

    # ==========================================
    # Computed Properties
    # ==========================================
    @property
    def library_root(self) -> Path:
        return self.library_dir or self.data_dir / "library"


# Default settings. Stores take their configuration explicitly; this only
# supplies the values used when none is passed.
settings = Settings()


def setup_logging(level: str | None = None) -> None:
    """Configure application logging."""
    log_level = level or settings.log_level

    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
    ]

    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        handlers=handlers,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(f"lectern.{name}")
