"""JSON-backed user settings for cachecleaner."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from cachecleaner.models import CacheLocation

log = logging.getLogger(__name__)

_SETTINGS_DIR = "cachecleaner"
_SETTINGS_FILE = "config.json"

DEFAULT_DAYS = 30
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """User-adjustable settings."""

    days: int = Field(DEFAULT_DAYS, ge=0, description="Default age threshold in days")
    extra_locations: list[CacheLocation] = Field(
        default_factory=list,
        description="Additional locations scanned after the built-in ones",
    )
    log_level: str = Field("WARNING", description="Logging level when not running --verbose")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def settings_path() -> Path:
    return xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from disk.

    A missing file gives the defaults; an unreadable or invalid file is
    logged and also gives the defaults.
    """
    path = path or settings_path()
    if not path.exists():
        return Settings()
    try:
        return Settings.model_validate_json(path.read_text(encoding="utf-8"))
    except (ValidationError, OSError) as e:
        log.warning("Could not load settings from %s: %s", path, e)
        return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """
    Persist settings to disk.

    Raises:
        OSError: If the file could not be written
    """
    path = path or settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(indent=2) + "\n", encoding="utf-8")
    return path
