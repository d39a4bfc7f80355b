"""
Settings management for rawadf.

Settings are stored as JSON in a platform-specific directory and validated
with pydantic on load. Missing files give defaults; invalid files are backed
up and replaced by defaults rather than aborting a command.

Settings:
    - buffer_size: Streaming window for merge and split copies
    - compare_buffer_size: Streaming window for track comparison
    - log_file: Optional log file path (no file logging when unset)
    - log_level: Level for the log file
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rawadf.imaging.image_formats import DEFAULT_BUFFER_SIZE, RECORD_SIZE

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1

BUFFER_SIZE_ENV = 'RAWADF_BUFFER_SIZE'

# Header chunks must hold at least two records to make progress
MIN_BUFFER_SIZE = 2 * RECORD_SIZE


# =============================================================================
# Settings File Paths
# =============================================================================

def get_settings_dir() -> Path:
    """
    Get the platform-specific settings directory.

    Platform paths:
        - Linux: ~/.config/rawadf/
        - Windows: %APPDATA%/rawadf/
        - macOS: ~/Library/Application Support/rawadf/
    """
    if sys.platform == 'win32':
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
        return base / 'rawadf'
    elif sys.platform == 'darwin':
        return Path.home() / 'Library' / 'Application Support' / 'rawadf'
    else:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')
        return Path(xdg_config) / 'rawadf'


def get_settings_file() -> Path:
    """Get the settings file path."""
    return get_settings_dir() / 'settings.json'


# =============================================================================
# Settings Model
# =============================================================================

class Settings(BaseModel):
    """Validated user settings."""

    model_config = ConfigDict(extra='ignore', validate_assignment=True)

    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=MIN_BUFFER_SIZE)
    compare_buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, ge=1)
    log_file: Optional[str] = None
    log_level: str = "DEBUG"

    @field_validator('log_level')
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


# =============================================================================
# Load / Save
# =============================================================================

def _backup_corrupted_file(file_path: Path) -> None:
    """Move a corrupted settings file out of the way."""
    backup_path = file_path.with_suffix('.backup')
    try:
        file_path.replace(backup_path)
        logger.info(f"Corrupted settings backed up to {backup_path}")
    except OSError as e:
        logger.error(f"Could not backup corrupted file: {e}")


def _apply_environment(settings: Settings) -> Settings:
    value = os.environ.get(BUFFER_SIZE_ENV)
    if not value:
        return settings
    try:
        return Settings.model_validate({**settings.model_dump(), 'buffer_size': value})
    except ValidationError:
        logger.warning(f"Ignoring invalid {BUFFER_SIZE_ENV}={value!r}")
        return settings


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from file.

    Args:
        path: Settings file (default: get_settings_file())

    Returns:
        Loaded settings, or defaults if the file is missing or invalid
    """
    settings_file = Path(path) if path is not None else get_settings_file()

    if not settings_file.exists():
        logger.debug(f"Settings file not found: {settings_file}")
        return _apply_environment(Settings())

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        settings = Settings.model_validate(data)
        logger.debug(f"Settings loaded from {settings_file}")

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in settings file: {e}")
        _backup_corrupted_file(settings_file)
        settings = Settings()
    except ValidationError as e:
        logger.error(f"Invalid settings in {settings_file}: {e}")
        settings = Settings()
    except PermissionError as e:
        logger.error(f"Permission denied reading settings: {e}")
        settings = Settings()

    return _apply_environment(settings)


def save_settings(settings: Settings, path: Optional[Path] = None) -> bool:
    """
    Save settings to file.

    Returns:
        True if settings were saved successfully
    """
    settings_file = Path(path) if path is not None else get_settings_file()

    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)

        data = settings.model_dump()
        data['version'] = SETTINGS_VERSION
        data['saved_at'] = datetime.now().isoformat()

        # Write to temp file first, then rename (atomic)
        temp_file = settings_file.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        temp_file.replace(settings_file)

        logger.info(f"Settings saved to {settings_file}")
        return True

    except PermissionError as e:
        logger.error(f"Permission denied saving settings: {e}")
        return False
    except OSError as e:
        logger.error(f"OS error saving settings: {e}")
        return False
