"""
Application configuration.

Stored as a JSON file next to the application. If the file does not exist, the defaults are used.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from src.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config") / "preferences.json"


class EngineSettings(BaseModel):
    """How to reach the external engine subprocess used for evaluation."""

    path: Optional[str] = None
    depth: int = Field(default=24, ge=1)
    think_time: float = Field(default=1.0, gt=0)


class AppConfig(BaseModel):
    confirm_move: bool = True
    robot_actuation: bool = False
    recovery_dir: Path = Path(".")
    database_url: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    engine: EngineSettings = Field(default_factory=EngineSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level


def load_config(path: Path = DEFAULT_CONFIG_FILE) -> AppConfig:
    """Read the configuration. A missing file means 'use the defaults', a broken file is an error."""
    if not path.exists():
        logger.info("No configuration at %s, using defaults", path)
        return AppConfig()

    try:
        return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc


def save_config(config: AppConfig, path: Path = DEFAULT_CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
