"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import InvalidTimeFormat
from .domain.models import PackageWindow
from .domain.time_utils import parse_time_of_day


class PackageDefaults(BaseModel):
    """Package window used when a payload carries none."""
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Canonicalize to HH:MM:SS."""
        try:
            return str(parse_time_of_day(value))
        except InvalidTimeFormat as exc:
            raise ValueError(str(exc)) from exc

    def to_window(self) -> PackageWindow:
        return PackageWindow.from_strings(self.start, self.end)


class AppConfig(BaseModel):
    """Application configuration."""
    database_url: str = "sqlite:///renewal_slots.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    package: Optional[PackageDefaults] = None
    config_dir: Optional[Path] = Field(default=None, exclude=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def resolved_database_url(self) -> str:
        """Database URL with relative SQLite paths anchored at the config file."""
        url = self.database_url
        prefix = "sqlite:///"
        if url.startswith(prefix) and self.config_dir is not None:
            path = url[len(prefix):]
            if path and not path.startswith("/") and path != ":memory:":
                return f"{prefix}{(self.config_dir / path).resolve()}"
        return url

    def default_window(self) -> Optional[PackageWindow]:
        return self.package.to_window() if self.package else None

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data, config_dir=config_path.resolve().parent)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load the given config file, or defaults when no file is found."""
    path = config_path or get_default_config_path()
    if config_path is None and not path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(path)
