"""
Configuration management for automator.

Loads config.yaml from the automator home directory:
- $AUTOMATOR_HOME if set
- ~/.config/automator otherwise

Example config.yaml:

    log_level: INFO
    log_format: pretty
    log_file: ~/.local/state/automator/automator.log
    handler_timeout_s: 30
    api_base_url: https://services.example.org/collab/v0
    env_file: ~/.config/automator/.env
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from automator.errors import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("structured", "pretty")


@dataclass
class AutomatorConfig:
    """
    automator settings.

    Attributes:
        log_level: Logging level name
        log_format: "structured" (JSON lines) or "pretty" (rich console)
        log_file: Optional log file path
        handler_timeout_s: Timeout applied to built-in handlers (None = no timeout)
        api_base_url: Base URL handed to collaboratory clients
        env_file: Optional .env file loaded into the environment
    """
    log_level: str = "INFO"
    log_format: str = "structured"
    log_file: Optional[str] = None
    handler_timeout_s: Optional[float] = None
    api_base_url: Optional[str] = None
    env_file: Optional[str] = None

    def __post_init__(self):
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level}. Expected one of {LOG_LEVELS}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"Invalid log_format: {self.log_format}. Expected one of {LOG_FORMATS}")
        if self.handler_timeout_s is not None:
            try:
                self.handler_timeout_s = float(self.handler_timeout_s)
            except (TypeError, ValueError):
                raise ConfigError(f"handler_timeout_s must be a number, got {self.handler_timeout_s!r}")
            if self.handler_timeout_s <= 0:
                raise ConfigError("handler_timeout_s must be positive")

    @property
    def log_path(self) -> Optional[Path]:
        return Path(self.log_file).expanduser() if self.log_file else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutomatorConfig":
        """Build a config, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {unknown}")
        return cls(**data)


def get_automator_home() -> Path:
    """Return the automator home directory."""
    home = os.environ.get("AUTOMATOR_HOME")
    if home:
        return Path(home)
    return Path("~/.config/automator").expanduser()


def load_config(config_path: Optional[Path] = None) -> AutomatorConfig:
    """
    Load automator configuration from YAML.

    Args:
        config_path: Path to config file. Defaults to <home>/config.yaml

    Returns:
        AutomatorConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the config is invalid
    """
    if config_path is None:
        config_path = get_automator_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"automator config.yaml not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")

    config = AutomatorConfig.from_dict(data)
    if config.env_file:
        load_dotenv(Path(config.env_file).expanduser())
    return config
