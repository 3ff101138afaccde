"""Configuration management for taskpulse."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .utils.datetime import LeapDayPolicy

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TASKPULSE_CONFIG"


@dataclass
class ConfigModel:
    """Global configuration model for taskpulse."""

    # Analytics
    heatmap_days: int = 30
    streak_grace_days: int = 1  # 1 = a streak survives until the end of the next day
    uncategorized_label: str = "uncategorized"

    # Recurrence
    preview_count: int = 5
    leap_day_policy: LeapDayPolicy = LeapDayPolicy.CLAMP

    # Display
    date_format: str = "%Y-%m-%d"

    # File paths
    data_dir: str = "~/.taskpulse"

    def __post_init__(self):
        """Post-initialization normalisation."""
        self.data_dir = os.path.expanduser(self.data_dir)

        if isinstance(self.leap_day_policy, str):
            try:
                self.leap_day_policy = LeapDayPolicy(self.leap_day_policy)
            except ValueError:
                logger.warning(f"Unknown leap_day_policy {self.leap_day_policy!r}, using 'clamp'")
                self.leap_day_policy = LeapDayPolicy.CLAMP

        if self.heatmap_days < 0:
            logger.warning(f"heatmap_days must not be negative, got {self.heatmap_days}; using 0")
            self.heatmap_days = 0
        if self.streak_grace_days < 0:
            self.streak_grace_days = 0

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "heatmap_days": self.heatmap_days,
            "streak_grace_days": self.streak_grace_days,
            "uncategorized_label": self.uncategorized_label,
            "preview_count": self.preview_count,
            "leap_day_policy": self.leap_day_policy.value,
            "date_format": self.date_format,
            "data_dir": self.data_dir,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML.

        Unknown keys are ignored with a warning.
        """
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping")

        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning(f"Ignoring unknown config key: {key}")

        return cls(**{key: value for key, value in data.items() if key in known})

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"


def default_config_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(os.path.expanduser(env_path))
    return ConfigModel().get_config_path()


class Config:
    """Configuration manager for taskpulse."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, falling back to defaults.

        A missing file is not an error. A file that cannot be read or parsed
        is logged and the defaults are used.
        """
        config_path = Path(config_path) if config_path is not None else default_config_path()
        config = ConfigModel()

        if config_path.exists():
            try:
                config = ConfigModel.from_yaml(config_path.read_text())
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")
        else:
            logger.debug(f"No configuration at {config_path}, using defaults")

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml())
        logger.info(f"Configuration saved to {config_path}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load(config_path)

    @classmethod
    def reset(cls) -> None:
        """Forget the cached configuration."""
        cls._instance = None


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)
