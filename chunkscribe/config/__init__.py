"""Simple YAML configuration loader for chunkscribe."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class RealtimeSettings(BaseModel):
    """Pause-based chunking settings for the real-time pipeline."""
    silence_threshold: float = Field(0.08, gt=0.0, le=1.0)
    pause_threshold: float = Field(3.0, gt=0.0)
    min_chunk_duration: float = Field(10.0, gt=0.0)
    max_chunk_duration: float = Field(60.0, gt=0.0)
    sample_rate: int = Field(16000, gt=0)
    channels: int = Field(1, ge=1)

    @model_validator(mode="after")
    def check_chunk_bounds(self) -> "RealtimeSettings":
        if self.max_chunk_duration < self.min_chunk_duration:
            raise ValueError(
                f"max_chunk_duration ({self.max_chunk_duration}) must not be "
                f"smaller than min_chunk_duration ({self.min_chunk_duration})")
        return self


class ChunkScribeConfig:
    """chunkscribe configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file
        """
        if not config_path:
            raise FileNotFoundError("No configuration file given")
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config or not isinstance(config, dict):
            raise ValueError("Configuration file is empty")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (('google_cloud', 'credentials_path'),
                             ('storage', 'data_directory'),
                             ('logging', 'file_path')):
            value = config.get(section, {}).get(key) if isinstance(config.get(section), dict) else None
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'realtime.pause_threshold').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_realtime_settings(self) -> RealtimeSettings:
        """Validated chunking settings from the ``realtime`` section."""
        try:
            return RealtimeSettings(**(self.get('realtime') or {}))
        except ValidationError as e:
            raise ValueError(f"Invalid realtime settings: {e}") from e

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - raises if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
