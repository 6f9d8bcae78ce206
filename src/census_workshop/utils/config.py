"""
Configuration management for the Census workshop toolkit.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .validation import ConfigValidationError, validate_config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CENSUS_WORKSHOP_CONFIG"
API_KEY_ENV_VAR = "CENSUS_API_KEY"


def default_config_path() -> Path:
    """Location of the YAML config file, overridable through the environment."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".census_workshop" / "config.yaml"


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._load_config()
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the cached instance so the next Config() reloads from disk."""
        cls._instance = None

    def _load_config(self):
        """Load configuration from YAML file."""
        self.path = default_config_path()
        try:
            if not self.path.exists():
                self._create_default_config(self.path)

            with open(self.path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            self._config = self._merge(self._get_default_config(), loaded)
            validate_config(self._config)
        except (OSError, yaml.YAMLError, ConfigValidationError) as e:
            logger.error(f"Error loading configuration from {self.path}: {e}")
            self._config = self._get_default_config()

    def _create_default_config(self, config_path: Path):
        """Create default configuration file if it doesn't exist."""
        config = self._get_default_config()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)
        logger.info(f"Wrote default configuration to {config_path}")

    def _merge(self, defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(defaults)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "census": {
                "api_key": None,
                "timeout": 60,
                "cache_dir": str(Path.home() / ".census_workshop" / "cache"),
                "default_acs_year": 2022,
                "default_decennial_year": 2020
            },
            "visualization": {
                "seaborn_style": "whitegrid",
                "dpi": 300,
                "figure_sizes": {
                    "dotplot": [10, 12],
                    "barplot": [12, 8],
                    "choropleth": [10, 10]
                }
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        try:
            current = self._config
            for k in key.split('.'):
                current = current[k]
            return current
        except (KeyError, TypeError):
            return default


def get_api_key() -> Optional[str]:
    """
    Resolve the Census API key.

    The CENSUS_API_KEY environment variable wins over the `census.api_key`
    entry of the config file. Returns None when neither is set.
    """
    api_key = os.environ.get(API_KEY_ENV_VAR)
    if api_key:
        return api_key.strip()
    api_key = Config().get('census.api_key')
    if api_key:
        return str(api_key).strip()
    return None
