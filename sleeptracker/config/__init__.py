"""Simple YAML configuration loader for SleepTracker."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "database_path": "data/sleeptracker.db",
    },
    "concurrency": {
        "io_workers": 4,
        "join_timeout": 5.0,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/sleeptracker.log",
        "console_output": True,
    },
}


class SleepTrackerConfig:
    """SleepTracker configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used.
        """
        if config_path is None:
            self.config_file = None
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            logger.info("No configuration file given, using defaults")
            return

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file on top of the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = copy.deepcopy(DEFAULT_CONFIG)
        _merge(config, loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve database path
        if 'storage' in config and 'database_path' in config['storage']:
            db_path = config['storage']['database_path']
            if db_path != ":memory:" and not os.path.isabs(db_path):
                config['storage']['database_path'] = str(config_dir / db_path)

        # Resolve log file path
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'storage.database_path').

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
            key_path: Dot-separated path to config value (e.g., 'logging.level')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_database_path(self) -> str:
        """Get database path (":memory:" is passed through)."""
        db_path = self.get('storage.database_path', ':memory:')
        if db_path == ":memory:":
            return db_path
        return str(Path(db_path).absolute())

    def get_io_workers(self) -> int:
        """Get size of the background IO pool - CRASHES if not a positive integer."""
        workers = self.get('concurrency.io_workers', 4)
        if not isinstance(workers, int) or workers < 1:
            raise ValueError(f"concurrency.io_workers must be a positive integer, got {workers!r}")
        return workers


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
