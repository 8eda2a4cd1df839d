"""
Configuration Management

Handles loading and managing configuration files for the Install Planner.
Environment defaults are read with python-decouple, so they can also come
from a ``.env`` or ``settings.ini`` file.
"""

import logging
from pathlib import Path
from typing import Dict, Any

import yaml
from decouple import config

from .exceptions import ConfigurationError
from .constants import KubernetesConstants, FileConstants, ErrorMessages

logger = logging.getLogger(__name__)


def load_environment_defaults() -> Dict[str, Any]:
    """
    Read default values from the environment

    Returns:
        Dict with the same section layout as a configuration file
    """
    return {
        'catalog': {
            'namespace': config('INSTALL_PLANNER_CATALOG_NAMESPACE', default='olm'),
        },
        'install': {
            'namespace': config('INSTALL_PLANNER_NAMESPACE', default=KubernetesConstants.DEFAULT_NAMESPACE),
        },
        'output': {
            'format': config('INSTALL_PLANNER_OUTPUT_FORMAT', default=FileConstants.OutputFormat.YAML.value),
        },
        'global': {
            'debug': config('INSTALL_PLANNER_DEBUG', default=False, cast=bool),
        },
    }


class ConfigManager:
    """Manages configuration loading and validation"""

    # Every key is optional; keys not listed here are rejected
    CONFIG_SCHEMA = {
        'catalog': {
            'name': str,
            'namespace': str,
        },
        'install': {
            'namespace': str,
            'replaces': str,
            'qualified': bool,
        },
        'output': {
            'format': str,
            'path': str,
        },
        'global': {
            'debug': bool,
        },
    }

    CHOICES = {
        'output.format': FileConstants.OutputFormat.choices(),
    }

    def __init__(self):
        """Initialize configuration manager"""
        self.config_data = {}
        self.config_file_path = None

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file

        Args:
            config_path: Path to configuration file

        Returns:
            Dict containing configuration data

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise ConfigurationError(ErrorMessages.ConfigError.CONFIG_FILE_NOT_FOUND.format(config_path=config_path))

        if not config_file.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e

        self.config_file_path = config_path
        logger.info(f"Successfully loaded configuration from {config_path}")

        self._validate_config()

        return self.config_data

    def _validate_config(self) -> None:
        """
        Validate configuration structure and values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.config_data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        self._validate_section(self.config_data, self.CONFIG_SCHEMA)

    def _validate_section(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Check one mapping of the configuration against its schema

        Nested schema dicts describe sections; type entries describe leaf
        values. None is accepted anywhere and means "not set".
        """
        for key, value in data.items():
            current_path = f"{path}.{key}" if path else str(key)
            if key not in schema:
                raise ConfigurationError(f"Unknown configuration key: {current_path}")
            if value is None:
                continue

            expected = schema[key]
            if isinstance(expected, dict):
                if not isinstance(value, dict):
                    raise ConfigurationError(f"{current_path} must be a dict")
                self._validate_section(value, expected, current_path)
                continue

            if not isinstance(value, expected):
                raise ConfigurationError(f"{current_path} must be a {expected.__name__}")

            choices = self.CHOICES.get(current_path)
            if choices and value not in choices:
                raise ConfigurationError(
                    f"{current_path} must be one of: {', '.join(repr(c) for c in choices)}"
                )

    def get_config(self) -> Dict[str, Any]:
        """
        Get current configuration data

        Returns:
            Dict containing configuration data
        """
        return self.config_data.copy()

    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key

        Args:
            key: Configuration key (supports dot notation like 'catalog.name')
            default: Default value if key not found

        Returns:
            Configuration value, falling back to the environment default and then default
        """
        for source in (self.config_data, load_environment_defaults()):
            value = source
            try:
                for k in key.split('.'):
                    value = value[k]
            except (KeyError, TypeError):
                continue
            if value is not None:
                return value
        return default
