"""
Unified Configuration System for EPIC Image Acquisition

This module provides centralized configuration management with clear hierarchy:
1. Built-in defaults (lowest priority)
2. Configuration files (YAML/JSON)
3. Environment variables
4. Command-line arguments (highest priority)

The API key is read here once and handed to the client; no other module
reads the process environment.
"""

import os
import json
import copy
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from epic_client import EPIC_API_BASE_URL, EPIC_ARCHIVE_BASE_URL, DEFAULT_IMAGE_CATEGORY, IMAGE_CATEGORIES
from logging_utils import ConfigurationError

# Settings that must stay strings even when the environment value looks numeric
_STRING_SETTINGS = {'api.api_key', 'api.base_url', 'api.archive_base_url', 'logging.log_file'}


class EpicConfig:
    """
    Unified configuration for EPIC acquisition runs.

    Provides centralized configuration management with clear hierarchy:
    1. Built-in defaults
    2. Configuration files (YAML/JSON)
    3. Environment variables
    4. Command-line arguments (highest priority)
    """

    def __init__(self, config_file: Optional[str] = None, cli_args: Optional[Dict] = None,
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration system with proper precedence order.

        Args:
            config_file: Path to YAML or JSON configuration file
            cli_args: Nested dictionary of command-line overrides (highest priority)
            environ: Environment mapping, defaults to os.environ
        """
        self.config_file = config_file
        self.cli_args = cli_args or {}
        self.environ = os.environ if environ is None else environ
        self._config = {}
        self._load_configuration()

    def _load_configuration(self):
        """Load configuration with proper precedence order"""
        self._config = self._get_default_config()

        if self.config_file:
            file_config = self._load_config_file(self.config_file)
            self._merge_config(self._config, file_config)

        env_config = self._load_environment_config()
        self._merge_config(self._config, env_config)

        if self.cli_args:
            self._merge_config(self._config, self.cli_args)

        self._validate_configuration()

    def _get_default_config(self) -> Dict[str, Any]:
        """Built-in default configuration"""
        return {
            'api': {
                'api_key': None,  # Set via NASA_API_KEY
                'base_url': EPIC_API_BASE_URL,
                'archive_base_url': EPIC_ARCHIVE_BASE_URL,
                'image_category': DEFAULT_IMAGE_CATEGORY,
                'timeout_seconds': 60,
            },
            'acquisition': {
                'max_lookback_days': 30,  # None searches back without limit
                'assume_yes': False,
            },
            'logging': {
                'log_level': 'INFO',
                'log_file': None,
            },
        }

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            try:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    file_config = yaml.safe_load(f) or {}
                elif config_path.suffix.lower() == '.json':
                    file_config = json.load(f)
                else:
                    raise ConfigurationError(f"Unsupported config file format: {config_path.suffix}")
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Failed to parse configuration file {config_path}: {e}",
                    {'config_file': str(config_path)}
                ) from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        return file_config

    def _load_environment_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        env_config = {}

        env_mappings = {
            'NASA_API_KEY': 'api.api_key',
            'EPIC_API_BASE_URL': 'api.base_url',
            'EPIC_ARCHIVE_BASE_URL': 'api.archive_base_url',
            'EPIC_IMAGE_CATEGORY': 'api.image_category',
            'EPIC_REQUEST_TIMEOUT': 'api.timeout_seconds',
            'EPIC_MAX_LOOKBACK_DAYS': 'acquisition.max_lookback_days',
            'EPIC_LOG_LEVEL': 'logging.log_level',
        }

        for env_var, config_path in env_mappings.items():
            value = self.environ.get(env_var)
            if value is not None:
                self._set_nested_config(env_config, config_path, value)

        return env_config

    def _set_nested_config(self, config_dict: Dict, path: str, value: Any):
        """Set nested configuration value using dot notation path"""
        keys = path.split('.')
        current = config_dict

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        # Convert string values to appropriate types
        if isinstance(value, str) and path not in _STRING_SETTINGS:
            if value.lower() in ['true', 'false']:
                value = value.lower() == 'true'
            elif value.lower() in ['none', 'null', '']:
                value = None
            elif value.isdigit():
                value = int(value)
            elif value.replace('.', '', 1).isdigit():
                value = float(value)

        current[keys[-1]] = value

    def _merge_config(self, base_config: Dict, override_config: Dict):
        """Deep merge configuration dictionaries"""
        for key, value in override_config.items():
            if key in base_config and isinstance(base_config[key], dict) and isinstance(value, dict):
                self._merge_config(base_config[key], value)
            else:
                base_config[key] = value

    def _validate_configuration(self):
        """Validate final configuration"""
        for section in ['api', 'acquisition', 'logging']:
            if not isinstance(self._config.get(section), dict):
                raise ConfigurationError(f"Required configuration section missing: {section}")

        self._validate_api_config()
        self._validate_acquisition_config()
        self._validate_logging_config()

    def _validate_api_config(self):
        api = self._config['api']

        # Unquoted numeric keys in YAML/JSON files parse as numbers
        if api.get('api_key') is not None:
            api['api_key'] = str(api['api_key'])

        if api.get('image_category') not in IMAGE_CATEGORIES:
            raise ConfigurationError(f"image_category must be one of: {list(IMAGE_CATEGORIES)}")

        for url_key in ['base_url', 'archive_base_url']:
            if not api.get(url_key):
                raise ConfigurationError(f"api.{url_key} must not be empty")

        timeout = api.get('timeout_seconds')
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ConfigurationError("timeout_seconds must be a positive number or null")

    def _validate_acquisition_config(self):
        acquisition = self._config['acquisition']

        lookback = acquisition.get('max_lookback_days')
        if lookback is not None and (isinstance(lookback, bool) or not isinstance(lookback, int) or lookback < 0):
            raise ConfigurationError("max_lookback_days must be a non-negative integer or null")

        if not isinstance(acquisition.get('assume_yes', False), bool):
            raise ConfigurationError("assume_yes must be boolean")

    def _validate_logging_config(self):
        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        log_level = str(self._config['logging'].get('log_level', 'INFO')).upper()
        if log_level not in valid_log_levels:
            raise ConfigurationError(f"log_level must be one of: {valid_log_levels}")
        self._config['logging']['log_level'] = log_level

    # Public interface methods
    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation path.

        Args:
            path: Dot-separated path to configuration value (e.g., 'api.image_category')
            default: Default value if path not found

        Returns:
            Configuration value or default if not found
        """
        keys = path.split('.')
        current = self._config

        try:
            for key in keys:
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default

    def get_api_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config['api'])

    def get_acquisition_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config['acquisition'])

    def get_logging_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config['logging'])

    def require_api_key(self) -> str:
        """
        Return the API key, failing when none was configured.

        Raises:
            ConfigurationError: If NASA_API_KEY (or api.api_key) is not set
        """
        api_key = self._config['api'].get('api_key')
        if not api_key:
            raise ConfigurationError(
                "No API key configured. Set NASA_API_KEY or api.api_key in the config file."
            )
        return str(api_key)

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the full configuration with the API key masked"""
        config = copy.deepcopy(self._config)
        if config['api'].get('api_key'):
            config['api']['api_key'] = '***'
        return config
