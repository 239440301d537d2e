"""
Configuration loader module for keap-contacts.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Basic validation of configuration structure
- Resolving the Keap API credential from config or environment
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from keap_contacts.utils.paths import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

# Environment variable holding the API key when the config names none
DEFAULT_API_KEY_ENV = "KEAP_API_KEY"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


# Valid configuration keys and their expected types
VALID_KEYS: dict[str, type[Any] | tuple[type[Any], ...]] = {
    # API options
    "base_url": str,
    "api_key": str,
    "api_key_env": str,
    "timeout": (int, float),
    "max_retries": int,
    "initial_retry_delay": (int, float),
    "max_retry_delay": (int, float),
    # CLI options
    "verbose": bool,
    # Logging options
    "log_dir": str,
    "log_retention_count": int,
}


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        config_file: str = DEFAULT_CONFIG_FILE,
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.keap-contacts/ or $KEAP_CONTACTS_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    @property
    def config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self.config_path)

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Returns an empty dict if the file doesn't exist, allowing
        graceful operation with CLI defaults.

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are ignored.

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            if key not in VALID_KEYS:
                continue
            expected_type = VALID_KEYS[key]
            # bool is an int subclass; don't accept it for numeric options
            if not isinstance(value, expected_type) or (
                isinstance(value, bool) and expected_type is not bool
            ):
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        if "base_url" in config and not config["base_url"].startswith(
            ("http://", "https://")
        ):
            raise ConfigError(f"base_url must be an http(s) URL, got {config['base_url']}")

        if "max_retries" in config and config["max_retries"] < 1:
            raise ConfigError(f"max_retries must be >= 1, got {config['max_retries']}")

        if "log_retention_count" in config and config["log_retention_count"] < 0:
            raise ConfigError(
                f"log_retention_count must be >= 0, got {config['log_retention_count']}"
            )

        for key in ("timeout", "initial_retry_delay", "max_retry_delay"):
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config


def resolve_api_key(config: dict[str, Any]) -> str:
    """
    Find the Keap API key.

    Priority:
        1. api_key in config (direct key - not recommended)
        2. Environment variable named by api_key_env in config
        3. KEAP_API_KEY environment variable

    Args:
        config: Loaded configuration dictionary

    Returns:
        The API key

    Raises:
        ConfigError: If no API key is available
    """
    api_key = config.get("api_key")
    if api_key:
        return api_key

    env_var_name = config.get("api_key_env") or DEFAULT_API_KEY_ENV
    api_key = os.environ.get(env_var_name)
    if api_key:
        return api_key

    raise ConfigError(
        f"No Keap API key found. Set the {env_var_name} environment variable "
        f"or add api_key_env to your configuration file."
    )
