"""
keap_contacts.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from keap_contacts.config.generator import generate_default_config, save_config_file
from keap_contacts.config.loader import (
    DEFAULT_API_KEY_ENV,
    DEFAULT_CONFIG_FILE,
    ConfigError,
    ConfigLoader,
    resolve_api_key,
)

__all__ = [
    "DEFAULT_API_KEY_ENV",
    "DEFAULT_CONFIG_FILE",
    "ConfigError",
    "ConfigLoader",
    "generate_default_config",
    "resolve_api_key",
    "save_config_file",
]
