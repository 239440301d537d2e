"""
keap_contacts.utils - Utility module

Common utilities including logging configuration and path resolution.
"""

from keap_contacts.utils.paths import (
    DEFAULT_CONFIG_DIR,
    default_log_dir,
    resolve_config_dir,
)

__all__ = ["resolve_config_dir", "default_log_dir", "DEFAULT_CONFIG_DIR"]
