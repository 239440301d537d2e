"""
Where keap-contacts keeps its files.

The configuration directory holds config.yaml and the logs/ directory.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CONFIG_DIR = Path.home() / ".keap-contacts"

# Overrides DEFAULT_CONFIG_DIR when set and non-empty
CONFIG_DIR_ENV_VAR = "KEAP_CONTACTS_CONFIG_DIR"

LOGS_DIR_NAME = "logs"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Pick the configuration directory.

    An explicit ``config_dir`` wins, then $KEAP_CONTACTS_CONFIG_DIR, then
    ~/.keap-contacts. The result is absolute with ``~`` expanded.
    """
    if config_dir is None:
        config_dir = os.environ.get(CONFIG_DIR_ENV_VAR) or DEFAULT_CONFIG_DIR
    return Path(config_dir).expanduser().resolve()


def default_log_dir(config_dir: Path | str | None = None) -> Path:
    """Logs directory inside the configuration directory."""
    return resolve_config_dir(config_dir) / LOGS_DIR_NAME
