"""
Configuration file generator for keap-contacts.

Generates the default configuration file with documentation for every
available option.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# Keap Contacts Configuration
# ===========================
#
# CLI arguments always override these values.
#
# To use this configuration:
#   1. Save as ~/.keap-contacts/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run keap-contacts commands normally


# API Credential
# --------------

# Name of the environment variable holding your Keap API key.
# Keeping the key in the environment keeps it out of this file.
# Default: KEAP_API_KEY
# api_key_env: KEAP_API_KEY

# The key itself (not recommended - prefer api_key_env)
# api_key: KeapAK-...


# API Options
# -----------

# Root URL of the Keap REST API
# Default: https://api.infusionsoft.com/crm/rest
# base_url: https://api.infusionsoft.com/crm/rest

# Request timeout in seconds
# Default: 30
# timeout: 30

# Maximum attempts for rate-limited (429) or failed (5xx) requests
# Default: 3
# max_retries: 3

# Initial delay between retries in seconds (doubles after each retry)
# Default: 1.0
# initial_retry_delay: 1.0

# Maximum delay between retries in seconds
# Default: 30.0
# max_retry_delay: 30.0


# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: false

# Directory for log files
# Default: ~/.keap-contacts/logs
# log_dir: ~/.keap-contacts/logs

# Number of daily log files to keep (0 disables cleanup)
# Default: 10
# log_retention_count: 10
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save the default configuration file to ``config_path``.

    Parent directories are created as needed. The file may hold an API key,
    so it is made readable by its owner only.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite an existing file

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = Path(config_path).expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
