"""CLI package for keap_contacts."""

from keap_contacts.cli.formatters import (
    format_contact_row,
    render_contact_detail,
    render_contact_list,
)
from keap_contacts.cli.main import cli, get_config_dir
from keap_contacts.cli.shell import ContactShell
from keap_contacts.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "ContactShell",
    "cli",
    "format_contact_row",
    "get_config_dir",
    "render_contact_detail",
    "render_contact_list",
]
