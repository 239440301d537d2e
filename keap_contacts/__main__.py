"""
Entry point for running keap_contacts as a module.

Usage:
    python -m keap_contacts --help
    python -m keap_contacts list --search Smith
    python -m keap_contacts shell
"""

from keap_contacts.cli import cli

if __name__ == "__main__":
    cli()
