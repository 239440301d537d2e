"""
Command-line interface for keap_contacts.

Provides CLI commands for listing, searching, creating, editing and deleting
Keap contacts and for managing the notes attached to them.

Usage:
    # Show help
    keap-contacts --help

    # List and search
    keap-contacts list
    keap-contacts list --search Smith

    # Contact detail with notes
    keap-contacts show 42

    # Create, edit, delete
    keap-contacts add --given-name Jane --family-name Doe --email jane@example.com
    keap-contacts edit 42 --phone 555-0100
    keap-contacts delete 42

    # Notes
    keap-contacts note add 42 --title "Pool opened" --body "Chlorine at 3ppm"

    # Interactive interface
    keap-contacts shell
"""

import asyncio
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import click

from keap_contacts import __version__
from keap_contacts.api.keap_api import (
    DEFAULT_BASE_URL,
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    KeapAPI,
)
from keap_contacts.cli.formatters import (
    render_contact_detail,
    render_contact_list,
    show_error,
    show_lines,
    show_success,
)
from keap_contacts.cli.shell import ContactShell
from keap_contacts.config.generator import save_config_file
from keap_contacts.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    ConfigLoader,
    resolve_api_key,
)
from keap_contacts.controller.view_controller import ContactsController
from keap_contacts.crm.form import ContactForm
from keap_contacts.utils import default_log_dir, resolve_config_dir
from keap_contacts.utils.logging import cleanup_old_logs, get_logger, setup_logging

# Form options shared by add and edit, mapped to ContactForm fields
FORM_OPTIONS = {
    "given_name": ("--given-name", "First name."),
    "family_name": ("--family-name", "Last name."),
    "email": ("--email", "Email address."),
    "phone": ("--phone", "Phone number."),
    "address": ("--address", "Street address."),
    "city": ("--city", "City."),
    "state": ("--state", "State or region."),
    "zip": ("--zip", "ZIP code."),
}


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_dir: Path, config_file: str | None) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def run_action(coro: Any) -> Any:
    """Run a controller coroutine to completion."""
    return asyncio.run(coro)


def build_api(config: dict[str, Any]) -> KeapAPI:
    """
    Create the API client from configuration.

    Raises:
        ConfigError: If no API key can be found
    """
    return KeapAPI(
        api_key=resolve_api_key(config),
        base_url=config.get("base_url", DEFAULT_BASE_URL),
        timeout=config.get("timeout", DEFAULT_TIMEOUT),
        max_retries=config.get("max_retries", DEFAULT_MAX_RETRIES),
        initial_retry_delay=config.get(
            "initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY
        ),
        max_retry_delay=config.get("max_retry_delay", DEFAULT_MAX_RETRY_DELAY),
    )


def get_controller(
    ctx: click.Context, confirm: Optional[Callable[[str], bool]] = None
) -> ContactsController:
    """Build a controller for the current command, exiting on config errors."""
    try:
        api = build_api(ctx.obj["config"])
    except ConfigError as e:
        show_error(str(e))
        sys.exit(1)

    ctx.call_on_close(api.close)
    return ContactsController(api, confirm=confirm or click.confirm)


def confirm_callback(yes: bool) -> Callable[[str], bool]:
    """Confirmation callback honouring --yes."""
    if yes:
        return lambda _message: True
    return lambda message: click.confirm(message, default=False)


def fail(controller: ContactsController) -> None:
    """Report the controller's error and exit with status 1."""
    show_error(controller.error or "Operation failed")
    sys.exit(1)


def form_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the contact form options to a command."""
    for name, (flag, help_text) in reversed(FORM_OPTIONS.items()):
        func = click.option(flag, name, default=None, help=help_text)(func)
    return func


def apply_form_values(form: ContactForm, values: dict[str, Optional[str]]) -> None:
    """Copy the options that were given onto the form buffer."""
    for name, value in values.items():
        if value is not None:
            setattr(form, name, value)


@click.group()
@click.version_option(version=__version__, prog_name="keap-contacts")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="KEAP_CONTACTS_CONFIG_DIR",
    help="Configuration directory path (default: ~/.keap-contacts).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="KEAP_CONTACTS_CONFIG_FILE",
    help="Configuration file path (default: ~/.keap-contacts/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Keap Contact Manager.

    List, search, create, edit and delete Keap CRM contacts and keep notes
    on them.

    The API key is read from the KEAP_API_KEY environment variable unless
    the configuration file names another variable.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(resolved_config_dir, config_file)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Show error but don't fail - allow CLI to work without config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    if config.get("log_dir"):
        log_dir = Path(config["log_dir"]).expanduser()
    else:
        log_dir = default_log_dir(resolved_config_dir)
    setup_logging(verbose=effective_verbose, log_dir=log_dir)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Contact Commands
# =============================================================================


@cli.command("list")
@click.option("--search", "-s", default=None, help="Match first or last name.")
@click.pass_context
def list_command(ctx: click.Context, search: str | None) -> None:
    """
    List contacts.

    Examples:

        keap-contacts list

        keap-contacts list --search Smith
    """
    controller = get_controller(ctx)

    if search:
        ok = run_action(controller.search(search))
    else:
        ok = run_action(controller.load_contacts())

    if not ok:
        fail(controller)

    show_lines(render_contact_list(controller.contacts, controller.search_term))


@cli.command("show")
@click.argument("contact_id", type=int)
@click.pass_context
def show_command(ctx: click.Context, contact_id: int) -> None:
    """Show a contact with its notes."""
    controller = get_controller(ctx)

    ok = run_action(controller.open_contact_by_id(contact_id))
    if controller.selected is None:
        fail(controller)

    show_lines(render_contact_detail(controller.selected, controller.notes))
    if not ok:
        fail(controller)


@cli.command("add")
@form_options
@click.pass_context
def add_command(ctx: click.Context, **values: Optional[str]) -> None:
    """
    Add a new contact.

    First and last name are required.

    Examples:

        keap-contacts add --given-name Jane --family-name Doe

        keap-contacts add --given-name Jane --family-name Doe \\
            --address "1 Main St" --city Springfield --state IL --zip 60001
    """
    logger = get_logger(__name__)
    controller = get_controller(ctx)

    controller.start_add()
    apply_form_values(controller.form, values)
    name = " ".join(p for p in (controller.form.given_name, controller.form.family_name) if p)

    if not run_action(controller.submit_form()):
        fail(controller)

    logger.info(f"Contact added: {name}")
    show_success(f"Added contact {name}.")


@cli.command("edit")
@click.argument("contact_id", type=int)
@form_options
@click.pass_context
def edit_command(
    ctx: click.Context, contact_id: int, **values: Optional[str]
) -> None:
    """
    Edit a contact.

    Only the given options change; pass an empty string to clear a field.

    Examples:

        keap-contacts edit 42 --phone 555-0100

        keap-contacts edit 42 --email ""
    """
    controller = get_controller(ctx)

    if not run_action(controller.open_contact_by_id(contact_id, with_notes=False)):
        fail(controller)

    controller.start_edit()
    apply_form_values(controller.form, values)

    if not run_action(controller.submit_form()):
        fail(controller)

    show_success(f"Updated contact {contact_id}.")


@cli.command("delete")
@click.argument("contact_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete_command(ctx: click.Context, contact_id: int, yes: bool) -> None:
    """Delete a contact."""
    controller = get_controller(ctx, confirm=confirm_callback(yes))

    if not run_action(controller.delete_contact(contact_id)):
        if controller.error:
            fail(controller)
        click.echo("Cancelled.")
        return

    show_success(f"Deleted contact {contact_id}.")


# =============================================================================
# Note Commands
# =============================================================================


@cli.group("note")
def note_group() -> None:
    """Manage notes attached to a contact."""


@note_group.command("add")
@click.argument("contact_id", type=int)
@click.option("--title", "-t", required=True, help="Note title.")
@click.option("--body", "-b", default="", help="Note text.")
@click.pass_context
def note_add_command(ctx: click.Context, contact_id: int, title: str, body: str) -> None:
    """Add a note to a contact."""
    if not title.strip():
        raise click.BadParameter("title must not be empty", param_hint="--title")

    controller = get_controller(ctx)

    if not run_action(controller.open_contact_by_id(contact_id, with_notes=False)):
        fail(controller)

    controller.note_form.title = title
    controller.note_form.body = body
    if not run_action(controller.add_note()):
        fail(controller)

    show_success(f"Added note to contact {contact_id}.")


@note_group.command("edit")
@click.argument("note_id", type=int)
@click.option("--contact", "contact_id", type=int, required=True, help="Contact ID.")
@click.option("--title", "-t", default=None, help="New title.")
@click.option("--body", "-b", default=None, help="New text.")
@click.pass_context
def note_edit_command(
    ctx: click.Context,
    note_id: int,
    contact_id: int,
    title: str | None,
    body: str | None,
) -> None:
    """Change the title or text of a note."""
    if title is None and body is None:
        raise click.UsageError("Give --title and/or --body.")

    controller = get_controller(ctx)

    if not run_action(controller.open_contact_by_id(contact_id, with_notes=False)):
        fail(controller)

    if not run_action(controller.update_note(note_id, title=title, body=body)):
        fail(controller)

    show_success(f"Updated note {note_id}.")


@note_group.command("delete")
@click.argument("note_id", type=int)
@click.option("--contact", "contact_id", type=int, required=True, help="Contact ID.")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def note_delete_command(
    ctx: click.Context, note_id: int, contact_id: int, yes: bool
) -> None:
    """Delete a note."""
    controller = get_controller(ctx, confirm=confirm_callback(yes))

    if not run_action(controller.open_contact_by_id(contact_id, with_notes=False)):
        fail(controller)

    if not run_action(controller.delete_note(note_id)):
        if controller.error:
            fail(controller)
        click.echo("Cancelled.")
        return

    show_success(f"Deleted note {note_id}.")


# =============================================================================
# Interactive Shell
# =============================================================================


@cli.command("shell")
@click.pass_context
def shell_command(ctx: click.Context) -> None:
    """
    Interactive contact manager.

    Shows the contact list and lets you search, view, add, edit and delete
    contacts and add notes without leaving the program.
    """
    controller = get_controller(ctx, confirm=confirm_callback(False))
    ContactShell(controller).run()


# =============================================================================
# Init Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with every option documented and
    commented out.
    """
    config_file: Path = ctx.obj["config_file"]

    success, error = save_config_file(config_file, overwrite=force)
    if not success:
        show_error(error or "Could not write configuration file")
        sys.exit(1)

    show_success(f"Configuration file created: {config_file}")
