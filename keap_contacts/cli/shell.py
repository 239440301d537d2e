"""Interactive single-screen interface.

ContactShell renders the controller's current view after every action and
reads the next command from the terminal. Each screen offers only the
actions the controller allows from that view.
"""

import asyncio
from typing import Any, Optional

import click

from keap_contacts.cli.formatters import (
    FORM_LABELS,
    render_contact_detail,
    render_contact_list,
    render_form,
    show_error,
    show_lines,
)
from keap_contacts.controller.view_controller import (
    ContactsController,
    ControllerSnapshot,
    View,
)
from keap_contacts.crm.contact import Contact

LIST_HELP = (
    "Commands: a=add  v ID=view  e ID=edit  d ID=delete  "
    "s TERM=search  c=clear search  r=refresh  q=quit"
)
VIEW_HELP = (
    "Commands: n=add note  u ID=edit note  x ID=delete note  "
    "e=edit contact  b=back  q=quit"
)


class ContactShell:
    """
    Read-eval-render loop over a ContactsController.

    Usage:
        ContactShell(controller).run()
    """

    def __init__(self, controller: ContactsController):
        self.controller = controller
        self.running = False
        self._was_loading = False
        controller.subscribe(self._on_state_change)

    def _on_state_change(self, state: ControllerSnapshot) -> None:
        if state.loading and not self._was_loading:
            click.echo(click.style("Loading...", dim=True))
        self._was_loading = state.loading

    def _run(self, coro: Any) -> Any:
        return asyncio.run(coro)

    def run(self) -> None:
        """Run until the user quits or input ends."""
        self.running = True
        self._run(self.controller.load_contacts())

        while self.running:
            try:
                self.step()
            except (click.Abort, EOFError):
                self.running = False
        click.echo("Goodbye.")

    def step(self) -> None:
        """Render the current view and handle one user action."""
        if self.controller.error:
            show_error(self.controller.error)

        view = self.controller.view
        if view is View.LIST:
            self._list_screen()
        elif view in (View.ADD, View.EDIT):
            self._form_screen()
        else:
            self._detail_screen()

    # =========================================================================
    # Screens
    # =========================================================================

    def _list_screen(self) -> None:
        controller = self.controller
        click.echo()
        show_lines(render_contact_list(controller.contacts, controller.search_term))
        click.echo(LIST_HELP)

        command, argument = self._read_command()
        if command == "q":
            self.running = False
        elif command == "a":
            controller.start_add()
        elif command == "s":
            self._run(controller.search(argument))
        elif command == "c":
            self._run(controller.clear_search())
        elif command == "r":
            self._run(controller.load_contacts())
        elif command in ("v", "e", "d"):
            contact = self._find_contact(argument)
            if contact is None:
                return
            if command == "v":
                self._run(controller.open_contact(contact))
            elif command == "e":
                controller.start_edit(contact)
            elif contact.id is not None:
                self._run(controller.delete_contact(contact.id))
        elif command:
            click.echo(f"Unknown command: {command}")

    def _form_screen(self) -> None:
        controller = self.controller
        editing = controller.view is View.EDIT
        click.echo()
        click.echo(render_form(controller.form, editing)[0])

        for name, label in FORM_LABELS:
            value = click.prompt(
                label, default=getattr(controller.form, name), show_default=True
            )
            setattr(controller.form, name, value.strip())

        if not editing and controller.form.is_empty():
            click.echo("Nothing entered.")
            controller.cancel()
            return

        if click.confirm("Save contact?", default=True):
            self._run(controller.submit_form())
        else:
            controller.cancel()

    def _detail_screen(self) -> None:
        controller = self.controller
        if controller.selected is None:
            controller.back()
            return

        click.echo()
        show_lines(render_contact_detail(controller.selected, controller.notes))
        click.echo(VIEW_HELP)

        command, argument = self._read_command()
        if command == "q":
            self.running = False
        elif command == "b":
            controller.back()
        elif command == "e":
            controller.start_edit()
        elif command == "n":
            controller.note_form.title = click.prompt("Note title", default="")
            controller.note_form.body = click.prompt("Note content", default="")
            self._run(controller.add_note())
        elif command in ("u", "x"):
            note_id = self._parse_id(argument)
            if note_id is None:
                return
            if command == "x":
                self._run(controller.delete_note(note_id))
                return
            title = click.prompt("New title (blank keeps current)", default="")
            body = click.prompt("New content (blank keeps current)", default="")
            self._run(
                controller.update_note(
                    note_id, title=title or None, body=body or None
                )
            )
        elif command:
            click.echo(f"Unknown command: {command}")

    # =========================================================================
    # Input helpers
    # =========================================================================

    def _read_command(self) -> tuple[str, str]:
        line = click.prompt(">", default="", show_default=False, prompt_suffix=" ")
        command, _, argument = line.strip().partition(" ")
        return command.lower(), argument.strip()

    def _parse_id(self, argument: str) -> Optional[int]:
        try:
            return int(argument)
        except ValueError:
            click.echo(f"Expected a numeric ID, got '{argument}'")
            return None

    def _find_contact(self, argument: str) -> Optional[Contact]:
        contact_id = self._parse_id(argument)
        if contact_id is None:
            return None
        for contact in self.controller.contacts:
            if contact.id == contact_id:
                return contact
        click.echo(f"No contact with ID {contact_id} in the list")
        return None
