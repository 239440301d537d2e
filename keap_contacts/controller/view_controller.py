"""
View controller for the contact-management interface.

Holds all UI state (current view, contact list, selection, notes, form
buffers, loading and error flags) and drives the Keap API client in response
to user actions.

All remote calls are blocking requests executed with ``asyncio.to_thread``,
so actions suspend without blocking the event loop and their results are
applied on the loop thread. Overlapping reloads of the same list are
resolved by sequence number: only the most recently issued request for a
slot may replace that slot's data.
"""

import asyncio
import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from keap_contacts.api.errors import KeapAPIError
from keap_contacts.api.keap_api import KeapAPI
from keap_contacts.crm.contact import Contact
from keap_contacts.crm.form import ContactForm
from keap_contacts.crm.note import Note

logger = logging.getLogger(__name__)

# User-facing failure messages, one per action
LOAD_CONTACTS_FAILED = "Failed to load contacts"
LOAD_CONTACT_FAILED = "Failed to load contact"
SAVE_CONTACT_FAILED = "Failed to save contact"
DELETE_CONTACT_FAILED = "Failed to delete contact"
LOAD_NOTES_FAILED = "Failed to load notes"
ADD_NOTE_FAILED = "Failed to add note"
UPDATE_NOTE_FAILED = "Failed to update note"
DELETE_NOTE_FAILED = "Failed to delete note"
NAMES_REQUIRED = "First name and last name are required"

DELETE_CONTACT_PROMPT = "Are you sure you want to delete this contact?"
DELETE_NOTE_PROMPT = "Are you sure you want to delete this note?"

# Sequence slots for lists that may be reloaded concurrently
CONTACTS_SLOT = "contacts"
NOTES_SLOT = "notes"


class View(Enum):
    """The screen currently shown."""

    LIST = "list"
    ADD = "add"
    EDIT = "edit"
    VIEW = "view"


class InvalidTransitionError(Exception):
    """Raised when an action is triggered from a view that does not offer it."""

    pass


@dataclass
class NoteForm:
    """Buffer for the note-creation mini form."""

    title: str = ""
    body: str = ""

    def clear(self) -> None:
        self.title = ""
        self.body = ""


@dataclass(frozen=True)
class ControllerSnapshot:
    """
    Copy of controller state handed to subscribers.

    Contacts and notes are deep copies, so later changes to the controller
    never show through an earlier snapshot.
    """

    view: View
    contacts: tuple[Contact, ...]
    selected: Optional[Contact]
    notes: tuple[Note, ...]
    form: ContactForm
    note_form: NoteForm
    search_term: str
    loading: bool
    error: str


Subscriber = Callable[[ControllerSnapshot], None]


class ContactsController:
    """
    State machine behind the contact-management interface.

    Attributes:
        api: Keap API client
        confirm: Callback asked before destructive actions; returns True to
            proceed
        view: Current View
        contacts: Contact list as last loaded
        selected: Contact being viewed or edited
        notes: Notes of the selected contact
        form: Contact form buffer
        note_form: Note form buffer
        search_term: Term applied to the contact list
        error: User-facing error message, empty when there is none
        last_error: Underlying exception of the last failure, for diagnostics

    Usage:
        controller = ContactsController(api, confirm=click.confirm)
        controller.subscribe(render)

        await controller.load_contacts()
        await controller.search("Smith")

        controller.start_add()
        controller.form.given_name = "Jane"
        controller.form.family_name = "Smith"
        await controller.submit_form()
    """

    def __init__(
        self, api: KeapAPI, confirm: Optional[Callable[[str], bool]] = None
    ):
        self.api = api
        self.confirm = confirm or (lambda _message: False)

        self.view = View.LIST
        self.contacts: list[Contact] = []
        self.selected: Optional[Contact] = None
        self.notes: list[Note] = []
        self.form = ContactForm()
        self.note_form = NoteForm()
        self.search_term = ""
        self.error = ""
        self.last_error: Optional[KeapAPIError] = None

        self._pending = 0
        self._sequences = {CONTACTS_SLOT: 0, NOTES_SLOT: 0}
        self._subscribers: list[Subscriber] = []

    # =========================================================================
    # State observation
    # =========================================================================

    @property
    def loading(self) -> bool:
        """True while any remote call is in flight."""
        return self._pending > 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with a snapshot after every state change.

        Returns:
            Function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> ControllerSnapshot:
        # One deepcopy keeps selected identical to its entry in contacts
        contacts, selected, notes = copy.deepcopy(
            (self.contacts, self.selected, self.notes)
        )
        return ControllerSnapshot(
            view=self.view,
            contacts=tuple(contacts),
            selected=selected,
            notes=tuple(notes),
            form=replace(self.form),
            note_form=replace(self.note_form),
            search_term=self.search_term,
            loading=self.loading,
            error=self.error,
        )

    def _notify(self) -> None:
        if not self._subscribers:
            return
        state = self.snapshot()
        for callback in list(self._subscribers):
            callback(state)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _require_view(self, action: str, *allowed: View) -> None:
        if self.view not in allowed:
            raise InvalidTransitionError(
                f"'{action}' is not available in the {self.view.value} view"
            )

    def _begin(self) -> None:
        self._pending += 1
        self.error = ""
        self._notify()

    def _end(self) -> None:
        self._pending -= 1
        self._notify()

    def _fail(self, message: str, error: KeapAPIError) -> None:
        self.error = message
        self.last_error = error
        logger.error(f"{message}: {error.describe()}")

    def _next_sequence(self, slot: str) -> int:
        self._sequences[slot] += 1
        return self._sequences[slot]

    def _is_current(self, slot: str, sequence: int) -> bool:
        return self._sequences[slot] == sequence

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(func, *args)

    # =========================================================================
    # Contact list
    # =========================================================================

    async def load_contacts(self) -> bool:
        """
        Reload the contact list using the current search term.

        Returns:
            True if the list was loaded (or the result was superseded by a
            newer reload), False on failure
        """
        sequence = self._next_sequence(CONTACTS_SLOT)
        term = self.search_term.strip() or None

        self._begin()
        try:
            contacts = await self._call(self.api.list_contacts, term)
        except KeapAPIError as e:
            if self._is_current(CONTACTS_SLOT, sequence):
                self._fail(LOAD_CONTACTS_FAILED, e)
                return False
            logger.debug(f"Ignoring failure of superseded contact reload #{sequence}")
            return True
        finally:
            self._end()

        if self._is_current(CONTACTS_SLOT, sequence):
            self.contacts = contacts
            self._notify()
        else:
            logger.debug(f"Discarding stale contact list from reload #{sequence}")
        return True

    async def search(self, term: str) -> bool:
        """Reload the list filtered by ``term``."""
        self._require_view("search", View.LIST)
        self.search_term = term
        return await self.load_contacts()

    async def clear_search(self) -> bool:
        """Clear the search term and reload the unfiltered list."""
        self._require_view("clear search", View.LIST)
        self.search_term = ""
        return await self.load_contacts()

    async def delete_contact(self, contact_id: int) -> bool:
        """
        Delete a contact after confirmation, then reload the list.

        Returns:
            True if the contact was deleted
        """
        self._require_view("delete", View.LIST)
        if not self.confirm(DELETE_CONTACT_PROMPT):
            logger.debug(f"Deletion of contact {contact_id} not confirmed")
            return False

        self._begin()
        try:
            await self._call(self.api.delete_contact, contact_id)
        except KeapAPIError as e:
            self._fail(DELETE_CONTACT_FAILED, e)
            return False
        finally:
            self._end()

        if self.selected is not None and self.selected.id == contact_id:
            self.selected = None
        await self.load_contacts()
        return True

    # =========================================================================
    # Form views
    # =========================================================================

    def start_add(self) -> None:
        """Open an empty form for a new contact."""
        self._require_view("add contact", View.LIST)
        self.form.clear()
        self.selected = None
        self.error = ""
        self.view = View.ADD
        self._notify()

    def start_edit(self, contact: Optional[Contact] = None) -> None:
        """
        Open the form pre-populated from ``contact``.

        Args:
            contact: Contact to edit; defaults to the selected contact
        """
        self._require_view("edit", View.LIST, View.VIEW)
        target = contact or self.selected
        if target is None:
            raise InvalidTransitionError("No contact selected to edit")

        self.selected = target
        self.form = ContactForm.from_contact(target)
        self.view = View.EDIT
        self._notify()

    def cancel(self) -> None:
        """Leave the form without saving."""
        self._require_view("cancel", View.ADD, View.EDIT)
        self.view = View.LIST
        self._notify()

    async def submit_form(self) -> bool:
        """
        Create or update the contact from the form buffer.

        On success the form is cleared, the view returns to the list and the
        list is reloaded. On failure the view and form are left as they were.

        Returns:
            True if the contact was saved
        """
        self._require_view("submit", View.ADD, View.EDIT)

        missing = self.form.validate()
        if missing:
            self.error = NAMES_REQUIRED
            logger.debug(f"Form rejected, missing fields: {', '.join(missing)}")
            self._notify()
            return False

        editing = self.view is View.EDIT and self.selected and self.selected.id
        self._begin()
        try:
            if editing:
                contact = self.form.to_contact(base=self.selected)
                await self._call(self.api.update_contact, self.selected.id, contact)
            else:
                await self._call(self.api.create_contact, self.form.to_contact())
        except KeapAPIError as e:
            self._fail(SAVE_CONTACT_FAILED, e)
            return False
        finally:
            self._end()

        self.form.clear()
        self.selected = None
        self.error = ""
        self.view = View.LIST
        self._notify()
        await self.load_contacts()
        return True

    # =========================================================================
    # Detail view
    # =========================================================================

    async def open_contact(self, contact: Contact) -> bool:
        """Show the detail view for ``contact`` and load its notes."""
        self._require_view("view", View.LIST)
        self.selected = contact
        self.notes = []
        self.note_form.clear()
        self.view = View.VIEW
        self._notify()

        if contact.id is None:
            return True
        return await self.load_notes()

    async def open_contact_by_id(self, contact_id: int, with_notes: bool = True) -> bool:
        """
        Fetch a contact by ID and show its detail view.

        Args:
            contact_id: ID of the contact to show
            with_notes: Also load the contact's notes

        Returns:
            True if the contact (and its notes) were loaded
        """
        self._begin()
        try:
            contact = await self._call(self.api.get_contact, contact_id)
        except KeapAPIError as e:
            self._fail(LOAD_CONTACT_FAILED, e)
            return False
        finally:
            self._end()

        self.selected = contact
        self.notes = []
        self.note_form.clear()
        self.view = View.VIEW
        self._notify()
        if not with_notes:
            return True
        return await self.load_notes()

    def back(self) -> None:
        """Return from the detail view to the list."""
        self._require_view("back", View.VIEW)
        self.view = View.LIST
        self._notify()

    async def load_notes(self) -> bool:
        """Reload the notes of the selected contact."""
        contact = self.selected
        if contact is None or contact.id is None:
            return False

        sequence = self._next_sequence(NOTES_SLOT)
        self._begin()
        try:
            notes = await self._call(self.api.list_notes, contact.id)
        except KeapAPIError as e:
            if self._is_current(NOTES_SLOT, sequence):
                self._fail(LOAD_NOTES_FAILED, e)
                return False
            return True
        finally:
            self._end()

        still_selected = self.selected is not None and self.selected.id == contact.id
        if self._is_current(NOTES_SLOT, sequence) and still_selected:
            self.notes = notes
            self._notify()
        else:
            logger.debug(f"Discarding stale notes of contact {contact.id}")
        return True

    async def add_note(self) -> bool:
        """
        Create a note from the note form for the selected contact.

        An empty title is a no-op.

        Returns:
            True if the note was created
        """
        self._require_view("add note", View.VIEW)
        contact = self.selected
        if contact is None or contact.id is None or not self.note_form.title.strip():
            return False

        note = Note(
            title=self.note_form.title,
            body=self.note_form.body,
            contact_id=contact.id,
        )

        self._begin()
        try:
            await self._call(self.api.create_note, note)
        except KeapAPIError as e:
            self._fail(ADD_NOTE_FAILED, e)
            return False
        finally:
            self._end()

        self.note_form.clear()
        self._notify()
        await self.load_notes()
        return True

    async def update_note(
        self,
        note_id: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> bool:
        """
        Change the title and/or body of a note, then reload the notes.

        Returns:
            True if the note was updated
        """
        self._require_view("edit note", View.VIEW)
        changes = {
            key: value
            for key, value in (("title", title), ("body", body))
            if value is not None
        }
        if not changes:
            return False

        self._begin()
        try:
            await self._call(self.api.update_note, note_id, changes)
        except KeapAPIError as e:
            self._fail(UPDATE_NOTE_FAILED, e)
            return False
        finally:
            self._end()

        await self.load_notes()
        return True

    async def delete_note(self, note_id: int) -> bool:
        """Delete a note after confirmation, then reload the notes."""
        self._require_view("delete note", View.VIEW)
        if not self.confirm(DELETE_NOTE_PROMPT):
            return False

        self._begin()
        try:
            await self._call(self.api.delete_note, note_id)
        except KeapAPIError as e:
            self._fail(DELETE_NOTE_FAILED, e)
            return False
        finally:
            self._end()

        await self.load_notes()
        return True
