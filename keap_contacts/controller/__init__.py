"""
keap_contacts.controller - UI state machine

Holds view state and dispatches user actions to the Keap API client.
"""

from keap_contacts.controller.view_controller import (
    ContactsController,
    ControllerSnapshot,
    InvalidTransitionError,
    NoteForm,
    View,
)

__all__ = [
    "ContactsController",
    "ControllerSnapshot",
    "InvalidTransitionError",
    "NoteForm",
    "View",
]
