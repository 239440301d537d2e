"""CLI output formatting functions.

This module renders contacts, notes and the contact form for the command
line. Absent values are shown as "N/A"; contacts without email, phone or
address entries render without errors.
"""

from typing import TYPE_CHECKING, Optional

import click

if TYPE_CHECKING:
    from keap_contacts.crm.contact import Address, Contact
    from keap_contacts.crm.form import ContactForm
    from keap_contacts.crm.note import Note

NOT_AVAILABLE = "N/A"

# Labels of the form fields, in display order
FORM_LABELS = (
    ("given_name", "First Name"),
    ("family_name", "Last Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("address", "Address"),
    ("city", "City"),
    ("state", "State"),
    ("zip", "ZIP Code"),
)


def format_address(address: Optional["Address"]) -> str:
    """Format an address as 'line1, locality, region zip'."""
    if address is None:
        return ""
    region_zip = " ".join(p for p in (address.region, address.zip_code) if p)
    parts = [p for p in (address.line1, address.locality, region_zip) if p]
    return ", ".join(parts)


def contact_fields(contact: "Contact") -> dict[str, str]:
    """Primary email, phone and address of a contact as display strings."""
    email = contact.primary_email()
    phone = contact.primary_phone()
    return {
        "name": contact.display_name or "(no name)",
        "email": email.email if email and email.email else NOT_AVAILABLE,
        "phone": phone.number if phone and phone.number else NOT_AVAILABLE,
        "address": format_address(contact.primary_address()) or NOT_AVAILABLE,
    }


def format_contact_row(contact: "Contact") -> str:
    """One list-view line for a contact."""
    values = contact_fields(contact)
    contact_id = contact.id if contact.id is not None else "-"
    return (
        f"[{contact_id}] {values['name']} | {values['email']} | "
        f"{values['phone']} | {values['address']}"
    )


def render_contact_list(
    contacts: list["Contact"], search_term: str = ""
) -> list[str]:
    """Lines of the list view."""
    lines = []
    if search_term:
        lines.append(f"Contacts matching '{search_term}' ({len(contacts)}):")
    else:
        lines.append(f"Contacts ({len(contacts)}):")

    if not contacts:
        lines.append("  No contacts found.")
    for contact in contacts:
        lines.append(f"  {format_contact_row(contact)}")
    return lines


def format_note_date(note: "Note") -> str:
    if note.date_created is None:
        return ""
    return note.date_created.strftime("%Y-%m-%d")


def render_contact_detail(contact: "Contact", notes: list["Note"]) -> list[str]:
    """Lines of the detail view: contact information and notes."""
    values = contact_fields(contact)
    lines = [
        values["name"],
        "",
        "Contact Information",
        f"  Email: {values['email']}",
        f"  Phone: {values['phone']}",
    ]

    address = contact.primary_address()
    if address is not None:
        region_zip = " ".join(p for p in (address.region, address.zip_code) if p)
        locality = ", ".join(p for p in (address.locality, region_zip) if p)
        lines.append("  Address:")
        if address.line1:
            lines.append(f"    {address.line1}")
        if locality:
            lines.append(f"    {locality}")
    else:
        lines.append(f"  Address: {NOT_AVAILABLE}")

    lines.extend(["", f"Notes ({len(notes)})"])
    if not notes:
        lines.append("  No notes yet.")
    for note in notes:
        note_id = note.id if note.id is not None else "-"
        lines.append(f"  [{note_id}] {note.title}")
        if note.body:
            for body_line in note.body.splitlines():
                lines.append(f"      {body_line}")
        date = format_note_date(note)
        if date:
            lines.append(f"      {date}")
    return lines


def render_form(form: "ContactForm", editing: bool) -> list[str]:
    """Lines showing the form buffer."""
    lines = ["Edit Contact" if editing else "Add New Contact"]
    for name, label in FORM_LABELS:
        lines.append(f"  {label}: {getattr(form, name)}")
    return lines


def show_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


def show_error(message: str) -> None:
    """Print a user-facing error message to stderr."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def show_success(message: str) -> None:
    click.echo(click.style(message, fg="green"))
