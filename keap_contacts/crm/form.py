"""
Flat form buffer for creating and editing contacts.

The form mirrors the primary email, phone and address of a contact as plain
strings. It is reshaped into the nested Contact structure only when the form
is submitted.
"""

from dataclasses import dataclass, fields, replace
from typing import Optional

from keap_contacts.crm.contact import (
    DEFAULT_COUNTRY_CODE,
    PRIMARY_ADDRESS_FIELD,
    PRIMARY_EMAIL_FIELD,
    PRIMARY_PHONE_FIELD,
    Address,
    Contact,
    EmailAddress,
    PhoneNumber,
)

REQUIRED_FIELDS = ("given_name", "family_name")


def _primary_index(entries: list, tag: str) -> Optional[int]:
    for index, entry in enumerate(entries):
        if entry.field == tag:
            return index
    return 0 if entries else None


def _merge_entry(entries: list, tag: str, updated, factory) -> list:
    """
    Put the edited primary entry back into a copy of ``entries``.

    ``updated`` maps the current primary entry (or None) to its replacement,
    or to None when the entry should be removed. ``factory`` creates a new
    entry when there is no primary entry yet.
    """
    result = [replace(entry) for entry in entries]
    index = _primary_index(result, tag)

    if index is None:
        new_entry = factory()
        if new_entry is not None:
            result.append(new_entry)
        return result

    new_entry = updated(result[index])
    if new_entry is None:
        del result[index]
    else:
        result[index] = new_entry
    return result


@dataclass
class ContactForm:
    """
    Editable scalar fields of a contact.

    Usage:
        form = ContactForm.from_contact(contact)
        form.city = "Springfield"
        if not form.validate():
            api.update_contact(contact.id, form.to_contact(base=contact))
    """

    given_name: str = ""
    family_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactForm":
        """Populate the form from a contact's primary entries."""
        email = contact.primary_email()
        phone = contact.primary_phone()
        address = contact.primary_address() or Address()

        return cls(
            given_name=contact.given_name or "",
            family_name=contact.family_name or "",
            email=email.email if email else "",
            phone=phone.number if phone else "",
            address=address.line1 or "",
            city=address.locality or "",
            state=address.region or "",
            zip=address.zip_code or "",
        )

    def validate(self) -> list[str]:
        """
        Check required fields.

        Returns:
            Names of required fields that are empty; an empty list means valid
        """
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, "")

    def to_contact(self, base: Optional[Contact] = None) -> Contact:
        """
        Build a Contact from the form values.

        Without ``base`` the contact holds at most one email, phone and
        address, each only when its field is filled in. With ``base`` (the
        contact being edited) the primary entries of ``base`` are replaced in
        place and all other entries are carried over unchanged.

        Args:
            base: Contact being edited, or None when adding

        Returns:
            A new Contact; ``base`` is not modified
        """
        return Contact(
            id=base.id if base else None,
            given_name=self.given_name,
            family_name=self.family_name,
            email_addresses=self._email_entries(base),
            phone_numbers=self._phone_entries(base),
            addresses=self._address_entries(base),
        )

    def _email_entries(self, base: Optional[Contact]) -> list[EmailAddress]:
        def new_entry() -> Optional[EmailAddress]:
            return EmailAddress(self.email, PRIMARY_EMAIL_FIELD) if self.email else None

        def updated(entry: EmailAddress) -> Optional[EmailAddress]:
            if not self.email:
                return None
            return replace(
                entry, email=self.email, field=entry.field or PRIMARY_EMAIL_FIELD
            )

        existing = base.email_addresses if base else []
        return _merge_entry(existing, PRIMARY_EMAIL_FIELD, updated, new_entry)

    def _phone_entries(self, base: Optional[Contact]) -> list[PhoneNumber]:
        def new_entry() -> Optional[PhoneNumber]:
            return PhoneNumber(self.phone, PRIMARY_PHONE_FIELD) if self.phone else None

        def updated(entry: PhoneNumber) -> Optional[PhoneNumber]:
            if not self.phone:
                return None
            return replace(
                entry, number=self.phone, field=entry.field or PRIMARY_PHONE_FIELD
            )

        existing = base.phone_numbers if base else []
        return _merge_entry(existing, PRIMARY_PHONE_FIELD, updated, new_entry)

    def _address_entries(self, base: Optional[Contact]) -> list[Address]:
        def new_entry() -> Optional[Address]:
            if not self.address:
                return None
            return Address(
                line1=self.address,
                locality=self.city or None,
                region=self.state or None,
                zip_code=self.zip or None,
                country_code=DEFAULT_COUNTRY_CODE,
                field=PRIMARY_ADDRESS_FIELD,
            )

        def updated(entry: Address) -> Optional[Address]:
            if not self.address:
                return None
            return replace(
                entry,
                line1=self.address,
                locality=self.city or None,
                region=self.state or None,
                zip_code=self.zip or None,
                field=entry.field or PRIMARY_ADDRESS_FIELD,
            )

        existing = base.addresses if base else []
        return _merge_entry(existing, PRIMARY_ADDRESS_FIELD, updated, new_entry)
