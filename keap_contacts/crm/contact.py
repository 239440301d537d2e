"""
Contact data model for the Keap CRM.

Provides a typed Contact representation with methods for:
- Converting to/from Keap REST API v2 format
- Selecting the primary email, phone and address entry
"""

from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar

# Field tags used for the entries this interface edits
PRIMARY_EMAIL_FIELD = "EMAIL1"
PRIMARY_PHONE_FIELD = "PHONE1"
PRIMARY_ADDRESS_FIELD = "BILLING"

# Country code applied to addresses entered through the form
DEFAULT_COUNTRY_CODE = "US"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class EmailAddress:
    """A single email entry."""

    email: str
    field: str = PRIMARY_EMAIL_FIELD

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "EmailAddress":
        return cls(email=data.get("email", ""), field=data.get("field", ""))

    def to_api_format(self) -> dict[str, Any]:
        return {"email": self.email, "field": self.field}


@dataclass
class PhoneNumber:
    """A single phone entry."""

    number: str
    field: str = PRIMARY_PHONE_FIELD

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "PhoneNumber":
        return cls(number=data.get("number", ""), field=data.get("field", ""))

    def to_api_format(self) -> dict[str, Any]:
        return {"number": self.number, "field": self.field}


@dataclass
class Address:
    """A postal address entry."""

    line1: Optional[str] = None
    line2: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    zip_code: Optional[str] = None
    country_code: Optional[str] = None
    field: str = PRIMARY_ADDRESS_FIELD

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Address":
        return cls(
            line1=data.get("line1"),
            line2=data.get("line2"),
            locality=data.get("locality"),
            region=data.get("region"),
            zip_code=data.get("zip_code"),
            country_code=data.get("country_code"),
            field=data.get("field", ""),
        )

    def to_api_format(self) -> dict[str, Any]:
        return _drop_none(
            {
                "line1": self.line1,
                "line2": self.line2,
                "locality": self.locality,
                "region": self.region,
                "zip_code": self.zip_code,
                "country_code": self.country_code,
                "field": self.field,
            }
        )


@dataclass
class CustomField:
    """A custom field value attached to a contact."""

    id: int
    content: Any = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "CustomField":
        return cls(id=data.get("id", 0), content=data.get("content"))

    def to_api_format(self) -> dict[str, Any]:
        return {"id": self.id, "content": self.content}


EntryT = TypeVar("EntryT", EmailAddress, PhoneNumber, Address)


def primary_entry(entries: list[EntryT], tag: str) -> Optional[EntryT]:
    """
    Pick the entry the interface edits.

    The entry tagged with ``tag`` wins; otherwise the first entry is used.

    Args:
        entries: Entries in server order
        tag: Field tag of the primary entry (e.g. "EMAIL1")

    Returns:
        The primary entry, or None if there are no entries
    """
    for entry in entries:
        if entry.field == tag:
            return entry
    return entries[0] if entries else None


@dataclass
class Contact:
    """
    Keap contact representation.

    Attributes:
        id: Keap's numeric ID, None for contacts not yet saved
        given_name: First name
        family_name: Last name
        email_addresses: Email entries in server order
        phone_numbers: Phone entries in server order
        addresses: Address entries in server order
        custom_fields: Custom field values

    Usage:
        # Create from API response
        contact = Contact.from_api_response(api_response)

        # Read the entry shown in list and detail views
        email = contact.primary_email()

        # Convert back to API format
        api_data = contact.to_api_format()
    """

    id: Optional[int] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email_addresses: list[EmailAddress] = field(default_factory=list)
    phone_numbers: list[PhoneNumber] = field(default_factory=list)
    addresses: list[Address] = field(default_factory=list)
    custom_fields: list[CustomField] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Contact":
        """
        Create a Contact from a Keap API response.

        Args:
            data: Dictionary from the Keap API containing contact data

        Returns:
            Contact instance populated from the API response

        Example API response structure::

            {
                'id': 42,
                'given_name': 'Jane',
                'family_name': 'Doe',
                'email_addresses': [{'email': 'jane@example.com', 'field': 'EMAIL1'}],
                'phone_numbers': [{'number': '555-0100', 'field': 'PHONE1'}],
                'addresses': [{'line1': '1 Main St', 'locality': 'Springfield',
                               'region': 'IL', 'zip_code': '60001',
                               'country_code': 'US', 'field': 'BILLING'}],
                'custom_fields': [{'id': 7, 'content': 'weekly'}]
            }
        """
        return cls(
            id=data.get("id"),
            given_name=data.get("given_name"),
            family_name=data.get("family_name"),
            email_addresses=[
                EmailAddress.from_api_response(e)
                for e in data.get("email_addresses") or []
            ],
            phone_numbers=[
                PhoneNumber.from_api_response(p)
                for p in data.get("phone_numbers") or []
            ],
            addresses=[
                Address.from_api_response(a) for a in data.get("addresses") or []
            ],
            custom_fields=[
                CustomField.from_api_response(c)
                for c in data.get("custom_fields") or []
            ],
        )

    def to_api_format(self, include_empty: bool = False) -> dict[str, Any]:
        """
        Convert Contact to Keap API format for create/update operations.

        Args:
            include_empty: If True, empty collections are sent as ``[]`` so
                that a PATCH clears them on the server. If False they are
                omitted.

        Returns:
            Dictionary in Keap API format

        Note:
            - Does not include id (set by Keap on create, sent in the URL on update)
            - None scalars are omitted
        """
        body: dict[str, Any] = _drop_none(
            {"given_name": self.given_name, "family_name": self.family_name}
        )

        collections = {
            "email_addresses": [e.to_api_format() for e in self.email_addresses],
            "phone_numbers": [p.to_api_format() for p in self.phone_numbers],
            "addresses": [a.to_api_format() for a in self.addresses],
        }
        for key, entries in collections.items():
            if entries or include_empty:
                body[key] = entries

        if self.custom_fields:
            body["custom_fields"] = [c.to_api_format() for c in self.custom_fields]

        return body

    @property
    def display_name(self) -> str:
        """Given and family name joined by a space."""
        return " ".join(p for p in (self.given_name, self.family_name) if p)

    def primary_email(self) -> Optional[EmailAddress]:
        return primary_entry(self.email_addresses, PRIMARY_EMAIL_FIELD)

    def primary_phone(self) -> Optional[PhoneNumber]:
        return primary_entry(self.phone_numbers, PRIMARY_PHONE_FIELD)

    def primary_address(self) -> Optional[Address]:
        return primary_entry(self.addresses, PRIMARY_ADDRESS_FIELD)

    def __str__(self) -> str:
        return f"Contact({self.id}: {self.display_name or '<unnamed>'})"
