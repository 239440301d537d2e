"""
keap_contacts.crm - CRM data model

Contact and note records plus the flat form buffer used to edit contacts.
"""

from keap_contacts.crm.contact import (
    Address,
    Contact,
    CustomField,
    EmailAddress,
    PhoneNumber,
)
from keap_contacts.crm.form import ContactForm
from keap_contacts.crm.note import Note

__all__ = [
    "Address",
    "Contact",
    "ContactForm",
    "CustomField",
    "EmailAddress",
    "Note",
    "PhoneNumber",
]
