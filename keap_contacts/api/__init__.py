"""
keap_contacts.api - Keap REST API client

Stateless wrapper over the contact and note endpoints.
"""

from keap_contacts.api.errors import ErrorKind, KeapAPIError, RateLimitError
from keap_contacts.api.keap_api import DEFAULT_BASE_URL, KeapAPI

__all__ = [
    "DEFAULT_BASE_URL",
    "ErrorKind",
    "KeapAPI",
    "KeapAPIError",
    "RateLimitError",
]
