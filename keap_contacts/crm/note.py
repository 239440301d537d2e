"""
Note data model for the Keap CRM.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        # Handle both 'Z' suffix and timezone offset
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


@dataclass
class Note:
    """
    A free-text note attached to a contact.

    date_created and last_updated are assigned by the server and are never
    sent back in create/update bodies.
    """

    id: Optional[int] = None
    title: str = ""
    body: str = ""
    contact_id: Optional[int] = None
    date_created: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Note":
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            body=data.get("body") or "",
            contact_id=data.get("contact_id"),
            date_created=_parse_timestamp(data.get("date_created")),
            last_updated=_parse_timestamp(data.get("last_updated")),
        )

    def to_api_format(self) -> dict[str, Any]:
        """
        Convert Note to Keap API format.

        Raises:
            ValueError: If contact_id is missing
        """
        if self.contact_id is None:
            raise ValueError("contact_id is required for a note")
        return {"title": self.title, "body": self.body, "contact_id": self.contact_id}
