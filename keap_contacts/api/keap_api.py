"""
Keap REST API wrapper for contact and note management.

Provides a high-level interface to the Keap CRM REST API (v2) for:
- Listing and searching contacts
- Creating, reading, updating, and deleting contacts
- Listing, creating, updating, and deleting notes attached to a contact
- Exponential backoff retry logic for rate limits and server errors
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any, Optional, TypeVar, Union

import requests
from requests.exceptions import RequestException, Timeout

from keap_contacts import __version__
from keap_contacts.api.errors import ErrorKind, KeapAPIError, RateLimitError
from keap_contacts.crm.contact import Contact
from keap_contacts.crm.note import Note

# Hosted Keap REST endpoint
DEFAULT_BASE_URL = "https://api.infusionsoft.com/crm/rest"

# Versioned path prefix for every endpoint
API_VERSION_PREFIX = "/v2"

# Fixed page size for contact and note listings
DEFAULT_PAGE_SIZE = 100

# HTTP timeout configuration
DEFAULT_TIMEOUT = 30.0  # seconds

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 30.0  # seconds

# Header used to correlate log lines with a single request
CORRELATION_HEADER = "X-Request-ID"

T = TypeVar("T")

logger = logging.getLogger(__name__)


def build_name_filter(term: str) -> str:
    """
    Build the filter expression matching given or family name.

    Args:
        term: Search term; single quotes are escaped by doubling

    Returns:
        Filter expression for the ``filter`` query parameter
    """
    escaped = term.replace("'", "''")
    return f"given_name~'{escaped}' OR family_name~'{escaped}'"


class KeapAPI:
    """
    Keap REST API wrapper for contact and note operations.

    The client holds no entity state: every call returns freshly parsed
    objects.

    Attributes:
        base_url: Root URL of the REST API (without the version prefix)
        session: requests.Session used for all calls

    Usage:
        api = KeapAPI(api_key="...")

        # List contacts, optionally filtered by name
        contacts = api.list_contacts(search="Smith")

        # Create a new contact
        created = api.create_contact(contact)

        # Partially update a contact
        api.update_contact(created.id, {"family_name": "Jones"})

        # Notes for a contact
        notes = api.list_notes(created.id)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        token_provider: Optional[Callable[[], str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Keap API wrapper.

        Args:
            api_key: Bearer token for the Keap API
            base_url: Root URL of the REST API
            token_provider: Callable returning a bearer token. Used when
                api_key is not given, and asked for a fresh token once when a
                request is rejected with 401.
            timeout: Request timeout in seconds (default 30)
            max_retries: Maximum attempts for retryable failures (default 3)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 30.0)
            session: Optional pre-configured requests.Session

        Raises:
            ValueError: If neither api_key nor token_provider is given
        """
        if not api_key and token_provider is None:
            raise ValueError("api_key or token_provider is required")

        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.session = session or requests.Session()
        self._token = api_key

    def __enter__(self) -> "KeapAPI":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _fetch_token(self) -> Optional[str]:
        """Ask the token provider for a bearer token."""
        if self.token_provider is None:
            return None
        try:
            return self.token_provider()
        except Exception as e:
            logger.error(f"Token provider failed: {e}")
            raise KeapAPIError(
                f"Could not obtain an API token: {e}", kind=ErrorKind.AUTH
            ) from e

    @property
    def token(self) -> str:
        """Current bearer token, fetched from the provider on first use."""
        if not self._token and self.token_provider is not None:
            self._token = self._fetch_token()
        if not self._token:
            raise KeapAPIError("No API token available", kind=ErrorKind.AUTH)
        return self._token

    def _headers(self, correlation_id: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"keap-contacts/{__version__}",
            CORRELATION_HEADER: correlation_id,
        }

    def _backoff_delay(self, response: Optional[requests.Response], delay: float) -> float:
        """Use a numeric Retry-After header when the server sends one."""
        if response is not None:
            retry_after = response.headers.get("Retry-After", "")
            if retry_after.isdigit():
                return min(float(retry_after), self.max_retry_delay)
        return delay

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Execute an authenticated request with retry.

        Args:
            method: HTTP method
            endpoint: Path below the base URL, including the version prefix
            params: Query parameters
            json_body: Body to serialize as JSON, or None for no body
            headers: Header overrides merged over the defaults

        Returns:
            Parsed JSON response, or None for an empty body

        Raises:
            RateLimitError: If rate limit retries are exhausted
            KeapAPIError: For any other failed request
        """
        url = f"{self.base_url}{endpoint}"
        operation = f"{method} {endpoint}"
        correlation_id = uuid.uuid4().hex
        data = json.dumps(json_body) if json_body is not None else None

        delay = self.initial_retry_delay
        attempt = 0
        refreshed = False

        while True:
            request_headers = self._headers(correlation_id)
            if headers:
                request_headers.update(headers)

            logger.debug(
                f"{operation} (attempt {attempt + 1}/{self.max_retries}, "
                f"request_id={correlation_id})"
            )

            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    data=data,
                    headers=request_headers,
                    timeout=self.timeout,
                )
            except Timeout as e:
                if attempt < self.max_retries - 1:
                    logger.warning(f"{operation} timed out, retrying in {delay:.1f}s")
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    attempt += 1
                    continue
                logger.error(f"{operation} timed out after {self.max_retries} attempts")
                raise KeapAPIError(
                    f"{operation} timed out",
                    kind=ErrorKind.NETWORK,
                    correlation_id=correlation_id,
                ) from e
            except RequestException as e:
                logger.error(f"{operation} failed: {e}")
                raise KeapAPIError(
                    f"{operation} failed: {e}",
                    kind=ErrorKind.NETWORK,
                    correlation_id=correlation_id,
                ) from e

            status_code = response.status_code
            if response.ok:
                return self._parse_response(response, operation, correlation_id)

            # Credential refresh - ask the provider once for a new token
            if status_code == 401 and self.token_provider is not None and not refreshed:
                logger.info(f"{operation} unauthorized, refreshing API token")
                self._token = self._fetch_token()
                refreshed = True
                continue

            # Rate limit - retry with backoff
            if status_code == 429:
                if attempt < self.max_retries - 1:
                    wait = self._backoff_delay(response, delay)
                    logger.warning(
                        f"{operation} rate limited, retrying in {wait:.1f}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(wait)
                    delay = min(delay * 2, self.max_retry_delay)
                    attempt += 1
                    continue
                raise RateLimitError(
                    f"Rate limit exceeded for {operation} "
                    f"after {self.max_retries} attempts",
                    status_code=status_code,
                    reason=response.reason,
                    correlation_id=correlation_id,
                )

            # Server error - retry with backoff
            if status_code >= 500 and attempt < self.max_retries - 1:
                logger.warning(
                    f"{operation} server error ({status_code}), "
                    f"retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                delay = min(delay * 2, self.max_retry_delay)
                attempt += 1
                continue

            # Other errors - don't retry
            logger.error(
                f"{operation} failed with status {status_code} {response.reason} "
                f"(request_id={correlation_id})"
            )
            raise KeapAPIError(
                f"API Error: {status_code} {response.reason}",
                status_code=status_code,
                reason=response.reason,
                correlation_id=correlation_id,
            )

    def _parse_response(
        self, response: requests.Response, operation: str, correlation_id: str
    ) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise KeapAPIError(
                f"{operation} returned invalid JSON",
                status_code=response.status_code,
                reason=response.reason,
                kind=ErrorKind.UNKNOWN,
                correlation_id=correlation_id,
            ) from e

    def _convert(self, what: str, convert: Callable[[Any], T], payload: Any) -> T:
        """
        Build model objects from a response payload.

        Raises:
            KeapAPIError: If the payload does not have the expected shape
        """
        try:
            return convert(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected {what} payload: {e}")
            raise KeapAPIError(
                f"Unexpected {what} payload from the Keap API",
                kind=ErrorKind.UNKNOWN,
            ) from e

    # =========================================================================
    # Contacts
    # =========================================================================

    def list_contacts(self, search: Optional[str] = None) -> list[Contact]:
        """
        List contacts, optionally filtered by name.

        Args:
            search: Substring matched against given or family name. Blank
                terms are ignored.

        Returns:
            Contacts in server order (at most one page)

        Raises:
            KeapAPIError: If listing fails
        """
        params: dict[str, Any] = {"page_size": DEFAULT_PAGE_SIZE}
        if search and search.strip():
            params["filter"] = build_name_filter(search)

        logger.debug(f"Listing contacts (search={search!r})")
        response = self._request("GET", f"{API_VERSION_PREFIX}/contacts", params=params)

        contacts = self._convert(
            "contact list",
            lambda payload: [
                Contact.from_api_response(item)
                for item in (payload or {}).get("contacts") or []
            ],
            response,
        )
        logger.info(f"Listed {len(contacts)} contacts")
        return contacts

    def get_contact(self, contact_id: int) -> Contact:
        """
        Get a single contact by ID.

        Raises:
            KeapAPIError: If contact not found or request fails
        """
        logger.debug(f"Getting contact: {contact_id}")
        response = self._request("GET", f"{API_VERSION_PREFIX}/contacts/{contact_id}")
        return self._convert("contact", Contact.from_api_response, response or {})

    def create_contact(self, contact: Contact) -> Contact:
        """
        Create a new contact.

        Args:
            contact: Contact to create (id will be ignored)

        Returns:
            Created Contact with id populated
        """
        logger.debug(f"Creating contact: {contact.display_name}")
        response = self._request(
            "POST", f"{API_VERSION_PREFIX}/contacts", json_body=contact.to_api_format()
        )
        created = self._convert("contact", Contact.from_api_response, response or {})
        logger.info(f"Created contact: {created.id}")
        return created

    def update_contact(
        self, contact_id: int, data: Union[Contact, dict[str, Any]]
    ) -> Contact:
        """
        Update an existing contact.

        Only the fields present in the body change on the server.

        Args:
            contact_id: ID of the contact to update
            data: Contact whose fields replace the server's (empty collections
                are sent so they are cleared) or a dict of fields to change

        Returns:
            Updated Contact
        """
        if isinstance(data, Contact):
            body = data.to_api_format(include_empty=True)
        else:
            body = dict(data)

        logger.debug(f"Updating contact: {contact_id}")
        response = self._request(
            "PATCH", f"{API_VERSION_PREFIX}/contacts/{contact_id}", json_body=body
        )
        logger.info(f"Updated contact: {contact_id}")
        return self._convert("contact", Contact.from_api_response, response or {})

    def delete_contact(self, contact_id: int) -> None:
        """Delete a contact."""
        logger.debug(f"Deleting contact: {contact_id}")
        self._request("DELETE", f"{API_VERSION_PREFIX}/contacts/{contact_id}")
        logger.info(f"Deleted contact: {contact_id}")

    # =========================================================================
    # Notes
    # =========================================================================

    def list_notes(self, contact_id: int) -> list[Note]:
        """
        List notes attached to a contact.

        Returns:
            Notes in server order (at most one page)
        """
        params = {"contact_id": contact_id, "page_size": DEFAULT_PAGE_SIZE}

        logger.debug(f"Listing notes for contact: {contact_id}")
        response = self._request("GET", f"{API_VERSION_PREFIX}/notes", params=params)

        notes = self._convert(
            "note list",
            lambda payload: [
                Note.from_api_response(item)
                for item in (payload or {}).get("notes") or []
            ],
            response,
        )
        logger.info(f"Listed {len(notes)} notes for contact {contact_id}")
        return notes

    def create_note(self, note: Note) -> Note:
        """
        Create a note.

        Raises:
            ValueError: If the note has no contact_id
            KeapAPIError: If creation fails
        """
        body = note.to_api_format()
        logger.debug(f"Creating note for contact: {note.contact_id}")
        response = self._request("POST", f"{API_VERSION_PREFIX}/notes", json_body=body)
        created = self._convert("note", Note.from_api_response, response or {})
        logger.info(f"Created note: {created.id}")
        return created

    def update_note(self, note_id: int, data: Union[Note, dict[str, Any]]) -> Note:
        """Update the given fields of a note."""
        body = data.to_api_format() if isinstance(data, Note) else dict(data)

        logger.debug(f"Updating note: {note_id}")
        response = self._request(
            "PATCH", f"{API_VERSION_PREFIX}/notes/{note_id}", json_body=body
        )
        logger.info(f"Updated note: {note_id}")
        return self._convert("note", Note.from_api_response, response or {})

    def delete_note(self, note_id: int) -> None:
        """Delete a note."""
        logger.debug(f"Deleting note: {note_id}")
        self._request("DELETE", f"{API_VERSION_PREFIX}/notes/{note_id}")
        logger.info(f"Deleted note: {note_id}")
