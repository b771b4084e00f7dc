"""ISBNdb client for catalog metadata.

Looks up a batch of ISBN-13 identifiers with ``POST /books`` and parses the
``data`` array into ``CatalogMetadata`` records. Identifiers the catalog does
not know are simply absent from the result.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests
from dotenv import load_dotenv

from .errors import MetadataLookupError
from .logging_utils import get_logger
from .normalization import validate_identifier

logger = get_logger("metadata")

DEFAULT_BASE_URL = "https://api2.isbndb.com"
BOOKS_ENDPOINT = "/books"
REQUEST_TIMEOUT = 30  # seconds


@dataclass(frozen=True)
class CatalogMetadata:
    """Catalog attributes for one identifier; every field may be absent."""

    identifier: str
    title: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    publisher: Optional[str] = None
    subjects: List[str] = field(default_factory=list)
    description: Optional[str] = None
    synopsis: Optional[str] = None
    binding: Optional[str] = None

    @classmethod
    def from_isbndb(cls, book: Mapping[str, Any]) -> Optional["CatalogMetadata"]:
        """Parse one ISBNdb book object; None when it carries no usable ISBN-13."""

        identifier = validate_identifier(book.get("isbn13")) or validate_identifier(book.get("isbn"))
        if identifier is None:
            return None
        return cls(
            identifier=identifier,
            title=_text(book.get("title")) or _text(book.get("title_long")),
            authors=_text_list(book.get("authors")),
            publisher=_text(book.get("publisher")),
            subjects=_text_list(book.get("subjects")),
            description=_text(book.get("description")) or _text(book.get("overview")),
            synopsis=_text(book.get("synopsis")),
            binding=_text(book.get("binding")),
        )


MetadataLookup = Callable[[Sequence[str]], List[CatalogMetadata]]


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [t for t in (_text(v) for v in value) if t]


class IsbndbClient:
    """Client for the ISBNdb v2 REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        batch_size: int = 1000,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            api_key: ISBNdb REST key sent in the Authorization header
            base_url: API base URL
            timeout: Per-request timeout in seconds
            batch_size: Identifiers per POST; larger lookups are split
            session: Optional requests session (connection reuse, testing)

        Example:
            >>> client = IsbndbClient(os.environ["ISBNDB_API_KEY"])
            >>> books = client.lookup(["9780306406157"])
        """
        if not api_key:
            raise ValueError("ISBNdb API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.books_url = self.base_url + BOOKS_ENDPOINT
        self.timeout = timeout
        self.batch_size = max(1, int(batch_size))
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, metadata_config) -> Optional["IsbndbClient"]:
        """Build a client from ``MetadataConfig``; None when disabled or no key is set."""

        if not metadata_config.enabled:
            logger.info("Catalog lookup disabled by configuration")
            return None
        load_dotenv(override=False)
        api_key = os.environ.get(metadata_config.api_key_env, "").strip()
        if not api_key:
            logger.warning(
                "Environment variable %s is not set; report will use ledger data only",
                metadata_config.api_key_env,
            )
            return None
        return cls(
            api_key=api_key,
            base_url=metadata_config.base_url,
            timeout=metadata_config.timeout_seconds,
            batch_size=metadata_config.batch_size,
        )

    def _post_batch(self, identifiers: Sequence[str]) -> List[Dict[str, Any]]:
        try:
            response = self.session.post(
                self.books_url,
                headers={"Authorization": self.api_key, "Accept": "application/json"},
                data={"isbns": ",".join(identifiers)},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise MetadataLookupError(f"ISBNdb lookup timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise MetadataLookupError(f"ISBNdb lookup failed: {e}") from e

        # No match for any identifier in the batch
        if response.status_code == 404:
            return []
        if response.status_code >= 400:
            raise MetadataLookupError(f"ISBNdb returned HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MetadataLookupError(f"ISBNdb returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise MetadataLookupError(f"Unexpected ISBNdb payload type: {type(payload).__name__}")
        books = payload.get("data", [])
        if not isinstance(books, list):
            raise MetadataLookupError("Unexpected ISBNdb payload: 'data' is not a list")
        return books

    def lookup(self, identifiers: Sequence[str]) -> List[CatalogMetadata]:
        """Fetch metadata for ``identifiers``.

        Returns:
            Zero or more CatalogMetadata, restricted to the requested identifiers

        Raises:
            MetadataLookupError: On transport, HTTP status, or payload shape errors
        """
        requested = list(dict.fromkeys(identifiers))
        if not requested:
            return []

        found: Dict[str, CatalogMetadata] = {}
        for start in range(0, len(requested), self.batch_size):
            chunk = requested[start : start + self.batch_size]
            wanted = set(chunk)
            logger.info("Fetching catalog metadata for %s identifiers", len(chunk))
            for book in self._post_batch(chunk):
                if not isinstance(book, Mapping):
                    continue
                record = CatalogMetadata.from_isbndb(book)
                if record is not None and record.identifier in wanted:
                    found.setdefault(record.identifier, record)
        return list(found.values())

    __call__ = lookup
