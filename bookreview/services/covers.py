"""
Book Cover Service

Looks up cover images through the Open Library search API, which is free
and needs no API key.

cover_url() always returns a usable URL: when the search fails, times out
or finds no cover, it falls back to a generated placeholder image showing
the title and author. Callers never see an exception from this module.
"""

import logging
from urllib.parse import quote_plus

import httpx

from bookreview.config import get_settings

logger = logging.getLogger(__name__)

OPEN_LIBRARY_COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"
PLACEHOLDER_COVER_URL = "https://placehold.co/300x400?text={title}%0A%0ABy:{author}"

MAX_PLACEHOLDER_TITLE = 30
MAX_PLACEHOLDER_AUTHOR = 20


def _truncate(value: str, max_length: int) -> str:
    return value if len(value) <= max_length else value[:max_length] + "..."


def placeholder_cover_url(title: str, author: str) -> str:
    """
    Generated cover showing the (truncated) title and author.

    Example:
        >>> placeholder_cover_url("Dune", "Frank Herbert")
        'https://placehold.co/300x400?text=Dune%0A%0ABy:Frank+Herbert'
    """
    return PLACEHOLDER_COVER_URL.format(
        title=quote_plus(_truncate(title, MAX_PLACEHOLDER_TITLE)),
        author=quote_plus(_truncate(author, MAX_PLACEHOLDER_AUTHOR)),
    )


class BookCoverService:
    """
    Cover image lookup.

    Args:
        search_url: Overrides settings.cover_search_url
        timeout: Default per-request timeout in seconds
        client: Pre-built httpx.Client (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        search_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings()
        self.search_url = search_url or settings.cover_search_url
        self.timeout = timeout if timeout is not None else settings.cover_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def cover_url(self, title: str, author: str, timeout: float | None = None) -> str:
        """
        Get a cover image URL for a title and author.

        Args:
            title: Book title
            author: Book author
            timeout: Per-call timeout, overriding the default

        Returns:
            An Open Library cover URL, or a placeholder URL
        """
        try:
            response = self.client.get(
                self.search_url,
                params={
                    "q": f"{title} {author}",
                    "limit": "1",
                    "fields": "cover_i,title,author_name",
                },
                timeout=timeout if timeout is not None else self.timeout,
            )
            response.raise_for_status()
            docs = response.json().get("docs") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Cover lookup failed for '{title}' by {author}: {e}")
            return placeholder_cover_url(title, author)

        if isinstance(docs, list) and docs and isinstance(docs[0], dict) and docs[0].get("cover_i") is not None:
            return OPEN_LIBRARY_COVER_URL.format(cover_id=docs[0]["cover_i"])

        return placeholder_cover_url(title, author)


# =============================================================================
# Shared Instance
# =============================================================================

_cover_service: BookCoverService | None = None


def get_cover_service() -> BookCoverService:
    """Get the process-wide cover service (created on first use)."""
    global _cover_service
    if _cover_service is None:
        _cover_service = BookCoverService()
    return _cover_service


def close_cover_service() -> None:
    global _cover_service
    if _cover_service is not None:
        _cover_service.close()
        _cover_service = None
