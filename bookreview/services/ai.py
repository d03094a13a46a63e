"""
AI Text Generation Service

Client for an OpenAI-compatible chat completions API, used for
AI-assisted book recommendations.

Features:
- Availability check (an unconfigured API key means "no AI")
- Prompt building for recommendations and one-sentence explanations
- Parsing of "Title by Author" lines out of free-form model output
- Per-call timeouts so a slow provider cannot hold a request forever

Failure Model:
==============
Every transport, HTTP status or response-shape problem is raised as
ExternalServiceError. This client never decides what a failure means for
the caller; the recommendation engine catches the error and degrades to
an empty or default result.
"""

import logging
import re

import httpx

from bookreview.config import get_settings
from bookreview.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# The documented example key counts as "not configured"
PLACEHOLDER_API_KEY = "your-openai-api-key"

_NUMBERING = re.compile(r"^\d+[.)]\s*")


# =============================================================================
# Prompt Building & Parsing
# =============================================================================


def build_recommendation_prompt(favorite_books: list[str]) -> str:
    """
    Build the prompt asking for books similar to the user's favorites.

    Args:
        favorite_books: Entries formatted "Title by Author" (or a generic
            seed such as "Popular Fantasy books")
    """
    favorites = ", ".join(f'"{book}"' for book in favorite_books)
    return (
        f"Based on someone who likes these books: {favorites}"
        "\n\nPlease recommend 3 similar books that this person would enjoy. "
        "For each recommendation, provide the title and author in the format: "
        "'Title by Author'. One book per line. "
        "Only provide the book recommendations, no additional explanations."
    )


def build_explanation_prompt(recommendation: str, favorite_books: list[str]) -> str:
    return (
        f"Someone who likes {', '.join(favorite_books)} might also enjoy "
        f'"{recommendation}". In one short sentence, explain why this '
        "recommendation makes sense based on genre, theme, or style similarities."
    )


def parse_book_recommendations(response_text: str) -> list[str]:
    """
    Extract "Title by Author" lines from model output.

    Rules:
    - Blank lines and lines starting with '#' or '-' are ignored
    - Leading numbering ("1. ", "2) ") is removed
    - Surrounding quotes and markdown emphasis are removed
    - Only lines containing " by " are kept

    Example:
        >>> parse_book_recommendations("1. Dune by Frank Herbert\\nEnjoy!")
        ['Dune by Frank Herbert']
    """
    recommendations = []
    for raw_line in response_text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("-"):
            continue

        line = _NUMBERING.sub("", line)
        line = line.strip().strip("*").strip().strip("\"'").strip()

        if " by " in line:
            recommendations.append(line)

    return recommendations


def split_title_author(recommendation: str) -> tuple[str, str] | None:
    """
    Split "Title by Author" on the last " by ".

    Titles may contain " by " themselves ("Stand by Me by ..."), author
    names practically never do.

    Returns:
        (title, author), or None if either part is empty
    """
    if " by " not in recommendation:
        return None
    title, author = recommendation.rsplit(" by ", 1)
    title = title.strip().strip("\"'*").strip()
    author = author.strip().strip("\"'*").strip()
    if not title or not author:
        return None
    return title, author


# =============================================================================
# Client
# =============================================================================


class OpenAIService:
    """
    Synchronous client for the chat completions API.

    Args:
        api_key: Overrides settings.openai_api_key
        model: Overrides settings.openai_model
        base_url: Overrides settings.openai_base_url
        timeout: Default per-request timeout in seconds
        client: Pre-built httpx.Client (tests inject one with a
            MockTransport); when omitted one is created on first use

    Usage:
        ai = OpenAIService()
        if ai.is_available():
            lines = ai.recommend_books(["Dune by Frank Herbert"])
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.model = model or settings.openai_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.openai_timeout
        self.max_tokens = max_tokens if max_tokens is not None else settings.openai_max_tokens
        self.temperature = (
            temperature if temperature is not None else settings.openai_temperature
        )
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def is_available(self) -> bool:
        """Check that an API key is configured."""
        key = (self.api_key or "").strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def recommend_books(
        self,
        favorite_books: list[str],
        timeout: float | None = None,
    ) -> list[str]:
        """
        Ask the model for books similar to favorite_books.

        Returns:
            Parsed "Title by Author" lines (possibly empty)

        Raises:
            ExternalServiceError: Not configured, unreachable, or bad response
        """
        prompt = build_recommendation_prompt(favorite_books)
        content = self._complete(prompt, timeout)
        recommendations = parse_book_recommendations(content)
        logger.debug(f"AI returned {len(recommendations)} recommendation line(s)")
        return recommendations

    def explain_recommendation(
        self,
        recommendation: str,
        favorite_books: list[str],
        timeout: float | None = None,
    ) -> str:
        """
        Ask the model for a one-sentence reason behind a recommendation.

        Raises:
            ExternalServiceError: Not configured, unreachable, or bad response
        """
        prompt = build_explanation_prompt(recommendation, favorite_books)
        return self._complete(prompt, timeout).strip()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------
    def _complete(self, prompt: str, timeout: float | None) -> str:
        if not self.is_available():
            raise ExternalServiceError("AI service is not configured")

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = self.client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=timeout if timeout is not None else self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"AI request failed: {e}") from e
        except ValueError as e:
            raise ExternalServiceError("AI response was not valid JSON") from e

        return self._extract_content(data)

    @staticmethod
    def _extract_content(data: dict) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Unable to extract content from AI response") from e
        if not isinstance(content, str):
            raise ExternalServiceError("Unable to extract content from AI response")
        return content


# =============================================================================
# Shared Instance
# =============================================================================

_ai_service: OpenAIService | None = None


def get_ai_service() -> OpenAIService:
    """Get the process-wide AI service (created on first use)."""
    global _ai_service
    if _ai_service is None:
        _ai_service = OpenAIService()
    return _ai_service


def close_ai_service() -> None:
    """Close the shared AI service on shutdown."""
    global _ai_service
    if _ai_service is not None:
        _ai_service.close()
        _ai_service = None
