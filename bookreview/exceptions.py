"""
Domain Exceptions

Errors raised by the service layer. Routers never build these themselves;
main.py maps each kind to an HTTP status in a single exception handler.

Taxonomy:
- ValidationError: bad rating value, empty required field (never retried)
- NotFoundError: missing book, user or review
- ConflictError: duplicate review for a (user, book) pair
- AuthorizationError: non-owner mutating a review
- ExternalServiceError: AI or cover collaborator failure; swallowed by the
  recommendation engine and turned into an empty/default result
"""


class BookReviewError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookReviewError):
    """Input failed a business rule (e.g. rating outside 1-5)."""


class NotFoundError(BookReviewError):
    """A referenced book, user or review does not exist."""


class ConflictError(BookReviewError):
    """The operation would violate a uniqueness rule."""


class AuthorizationError(BookReviewError):
    """The caller does not own the resource it is trying to change."""


class ExternalServiceError(BookReviewError):
    """An external collaborator (AI text, cover lookup) failed or timed out."""
