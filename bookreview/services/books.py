"""
Books Service

Catalog reads used by the HTTP layer, plus book deletion. Reviews of a
deleted book are removed with it; there is no aggregate left to maintain.

Browsing:
- list_books: the whole catalog, paginated, sortable
- search_books: title/author/description text search with filters
- get_popular_books / get_recent_books: short ranked lists
- get_catalog_statistics: catalog-wide totals from the stored aggregates
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import NotFoundError, ValidationError
from bookreview.models import Book
from bookreview.services.ratings import round_rating

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = {"asc", "desc"}


def get_book(db: Session, book_id: int) -> Book:
    """Get a book by id or raise NotFoundError."""
    book = repositories.get_book(db, book_id)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    return book


def list_books(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    sort: str = "created_at",
    direction: str = "desc",
) -> tuple[list[Book], int]:
    """
    List catalog books, newest first by default.

    Raises:
        ValidationError: Unknown sort field or direction
    """
    if sort not in repositories.BOOK_SORT_COLUMNS:
        allowed = ", ".join(sorted(repositories.BOOK_SORT_COLUMNS))
        raise ValidationError(f"Cannot sort by '{sort}'; use one of: {allowed}")
    if direction.lower() not in SORT_DIRECTIONS:
        raise ValidationError("Sort direction must be 'asc' or 'desc'")

    return repositories.list_books(
        db, skip, limit, sort=sort, descending=direction.lower() == "desc"
    )


def search_books(
    db: Session,
    query: str,
    skip: int = 0,
    limit: int = 10,
    min_rating: float | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
) -> tuple[list[Book], int]:
    """
    Search title, author and description, best rated first.

    Raises:
        ValidationError: Blank query or min_year after max_year
    """
    if not query or not query.strip():
        raise ValidationError("Search query must not be empty")
    if min_year is not None and max_year is not None and min_year > max_year:
        raise ValidationError("min_year must not be after max_year")

    return repositories.search_books(
        db,
        query,
        skip,
        limit,
        min_rating=Decimal(str(min_rating)) if min_rating is not None else None,
        min_year=min_year,
        max_year=max_year,
    )


def get_popular_books(db: Session, limit: int = 10, min_review_count: int = 1) -> list[Book]:
    """Most reviewed books; unreviewed books never count as popular."""
    if limit <= 0:
        return []
    return repositories.find_popular_books(db, max(1, min_review_count), limit)


def get_recent_books(db: Session, limit: int = 10) -> list[Book]:
    if limit <= 0:
        return []
    return repositories.find_recent_books(db, limit)


def get_catalog_statistics(db: Session) -> dict:
    """
    Catalog totals plus the mean of per-book averages over reviewed books.

    The mean uses the same half-up rounding as a book's own aggregate and
    is 0.00 when no book has been reviewed.
    """
    stats = repositories.get_catalog_statistics(db)
    rating_sum = stats.pop("rating_sum")
    stats["average_rating"] = round_rating(rating_sum, stats["reviewed_books"])
    return stats


def delete_book(db: Session, book_id: int) -> None:
    """
    Delete a book, its reviews and its favorite links.

    Raises:
        NotFoundError: Book does not exist
    """
    book = repositories.get_book(db, book_id, for_update=True)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    db.delete(book)
    db.commit()
    logger.info(f"Book {book_id} deleted")
