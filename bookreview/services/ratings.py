"""
Ratings Service

Maintains the denormalized rating aggregate on the Book model:
- average_rating: The mean of all review ratings, 2 decimals, half-up
- review_count: Total number of reviews

Consistency Contract:
=====================
The aggregate is part of the unit of work that changes a review. Review
services call recalculate_book_rating() after their own write and before
their commit, so no reader ever sees a review set that disagrees with the
book's aggregate. Nothing here runs in the background.

Rounding:
=========
The mean is computed from the integer count and sum with Decimal
arithmetic and quantized with ROUND_HALF_UP. Floats never enter the
calculation, so 4.125 becomes 4.13 rather than whatever the binary
representation happens to round to.
"""

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import NotFoundError
from bookreview.models import Book

logger = logging.getLogger(__name__)

ZERO_RATING = Decimal("0.00")
TWO_PLACES = Decimal("0.01")


def round_rating(total: int | Decimal, count: int) -> Decimal:
    """Mean of count ratings summing to total, half-up to 2 decimals."""
    if count == 0:
        return ZERO_RATING
    return (Decimal(total) / Decimal(count)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_rating_aggregate(ratings: Iterable[int]) -> tuple[Decimal, int]:
    """
    Compute (average_rating, review_count) for a collection of ratings.

    Example:
        >>> compute_rating_aggregate([4, 5, 5, 3])
        (Decimal('4.25'), 4)
        >>> compute_rating_aggregate([])
        (Decimal('0.00'), 0)
    """
    values = list(ratings)
    return round_rating(sum(values), len(values)), len(values)


def recalculate_book_rating(db: Session, book_id: int) -> Book | None:
    """
    Recalculate and store a book's rating aggregate.

    Called after any review create/update/delete operation to keep
    the denormalized fields in sync.

    The book row is locked (SELECT ... FOR UPDATE) before counting, so two
    transactions recalculating the same book serialize and the later one
    counts the earlier one's committed review. The change is flushed but
    not committed: the caller commits it together with the review write.

    Args:
        db: Database session
        book_id: ID of the book to update

    Returns:
        The updated book, or None if the book no longer exists (a review
        mutation raced with the book's deletion; nothing to update)
    """
    book = repositories.get_book(db, book_id, for_update=True)
    if book is None:
        logger.debug(f"Book {book_id} no longer exists, skipping rating recalculation")
        return None

    review_count = repositories.count_reviews_for_book(db, book_id)
    rating_total = repositories.sum_ratings_for_book(db, book_id)

    book.average_rating = round_rating(rating_total, review_count)
    book.review_count = review_count
    db.flush()

    return book


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Recalculate rating aggregations for all books.

    Useful after bulk imports or to repair data written outside the
    review services.

    Args:
        db: Database session

    Returns:
        Number of books updated
    """
    book_ids = db.execute(select(Book.id).order_by(Book.id)).scalars().all()

    for book_id in book_ids:
        recalculate_book_rating(db, book_id)

    db.commit()
    logger.info(f"Recalculated rating aggregates for {len(book_ids)} books")
    return len(book_ids)


def get_rating_statistics(db: Session, book_id: int) -> dict:
    """
    Get rating statistics for a book.

    Returns:
        Dict with book_id, average_rating, review_count and
        rating_distribution (count of each rating 1-5)

    Raises:
        NotFoundError: If the book does not exist
    """
    book = repositories.get_book(db, book_id)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    return {
        "book_id": book.id,
        "average_rating": book.average_rating,
        "review_count": book.review_count,
        "rating_distribution": repositories.rating_distribution_for_book(db, book_id),
    }
