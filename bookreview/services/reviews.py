"""
Reviews Service

Review lifecycle operations: create, update, delete, and read helpers.

Every mutation follows the same unit of work:
1. Validate input and check existence/ownership
2. Lock the book row (serializes mutations of the same book)
3. Write the review and flush
4. Recalculate the book's rating aggregate
5. Commit once, so the review and aggregate become visible together

Business Rules:
- One review per user per book; the unique constraint backs up the
  pre-check when two creates race
- Rating must be an integer from 1 to 5
- Review text is trimmed, blank text is stored as None, and at most
  2000 characters are accepted
- Only the review author can update or delete a review
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from bookreview.models.review import (
    MAX_RATING,
    MAX_REVIEW_TEXT_LENGTH,
    MIN_RATING,
    Review,
)
from bookreview.services.ratings import recalculate_book_rating

logger = logging.getLogger(__name__)


# =============================================================================
# Validation Helpers
# =============================================================================


def validate_rating(rating: int) -> int:
    """
    Check that rating is an integer between 1 and 5.

    Raises:
        ValidationError: If the rating is missing, not an integer, or out of range
    """
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def normalize_review_text(review_text: str | None) -> str | None:
    """
    Trim review text; blank text becomes None.

    Raises:
        ValidationError: If the trimmed text is longer than 2000 characters
    """
    if review_text is None:
        return None
    text = review_text.strip()
    if not text:
        return None
    if len(text) > MAX_REVIEW_TEXT_LENGTH:
        raise ValidationError(
            f"Review text must be at most {MAX_REVIEW_TEXT_LENGTH} characters"
        )
    return text


def _get_owned_review(db: Session, review_id: int, user_id: int, action: str) -> Review:
    review = repositories.get_review(db, review_id)
    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    if review.user_id != user_id:
        raise AuthorizationError(f"User not authorized to {action} this review")
    return review


# =============================================================================
# Lifecycle Operations
# =============================================================================


def create_review(
    db: Session,
    book_id: int,
    user_id: int,
    rating: int,
    review_text: str | None = None,
) -> Review:
    """
    Create a new review and update the book's rating aggregate.

    Args:
        db: Database session
        book_id: ID of the book being reviewed
        user_id: ID of the reviewing user
        rating: 1-5 star rating
        review_text: Optional review text

    Returns:
        The created review

    Raises:
        ValidationError: Invalid rating or text
        NotFoundError: Book or user does not exist
        ConflictError: The user already reviewed this book (use update instead)
    """
    validate_rating(rating)
    text = normalize_review_text(review_text)

    book = repositories.get_book(db, book_id, for_update=True)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    if repositories.get_user(db, user_id) is None:
        raise NotFoundError(f"User with id {user_id} not found")

    if repositories.find_review_by_user_and_book(db, user_id, book_id) is not None:
        raise ConflictError(
            "User has already reviewed this book. Update the existing review instead."
        )

    review = Review(
        book_id=book_id,
        user_id=user_id,
        rating=rating,
        review_text=text,
    )
    db.add(review)

    try:
        db.flush()
    except IntegrityError:
        # A concurrent create for the same (user, book) won the race
        db.rollback()
        raise ConflictError(
            "User has already reviewed this book. Update the existing review instead."
        ) from None

    recalculate_book_rating(db, book_id)
    db.commit()
    db.refresh(review)

    logger.info(f"Review {review.id} created by user {user_id} for book {book_id}")
    return review


def update_review(
    db: Session,
    review_id: int,
    user_id: int,
    rating: int,
    review_text: str | None = None,
) -> Review:
    """
    Update the rating and text of an existing review.

    Raises:
        NotFoundError: Review does not exist
        AuthorizationError: The user does not own the review
        ValidationError: Invalid rating or text
    """
    review = _get_owned_review(db, review_id, user_id, "update")
    validate_rating(rating)
    text = normalize_review_text(review_text)

    book_id = review.book_id
    repositories.get_book(db, book_id, for_update=True)

    review.rating = rating
    review.review_text = text
    db.flush()

    recalculate_book_rating(db, book_id)
    db.commit()
    db.refresh(review)

    logger.info(f"Review {review.id} updated by user {user_id}")
    return review


def delete_review(db: Session, review_id: int, user_id: int) -> None:
    """
    Delete a review and update its book's rating aggregate.

    Raises:
        NotFoundError: Review does not exist
        AuthorizationError: The user does not own the review
    """
    review = _get_owned_review(db, review_id, user_id, "delete")

    # Captured before deletion; the aggregate of this book must change
    book_id = review.book_id
    repositories.get_book(db, book_id, for_update=True)

    db.delete(review)
    db.flush()

    recalculate_book_rating(db, book_id)
    db.commit()

    logger.info(f"Review {review_id} deleted by user {user_id}")


# =============================================================================
# Read Helpers
# =============================================================================


def get_review(db: Session, review_id: int) -> Review:
    """Get a review by id or raise NotFoundError."""
    review = repositories.get_review(db, review_id)
    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    return review


def get_user_review_for_book(db: Session, book_id: int, user_id: int) -> Review | None:
    return repositories.find_review_by_user_and_book(db, user_id, book_id)


def has_user_reviewed_book(db: Session, book_id: int, user_id: int) -> bool:
    return get_user_review_for_book(db, book_id, user_id) is not None


def list_book_reviews(
    db: Session,
    book_id: int,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[Review], int]:
    """
    List reviews for a book, newest first.

    Returns:
        (page of reviews, total review count)

    Raises:
        NotFoundError: Book does not exist
    """
    if repositories.get_book(db, book_id) is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    total = repositories.count_reviews_for_book(db, book_id)
    items = repositories.list_reviews_for_book(db, book_id, skip=skip, limit=limit)
    return items, total


def list_user_reviews(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[Review], int]:
    """List a user's reviews, newest first, with the total count."""
    total = repositories.count_reviews_for_user(db, user_id)
    items = repositories.list_reviews_for_user(db, user_id, skip=skip, limit=limit)
    return items, total
