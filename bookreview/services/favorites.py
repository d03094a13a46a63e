"""
Favorites Service

Manages a user's favorite books, the main input signal for
recommendations.
"""

import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import NotFoundError
from bookreview.models import Book, user_favorites

logger = logging.getLogger(__name__)


def _require_book_and_user(db: Session, book_id: int, user_id: int) -> None:
    if repositories.get_book(db, book_id) is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    if repositories.get_user(db, user_id) is None:
        raise NotFoundError(f"User with id {user_id} not found")


def add_to_favorites(db: Session, book_id: int, user_id: int) -> bool:
    """
    Add a book to a user's favorites.

    Returns:
        True if added, False if it was already a favorite

    Raises:
        NotFoundError: Book or user does not exist
    """
    _require_book_and_user(db, book_id, user_id)

    if repositories.is_favorite(db, user_id, book_id):
        return False

    db.execute(insert(user_favorites).values(user_id=user_id, book_id=book_id))
    db.commit()
    logger.info(f"User {user_id} added book {book_id} to favorites")
    return True


def remove_from_favorites(db: Session, book_id: int, user_id: int) -> bool:
    """
    Remove a book from a user's favorites.

    Returns:
        True if removed, False if it was not a favorite

    Raises:
        NotFoundError: Book or user does not exist
    """
    _require_book_and_user(db, book_id, user_id)

    result = db.execute(
        delete(user_favorites).where(
            user_favorites.c.user_id == user_id,
            user_favorites.c.book_id == book_id,
        )
    )
    db.commit()

    removed = result.rowcount > 0
    if removed:
        logger.info(f"User {user_id} removed book {book_id} from favorites")
    return removed


def is_book_favorited(db: Session, book_id: int, user_id: int) -> bool:
    """
    Raises:
        NotFoundError: Book or user does not exist
    """
    _require_book_and_user(db, book_id, user_id)
    return repositories.is_favorite(db, user_id, book_id)


def list_favorites(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[Book], int]:
    """
    List a user's favorite books, most recently favorited first.

    Returns:
        (page of books, total number of favorites)
    """
    total = db.execute(
        select(func.count())
        .select_from(user_favorites)
        .where(user_favorites.c.user_id == user_id)
    ).scalar() or 0

    books = repositories.get_favorite_books(db, user_id)
    return books[skip:skip + limit], total
