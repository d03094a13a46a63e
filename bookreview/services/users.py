"""
Users Service

Account storage belongs to the account system; this module only covers
the part of a user's lifecycle that touches rating aggregates.
"""

import logging

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import NotFoundError
from bookreview.models import Review, User
from bookreview.services.ratings import recalculate_book_rating

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    """Get a user by id or raise NotFoundError."""
    user = repositories.get_user(db, user_id)
    if user is None:
        raise NotFoundError(f"User with id {user_id} not found")
    return user


def delete_user(db: Session, user_id: int) -> int:
    """
    Delete a user together with their reviews and favorites.

    Each book the user reviewed loses one review, so its aggregate is
    recalculated in the same transaction as the deletion.

    Returns:
        Number of books whose aggregate was recalculated

    Raises:
        NotFoundError: User does not exist
    """
    user = get_user(db, user_id)

    # Lock in id order so two account deletions cannot deadlock each other
    book_ids = sorted(repositories.book_ids_reviewed_by_user(db, user_id))
    for book_id in book_ids:
        repositories.get_book(db, book_id, for_update=True)

    db.execute(
        delete(Review)
        .where(Review.user_id == user_id)
        .execution_options(synchronize_session="fetch")
    )
    db.delete(user)
    db.flush()

    for book_id in book_ids:
        recalculate_book_rating(db, book_id)

    db.commit()
    logger.info(f"User {user_id} deleted, {len(book_ids)} book aggregate(s) recalculated")
    return len(book_ids)
