"""
Tests for the review lifecycle service

Business Rules:
- Rating must be an integer from 1 to 5
- One review per user per book
- Only the review author can update or delete
- A failed call leaves reviews and the aggregate unchanged
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from bookreview.models import Book, Review, User
from bookreview.services import reviews as review_service


def review_count(db: Session, book_id: int) -> int:
    return db.execute(
        select(func.count(Review.id)).where(Review.book_id == book_id)
    ).scalar()


# =============================================================================
# Validation Helpers
# =============================================================================


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_valid(self, rating):
        assert review_service.validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, "5", None, True])
    def test_invalid(self, rating):
        with pytest.raises(ValidationError):
            review_service.validate_rating(rating)


class TestNormalizeReviewText:
    def test_none_stays_none(self):
        assert review_service.normalize_review_text(None) is None

    def test_whitespace_becomes_none(self):
        assert review_service.normalize_review_text("   \n\t ") is None

    def test_trimmed(self):
        assert review_service.normalize_review_text("  Loved it.  ") == "Loved it."

    def test_limit_applies_after_trim(self):
        text = "  " + "a" * 2000 + "  "
        assert review_service.normalize_review_text(text) == "a" * 2000

    def test_too_long(self):
        with pytest.raises(ValidationError):
            review_service.normalize_review_text("a" * 2001)


# =============================================================================
# Create
# =============================================================================


class TestCreateReview:
    def test_create(self, db_session: Session, sample_book: Book, sample_user: User):
        review = review_service.create_review(
            db_session, sample_book.id, sample_user.id, 5, "  A delight.  "
        )

        assert review.id is not None
        assert review.rating == 5
        assert review.review_text == "A delight."
        assert review.book_id == sample_book.id
        assert review.user_id == sample_user.id

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("5.00")
        assert sample_book.review_count == 1

    def test_create_without_text(self, db_session: Session, sample_book: Book, sample_user: User):
        review = review_service.create_review(db_session, sample_book.id, sample_user.id, 3)
        assert review.review_text is None

    def test_invalid_rating(self, db_session: Session, sample_book: Book, sample_user: User):
        with pytest.raises(ValidationError):
            review_service.create_review(db_session, sample_book.id, sample_user.id, 6)

        assert review_count(db_session, sample_book.id) == 0

    def test_validation_comes_before_lookup(self, db_session: Session, sample_user: User):
        with pytest.raises(ValidationError):
            review_service.create_review(db_session, 99999, sample_user.id, 0)

    def test_book_not_found(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFoundError):
            review_service.create_review(db_session, 99999, sample_user.id, 4)

    def test_user_not_found(self, db_session: Session, sample_book: Book):
        with pytest.raises(NotFoundError):
            review_service.create_review(db_session, sample_book.id, 99999, 4)

    def test_duplicate_review(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        sample_review: Review,
    ):
        with pytest.raises(ConflictError):
            review_service.create_review(db_session, sample_book.id, sample_user.id, 1)

        db_session.refresh(sample_book)
        assert review_count(db_session, sample_book.id) == 1
        assert sample_book.average_rating == Decimal("4.00")
        assert sample_book.review_count == 1

    def test_unique_constraint_backs_up_precheck(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        sample_review: Review,
        monkeypatch,
    ):
        """A create that slips past the pre-check (a concurrent race) still conflicts."""
        monkeypatch.setattr(
            repositories, "find_review_by_user_and_book", lambda db, user_id, book_id: None
        )

        with pytest.raises(ConflictError):
            review_service.create_review(db_session, sample_book.id, sample_user.id, 1)

        db_session.refresh(sample_book)
        assert review_count(db_session, sample_book.id) == 1
        assert sample_book.average_rating == Decimal("4.00")

    def test_different_users_can_review_same_book(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        review_service.create_review(db_session, sample_book.id, sample_user.id, 5)
        review_service.create_review(db_session, sample_book.id, second_user.id, 2)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("3.50")
        assert sample_book.review_count == 2


# =============================================================================
# Update
# =============================================================================


class TestUpdateReview:
    def test_update(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        sample_review: Review,
    ):
        review = review_service.update_review(
            db_session, sample_review.id, sample_user.id, 2, "Changed my mind."
        )

        assert review.rating == 2
        assert review.review_text == "Changed my mind."
        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("2.00")

    def test_update_clears_text(
        self,
        db_session: Session,
        sample_user: User,
        sample_review: Review,
    ):
        review = review_service.update_review(db_session, sample_review.id, sample_user.id, 4)
        assert review.review_text is None

    def test_not_found(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFoundError):
            review_service.update_review(db_session, 99999, sample_user.id, 3)

    def test_not_owner(
        self,
        db_session: Session,
        sample_book: Book,
        second_user: User,
        sample_review: Review,
    ):
        with pytest.raises(AuthorizationError):
            review_service.update_review(db_session, sample_review.id, second_user.id, 1)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("4.00")

    def test_ownership_checked_before_rating(
        self,
        db_session: Session,
        second_user: User,
        sample_review: Review,
    ):
        with pytest.raises(AuthorizationError):
            review_service.update_review(db_session, sample_review.id, second_user.id, 9)

    def test_invalid_rating(
        self,
        db_session: Session,
        sample_user: User,
        sample_review: Review,
    ):
        with pytest.raises(ValidationError):
            review_service.update_review(db_session, sample_review.id, sample_user.id, 0)

        db_session.refresh(sample_review)
        assert sample_review.rating == 4


# =============================================================================
# Delete
# =============================================================================


class TestDeleteReview:
    def test_delete(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        sample_review: Review,
    ):
        review_id = sample_review.id
        review_service.delete_review(db_session, review_id, sample_user.id)

        assert repositories.get_review(db_session, review_id) is None
        db_session.refresh(sample_book)
        assert sample_book.review_count == 0

    def test_not_found(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFoundError):
            review_service.delete_review(db_session, 99999, sample_user.id)

    def test_not_owner(
        self,
        db_session: Session,
        second_user: User,
        sample_review: Review,
    ):
        with pytest.raises(AuthorizationError):
            review_service.delete_review(db_session, sample_review.id, second_user.id)

        assert repositories.get_review(db_session, sample_review.id) is not None


# =============================================================================
# Read Helpers
# =============================================================================


class TestReadHelpers:
    def test_get_review(self, db_session: Session, sample_review: Review):
        assert review_service.get_review(db_session, sample_review.id).id == sample_review.id

    def test_get_missing_review(self, db_session: Session):
        with pytest.raises(NotFoundError):
            review_service.get_review(db_session, 99999)

    def test_user_review_for_book(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        second_user: User,
        sample_review: Review,
    ):
        found = review_service.get_user_review_for_book(db_session, sample_book.id, sample_user.id)
        assert found.id == sample_review.id
        assert review_service.has_user_reviewed_book(db_session, sample_book.id, sample_user.id)
        assert not review_service.has_user_reviewed_book(db_session, sample_book.id, second_user.id)

    def test_list_book_reviews_newest_first(
        self,
        db_session: Session,
        sample_book: Book,
        make_users,
    ):
        users = make_users(3)
        created = [
            review_service.create_review(db_session, sample_book.id, user.id, 3)
            for user in users
        ]

        items, total = review_service.list_book_reviews(db_session, sample_book.id, skip=0, limit=2)

        assert total == 3
        assert [r.id for r in items] == [created[2].id, created[1].id]

    def test_list_reviews_unknown_book(self, db_session: Session):
        with pytest.raises(NotFoundError):
            review_service.list_book_reviews(db_session, 99999)

    def test_list_user_reviews(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
    ):
        review_service.create_review(db_session, sample_book.id, sample_user.id, 5)
        review_service.create_review(db_session, second_book.id, sample_user.id, 4)

        items, total = review_service.list_user_reviews(db_session, sample_user.id)

        assert total == 2
        assert {r.book_id for r in items} == {sample_book.id, second_book.id}
