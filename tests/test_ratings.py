"""
Tests for the rating aggregate

Covers:
- Exact half-up rounding from count and sum
- Recalculation on review create/update/delete
- Repair of stale aggregates
- Cascade paths (user and book deletion)
- Rating statistics
"""

from decimal import ROUND_HALF_UP, Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.exceptions import NotFoundError
from bookreview.models import Book, Review, User
from bookreview.services import ratings
from bookreview.services.books import delete_book
from bookreview.services.reviews import create_review, delete_review, update_review
from bookreview.services.users import delete_user


# =============================================================================
# Pure Rounding Rules
# =============================================================================


class TestRoundRating:
    def test_no_reviews_is_zero(self):
        assert ratings.round_rating(0, 0) == Decimal("0.00")

    def test_exact_mean(self):
        assert ratings.round_rating(17, 4) == Decimal("4.25")

    def test_repeating_decimal(self):
        assert ratings.round_rating(2, 3) == Decimal("0.67")
        assert ratings.round_rating(13, 3) == Decimal("4.33")

    def test_half_rounds_up(self):
        """33 / 8 = 4.125 exactly; half-up gives 4.13, float rounding gives 4.12."""
        assert ratings.round_rating(33, 8) == Decimal("4.13")
        assert ratings.round_rating(9, 8) == Decimal("1.13")

    def test_result_has_two_places(self):
        assert str(ratings.round_rating(10, 2)) == "5.00"


class TestComputeRatingAggregate:
    def test_empty(self):
        assert ratings.compute_rating_aggregate([]) == (Decimal("0.00"), 0)

    def test_single_rating(self):
        assert ratings.compute_rating_aggregate([3]) == (Decimal("3.00"), 1)

    def test_mixed_ratings(self):
        assert ratings.compute_rating_aggregate([4, 5, 5, 3]) == (Decimal("4.25"), 4)

    def test_accepts_generator(self):
        assert ratings.compute_rating_aggregate(r for r in [1, 2]) == (Decimal("1.50"), 2)


# =============================================================================
# Recalculation Through the Review Lifecycle
# =============================================================================


class TestAggregateLifecycle:
    def test_new_book_has_empty_aggregate(self, sample_book: Book):
        assert sample_book.average_rating == Decimal("0.00")
        assert sample_book.review_count == 0

    def test_create_update_delete_sequence(
        self,
        db_session: Session,
        sample_book: Book,
        make_users,
    ):
        """[4, 5, 5, 3] -> 4.25; add a 2 -> 3.80; delete it -> 4.25."""
        users = make_users(5)
        for user, rating in zip(users[:4], [4, 5, 5, 3]):
            create_review(db_session, sample_book.id, user.id, rating)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("4.25")
        assert sample_book.review_count == 4

        extra = create_review(db_session, sample_book.id, users[4].id, 2)
        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("3.80")
        assert sample_book.review_count == 5

        delete_review(db_session, extra.id, users[4].id)
        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("4.25")
        assert sample_book.review_count == 4

    def test_update_changes_average_not_count(
        self,
        db_session: Session,
        sample_book: Book,
        sample_review: Review,
        sample_user: User,
    ):
        update_review(db_session, sample_review.id, sample_user.id, 2)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("2.00")
        assert sample_book.review_count == 1

    def test_deleting_last_review_resets_to_zero(
        self,
        db_session: Session,
        sample_book: Book,
        sample_review: Review,
        sample_user: User,
    ):
        delete_review(db_session, sample_review.id, sample_user.id)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == Decimal("0.00")
        assert sample_book.review_count == 0

    def test_other_books_are_untouched(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
    ):
        create_review(db_session, sample_book.id, sample_user.id, 5)

        db_session.refresh(second_book)
        assert second_book.average_rating == Decimal("0.00")
        assert second_book.review_count == 0

    def test_aggregate_matches_review_rows(
        self,
        db_session: Session,
        sample_book: Book,
        make_users,
    ):
        users = make_users(8)
        for user, rating in zip(users, [5, 5, 5, 5, 4, 4, 4, 1]):
            create_review(db_session, sample_book.id, user.id, rating)

        stored = db_session.execute(
            select(Review.rating).where(Review.book_id == sample_book.id)
        ).scalars().all()

        db_session.refresh(sample_book)
        assert (sample_book.average_rating, sample_book.review_count) == (
            ratings.compute_rating_aggregate(stored)
        )
        assert sample_book.average_rating == Decimal("4.13")

        # Cross-check against the database's own mean (33 / 8 = 4.125)
        raw = repositories.average_rating_for_book(db_session, sample_book.id)
        assert raw == Decimal("4.125")
        assert raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) == sample_book.average_rating

    def test_database_mean_without_reviews(self, db_session: Session, sample_book: Book):
        assert repositories.average_rating_for_book(db_session, sample_book.id) is None


# =============================================================================
# Direct Recalculation
# =============================================================================


class TestRecalculateBookRating:
    def test_missing_book_is_a_no_op(self, db_session: Session):
        assert ratings.recalculate_book_rating(db_session, 99999) is None

    def test_idempotent(
        self,
        db_session: Session,
        sample_book: Book,
        sample_review: Review,
    ):
        first = ratings.recalculate_book_rating(db_session, sample_book.id)
        first_values = (first.average_rating, first.review_count)
        second = ratings.recalculate_book_rating(db_session, sample_book.id)

        assert (second.average_rating, second.review_count) == first_values
        assert first_values == (Decimal("4.00"), 1)

    def test_repairs_stale_values(
        self,
        db_session: Session,
        sample_book: Book,
        sample_review: Review,
    ):
        sample_book.average_rating = Decimal("1.00")
        sample_book.review_count = 7
        db_session.commit()

        book = ratings.recalculate_book_rating(db_session, sample_book.id)

        assert book.average_rating == Decimal("4.00")
        assert book.review_count == 1

    def test_recalculate_all(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_review: Review,
    ):
        second_book.average_rating = Decimal("3.00")
        second_book.review_count = 2
        db_session.commit()

        count = ratings.recalculate_all_book_ratings(db_session)

        assert count == 2
        db_session.refresh(second_book)
        assert second_book.average_rating == Decimal("0.00")
        assert second_book.review_count == 0


class TestRatingStatistics:
    def test_distribution(
        self,
        db_session: Session,
        sample_book: Book,
        make_users,
    ):
        users = make_users(4)
        for user, rating in zip(users, [4, 5, 5, 3]):
            create_review(db_session, sample_book.id, user.id, rating)

        stats = ratings.get_rating_statistics(db_session, sample_book.id)

        assert stats["book_id"] == sample_book.id
        assert stats["average_rating"] == Decimal("4.25")
        assert stats["review_count"] == 4
        assert stats["rating_distribution"] == {1: 0, 2: 0, 3: 1, 4: 1, 5: 2}

    def test_unknown_book(self, db_session: Session):
        with pytest.raises(NotFoundError):
            ratings.get_rating_statistics(db_session, 99999)


# =============================================================================
# Cascade Paths
# =============================================================================


class TestCascades:
    def test_deleting_user_recalculates_their_books(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
        second_user: User,
    ):
        create_review(db_session, sample_book.id, sample_user.id, 1)
        create_review(db_session, sample_book.id, second_user.id, 5)
        create_review(db_session, second_book.id, sample_user.id, 2)

        recalculated = delete_user(db_session, sample_user.id)

        assert recalculated == 2
        db_session.refresh(sample_book)
        db_session.refresh(second_book)
        assert (sample_book.average_rating, sample_book.review_count) == (Decimal("5.00"), 1)
        assert (second_book.average_rating, second_book.review_count) == (Decimal("0.00"), 0)

    def test_deleting_unknown_user(self, db_session: Session):
        with pytest.raises(NotFoundError):
            delete_user(db_session, 99999)

    def test_deleting_book_removes_its_reviews(
        self,
        db_session: Session,
        sample_book: Book,
        sample_review: Review,
    ):
        book_id = sample_book.id
        delete_book(db_session, book_id)

        remaining = db_session.execute(
            select(Review).where(Review.book_id == book_id)
        ).scalars().all()
        assert remaining == []
        assert ratings.recalculate_book_rating(db_session, book_id) is None
