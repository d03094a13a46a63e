"""
Review Model

Represents a user's rating of a book, with optional review text.

Business Rules:
- One review per user per book (unique constraint)
- Rating must be 1-5
- Review text is at most 2000 characters after trimming
- Users can only edit/delete their own reviews
- Every create/update/delete recalculates the book's aggregate
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreview.database import Base

if TYPE_CHECKING:
    from bookreview.models.book import Book
    from bookreview.models.user import User

MIN_RATING = 1
MAX_RATING = 5
MAX_REVIEW_TEXT_LENGTH = 2000


class Review(Base):
    """
    Review model for book ratings.

    Attributes:
        id: Primary key
        user_id: Foreign key to users table
        book_id: Foreign key to books table
        rating: 1-5 star rating
        review_text: Optional review text
        created_at: When the review was created
        updated_at: When the review was last updated
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Foreign keys
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )
    review_text: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Optional review text",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="reviews")
    user: Mapped["User"] = relationship("User", back_populates="reviews")

    __table_args__ = (
        # One review per user per book
        UniqueConstraint("user_id", "book_id", name="uq_review_user_book"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, rating={self.rating})>"
