"""
Book Model

The central catalog entity. A book carries two derived columns,
average_rating and review_count, which mirror its reviews.

Aggregate Ownership:
====================
average_rating and review_count are written only by
bookreview.services.ratings.recalculate_book_rating, inside the same
transaction as the review mutation that triggered it. Everything else
reads them.

Genres are stored as a comma-separated tag string ("Fantasy, Adventure"),
which keeps similarity and genre queries to simple LIKE filters.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from bookreview.database import Base
from bookreview.exceptions import ValidationError

if TYPE_CHECKING:
    from bookreview.models.review import Review
    from bookreview.models.user import User

MIN_PUBLISHED_YEAR = 1000
# Upcoming releases may be catalogued a few years ahead
PUBLISHED_YEAR_LOOKAHEAD = 5

HIGHLY_RATED_THRESHOLD = Decimal("4.0")
POPULAR_REVIEW_COUNT = 10


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - title / author: required, non-empty
    - description: free text summary
    - cover_image_url: URL of a cover image
    - genres: comma-separated genre tags
    - published_year: 1000 .. current year + 5
    - average_rating: derived, 0.00-5.00 with 2 decimals
    - review_count: derived, >= 0

    Relationships:
    - reviews: One-to-Many (deleted with the book)
    - favorited_by: Many-to-Many with User through user_favorites

    A book with a negative id is a placeholder synthesized for an AI
    recommendation that is not in the catalog. Placeholders are never
    added to a session.

    Example:
        book = Book(
            title="The Hobbit",
            author="J.R.R. Tolkien",
            genres="Fantasy, Adventure",
            published_year=1937,
        )
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Book author"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    cover_image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="URL of the cover image"
    )

    genres: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Comma-separated genre tags"
    )

    published_year: Mapped[int | None] = mapped_column(
        Integer,
        index=True,
        nullable=True,
        comment="Year of first publication"
    )

    # -------------------------------------------------------------------------
    # Derived Rating Aggregate
    # -------------------------------------------------------------------------
    # Numeric(3, 2) holds 0.00 .. 9.99; the check constraint narrows it to 0-5
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2),
        default=Decimal("0.00"),
        nullable=False,
        index=True,
        comment="Mean review rating, maintained by the ratings service"
    )

    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="Number of reviews, maintained by the ratings service"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    favorited_by: Mapped[list["User"]] = relationship(
        "User",
        secondary="user_favorites",
        back_populates="favorite_books",
    )

    __table_args__ = (
        CheckConstraint("TRIM(title) != ''", name="ck_book_title_not_empty"),
        CheckConstraint("TRIM(author) != ''", name="ck_book_author_not_empty"),
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5",
            name="ck_book_average_rating_range",
        ),
        CheckConstraint("review_count >= 0", name="ck_book_review_count_non_negative"),
    )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------
    @validates("title", "author")
    def validate_required_text(self, key: str, value: str) -> str:
        if value is None or not value.strip():
            raise ValidationError(f"Book {key} must not be empty")
        return value.strip()

    @validates("published_year")
    def validate_published_year(self, key: str, value: int | None) -> int | None:
        if value is None:
            return None
        max_year = date.today().year + PUBLISHED_YEAR_LOOKAHEAD
        if not MIN_PUBLISHED_YEAR <= value <= max_year:
            raise ValidationError(
                f"Published year must be between {MIN_PUBLISHED_YEAR} and {max_year}"
            )
        return value

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------
    @property
    def genre_list(self) -> list[str]:
        """Genre tags as a list, trimmed, empty entries dropped."""
        if not self.genres:
            return []
        return [g.strip() for g in self.genres.split(",") if g.strip()]

    @property
    def is_placeholder(self) -> bool:
        """True for AI-synthesized books that are not catalog entries."""
        return self.id is not None and self.id < 0

    @property
    def is_highly_rated(self) -> bool:
        return (self.average_rating or Decimal("0")) >= HIGHLY_RATED_THRESHOLD

    @property
    def is_popular(self) -> bool:
        return (self.review_count or 0) >= POPULAR_REVIEW_COUNT

    def display_name(self) -> str:
        """Format used in AI prompts: 'Title by Author'."""
        return f"{self.title} by {self.author}"

    def __repr__(self) -> str:
        return (
            f"Book(id={self.id}, title='{self.title}', author='{self.author}', "
            f"average_rating={self.average_rating}, review_count={self.review_count})"
        )
