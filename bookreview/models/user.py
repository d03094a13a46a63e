"""
User Model

Users are owned by the account system; this package only references them
as the authors of reviews and the owners of favorites, which together are
the input signal for recommendations.

This file also contains the user_favorites association table.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreview.database import Base

if TYPE_CHECKING:
    from bookreview.models.book import Book
    from bookreview.models.review import Review


# =============================================================================
# Association Table
# =============================================================================
# Composite primary key gives the (user, book) uniqueness for free.
# created_at orders favorites newest first.

user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "created_at",
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    ),
    comment="Association table linking users to their favorite books",
)


class User(Base):
    """
    User model representing registered readers.

    Table: users

    Relationships:
    - reviews: One-to-Many relationship with Review
    - favorite_books: Many-to-Many relationship with Book

    Example:
        user = User(email="reader@example.com", name="Reader")
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address"
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name"
    )

    bio: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="User biography"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the account is active"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    favorite_books: Mapped[list["Book"]] = relationship(
        "Book",
        secondary=user_favorites,
        back_populates="favorited_by",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}', name='{self.name}')"
