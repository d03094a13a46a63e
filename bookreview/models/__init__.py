"""
SQLAlchemy Models Package

Model Relationships:
- User <-> Review <-> Book: a review links one user to one book
- User <-> Book: Many-to-Many favorites (user_favorites)

Import all models here so that:
1. They are available as: from bookreview.models import Book, Review, User
2. Base.metadata knows every table before create_all()
"""

from bookreview.models.book import Book
from bookreview.models.review import Review
from bookreview.models.user import User, user_favorites

__all__ = [
    "Book",
    "Review",
    "User",
    "user_favorites",
]
