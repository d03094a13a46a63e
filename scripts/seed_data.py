#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample books, users, reviews and favorites
for development.

USAGE:
    # From the project root with venv activated
    python scripts/seed_data.py
    python scripts/seed_data.py --keep   # Don't clear existing data first

Reviews are created through the review service, so every book's
average_rating and review_count come out right without a repair pass.
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookreview.database import SessionLocal, create_tables
from bookreview.models import Book, Review, User, user_favorites
from bookreview.services.favorites import add_to_favorites
from bookreview.services.reviews import create_review

BOOKS = [
    {
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "description": "A coming-of-age tale in a South poisoned by prejudice.",
        "genres": "Classic, Fiction, Historical",
        "published_year": 1960,
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "description": "A romantic novel of manners following Elizabeth Bennet.",
        "genres": "Classic, Romance, Fiction",
        "published_year": 1813,
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "description": "A dystopian novel about surveillance and thought control.",
        "genres": "Classic, Dystopian, Science Fiction",
        "published_year": 1949,
    },
    {
        "title": "Dune",
        "author": "Frank Herbert",
        "description": "Noble houses fight over the desert planet Arrakis.",
        "genres": "Science Fiction, Adventure",
        "published_year": 1965,
    },
    {
        "title": "The Fellowship of the Ring",
        "author": "J.R.R. Tolkien",
        "description": "The first volume of The Lord of the Rings.",
        "genres": "Fantasy, Adventure, Classic",
        "published_year": 1954,
    },
    {
        "title": "The Hitchhiker's Guide to the Galaxy",
        "author": "Douglas Adams",
        "description": "Arthur Dent escapes the demolition of Earth.",
        "genres": "Science Fiction, Comedy",
        "published_year": 1979,
    },
    {
        "title": "Ender's Game",
        "author": "Orson Scott Card",
        "description": "A gifted child is trained for an interstellar war.",
        "genres": "Science Fiction, Young Adult",
        "published_year": 1985,
    },
    {
        "title": "Gone Girl",
        "author": "Gillian Flynn",
        "description": "A marriage unravels after a wife disappears.",
        "genres": "Mystery, Thriller",
        "published_year": 2012,
    },
    {
        "title": "And Then There Were None",
        "author": "Agatha Christie",
        "description": "Ten strangers on an island die one by one.",
        "genres": "Mystery, Classic",
        "published_year": 1939,
    },
    {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "description": "Bilbo Baggins joins a quest to reclaim a dwarf kingdom.",
        "genres": "Fantasy, Adventure",
        "published_year": 1937,
    },
]

USERS = [
    {"email": "john@example.com", "name": "John Doe", "bio": "Science fiction enthusiast"},
    {"email": "jane@example.com", "name": "Jane Smith", "bio": "Fantasy and mystery reader"},
    {"email": "sarah@example.com", "name": "Sarah Brown", "bio": "Romance and classics"},
]

# (user email, book title, rating, text)
REVIEWS = [
    ("john@example.com", "Dune", 5, "An absolute masterpiece of world-building."),
    ("john@example.com", "Ender's Game", 4, "Fascinating ethical questions about war."),
    ("john@example.com", "The Hitchhiker's Guide to the Galaxy", 5, "Pure genius."),
    ("john@example.com", "1984", 5, "Terrifyingly relevant today."),
    ("jane@example.com", "The Fellowship of the Ring", 5, "Unparalleled world-building."),
    ("jane@example.com", "Gone Girl", 4, "Kept me guessing until the end."),
    ("jane@example.com", "And Then There Were None", 5, "The queen of mystery!"),
    ("jane@example.com", "Dune", 4, None),
    ("sarah@example.com", "Pride and Prejudice", 4, "Wit that remains sharp."),
    ("sarah@example.com", "To Kill a Mockingbird", 5, "Powerful and moving."),
    ("sarah@example.com", "The Hobbit", 3, None),
]

FAVORITES = [
    ("john@example.com", "Dune"),
    ("john@example.com", "1984"),
    ("jane@example.com", "The Fellowship of the Ring"),
    ("jane@example.com", "And Then There Were None"),
    ("sarah@example.com", "Pride and Prejudice"),
]


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(user_favorites))
    db.query(Review).delete()
    db.query(Book).delete()
    db.query(User).delete()
    db.commit()
    print("Data cleared.")


def create_books(db: Session) -> dict[str, Book]:
    print("Creating books...")
    books = {data["title"]: Book(**data) for data in BOOKS}
    db.add_all(books.values())
    db.commit()
    print(f"Created {len(books)} books.")
    return books


def create_users(db: Session) -> dict[str, User]:
    print("Creating users...")
    users = {data["email"]: User(**data) for data in USERS}
    db.add_all(users.values())
    db.commit()
    print(f"Created {len(users)} users.")
    return users


def create_reviews(db: Session, users: dict[str, User], books: dict[str, Book]) -> int:
    print("Creating reviews...")
    for email, title, rating, text in REVIEWS:
        create_review(db, books[title].id, users[email].id, rating, text)
    print(f"Created {len(REVIEWS)} reviews.")
    return len(REVIEWS)


def create_favorites(db: Session, users: dict[str, User], books: dict[str, Book]) -> int:
    print("Creating favorites...")
    for email, title in FAVORITES:
        add_to_favorites(db, books[title].id, users[email].id)
    print(f"Created {len(FAVORITES)} favorites.")
    return len(FAVORITES)


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        books = create_books(db)
        users = create_users(db)
        review_count = create_reviews(db, users, books)
        favorite_count = create_favorites(db, users, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Books: {len(books)}")
        print(f"  - Users: {len(users)}")
        print(f"  - Reviews: {review_count}")
        print(f"  - Favorites: {favorite_count}")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the database with sample data")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Keep existing data instead of clearing it first",
    )
    args = parser.parse_args()
    seed_database(clear_existing=not args.keep)


if __name__ == "__main__":
    main()
