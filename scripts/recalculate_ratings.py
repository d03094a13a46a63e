#!/usr/bin/env python3
"""
Rating Aggregate Repair Script

Recalculates average_rating and review_count for books from their review
rows. Needed only after data was written outside the review services
(bulk imports, manual SQL).

Usage:
    # From project root with venv activated:
    python scripts/recalculate_ratings.py             # All books
    python scripts/recalculate_ratings.py --book 42   # One book
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookreview.database import SessionLocal
from bookreview.services.ratings import recalculate_all_book_ratings, recalculate_book_rating

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def recalculate(book_id: int | None = None) -> int:
    """
    Recalculate one book, or every book when book_id is None.

    Returns:
        Number of books recalculated
    """
    db = SessionLocal()
    try:
        if book_id is None:
            return recalculate_all_book_ratings(db)

        book = recalculate_book_rating(db, book_id)
        if book is None:
            logger.error(f"Book {book_id} not found")
            return 0
        db.commit()
        logger.info(
            f"Book {book_id}: average_rating={book.average_rating}, "
            f"review_count={book.review_count}"
        )
        return 1
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recalculate book rating aggregates from reviews"
    )
    parser.add_argument(
        "--book",
        type=int,
        default=None,
        help="Only recalculate this book id"
    )

    args = parser.parse_args()
    count = recalculate(args.book)
    logger.info(f"Done: {count} book(s) recalculated")


if __name__ == "__main__":
    main()
