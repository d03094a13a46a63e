"""
Data Access Functions

Thin query helpers over a SQLAlchemy Session. They return data and never
apply business rules: no aggregation writes, no ownership checks, no
error raising beyond what SQLAlchemy itself raises.

Services compose these into operations (see bookreview.services).

Row Locking:
============
get_book(..., for_update=True) issues SELECT ... FOR UPDATE on the book
row. The review services take this lock at the start of every mutation so
that concurrent mutations of the same book serialize their aggregate
recalculation. Backends without row locks (SQLite) ignore the clause.
"""

from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from bookreview.models import Book, Review, User, user_favorites
from bookreview.models.book import HIGHLY_RATED_THRESHOLD, POPULAR_REVIEW_COUNT


# =============================================================================
# Lookups by identity
# =============================================================================


def get_book(db: Session, book_id: int, for_update: bool = False) -> Book | None:
    """Get a book by id, optionally locking its row until the transaction ends."""
    stmt = select(Book).where(Book.id == book_id)
    if for_update:
        # populate_existing refreshes an already-loaded instance with the
        # values read under the lock
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return db.execute(stmt).scalar_one_or_none()


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_review(db: Session, review_id: int) -> Review | None:
    return db.get(Review, review_id)


def find_review_by_user_and_book(
    db: Session,
    user_id: int,
    book_id: int,
) -> Review | None:
    stmt = select(Review).where(
        Review.user_id == user_id,
        Review.book_id == book_id,
    )
    return db.execute(stmt).scalar_one_or_none()


# =============================================================================
# Review statistics
# =============================================================================


def count_reviews_for_book(db: Session, book_id: int) -> int:
    stmt = select(func.count(Review.id)).where(Review.book_id == book_id)
    return db.execute(stmt).scalar() or 0


def sum_ratings_for_book(db: Session, book_id: int) -> int:
    stmt = select(func.coalesce(func.sum(Review.rating), 0)).where(
        Review.book_id == book_id
    )
    return int(db.execute(stmt).scalar() or 0)


def average_rating_for_book(db: Session, book_id: int) -> Decimal | None:
    """
    Raw mean of the book's ratings as computed by the database.

    Returns None when the book has no reviews. The ratings service does its
    own exact rounding from count and sum; this is for diagnostics.
    """
    stmt = select(func.avg(Review.rating)).where(Review.book_id == book_id)
    value = db.execute(stmt).scalar()
    return Decimal(str(value)) if value is not None else None


def rating_distribution_for_book(db: Session, book_id: int) -> dict[int, int]:
    """Count of reviews per star value, every value from 1 to 5 present."""
    distribution = {rating: 0 for rating in range(1, 6)}
    stmt = (
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id)
        .group_by(Review.rating)
    )
    for rating, count in db.execute(stmt).all():
        distribution[rating] = count
    return distribution


def list_reviews_for_book(
    db: Session,
    book_id: int,
    skip: int = 0,
    limit: int = 10,
) -> list[Review]:
    stmt = (
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def list_reviews_for_user(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 10,
) -> list[Review]:
    stmt = (
        select(Review)
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def count_reviews_for_user(db: Session, user_id: int) -> int:
    stmt = select(func.count(Review.id)).where(Review.user_id == user_id)
    return db.execute(stmt).scalar() or 0


def book_ids_reviewed_by_user(db: Session, user_id: int) -> list[int]:
    stmt = select(Review.book_id).where(Review.user_id == user_id).distinct()
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Catalog queries used by the recommendation engine
# =============================================================================
# All of these order by average_rating desc, then review_count desc, so the
# better-rated and more-reviewed book wins ties. Book.id is the final
# tie-break to keep results stable between calls.

_TOP_RATED_ORDER = (Book.average_rating.desc(), Book.review_count.desc(), Book.id)


def _genre_matches(genre: str):
    """Case-insensitive 'tag string contains genre' filter."""
    return func.lower(Book.genres).contains(genre.strip().lower(), autoescape=True)


def find_similar_books(
    db: Session,
    book_id: int,
    author: str,
    genres: list[str],
    limit: int,
) -> list[Book]:
    """
    Books by the same author or sharing any of the given genre tags.

    Args:
        db: Database session
        book_id: The source book, excluded from the results
        author: Source author (exact match)
        genres: Source genre tags (substring match, case-insensitive)
        limit: Maximum number of books
    """
    conditions = [Book.author == author]
    conditions.extend(_genre_matches(genre) for genre in genres if genre.strip())

    stmt = (
        select(Book)
        .where(Book.id != book_id)
        .where(or_(*conditions))
        .order_by(*_TOP_RATED_ORDER)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def find_books_by_genre(db: Session, genre: str, limit: int) -> list[Book]:
    stmt = (
        select(Book)
        .where(_genre_matches(genre))
        .order_by(*_TOP_RATED_ORDER)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def find_top_rated_books(
    db: Session,
    min_rating: Decimal,
    limit: int,
) -> list[Book]:
    """Books rated at least min_rating that have at least one review."""
    stmt = (
        select(Book)
        .where(Book.average_rating >= min_rating)
        .where(Book.review_count >= 1)
        .order_by(*_TOP_RATED_ORDER)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def find_books_by_title_or_author(
    db: Session,
    title: str,
    author: str,
) -> list[Book]:
    """Books whose title contains title or whose author contains author."""
    stmt = (
        select(Book)
        .where(
            or_(
                func.lower(Book.title).contains(title.lower(), autoescape=True),
                func.lower(Book.author).contains(author.lower(), autoescape=True),
            )
        )
        .order_by(Book.id)
    )
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Catalog browsing
# =============================================================================

BOOK_SORT_COLUMNS = {
    "created_at": Book.created_at,
    "title": Book.title,
    "author": Book.author,
    "published_year": Book.published_year,
    "average_rating": Book.average_rating,
    "review_count": Book.review_count,
}


def _page(db: Session, stmt, skip: int, limit: int) -> tuple[list[Book], int]:
    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar() or 0
    books = db.execute(stmt.offset(skip).limit(limit)).scalars().all()
    return list(books), total


def list_books(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    sort: str = "created_at",
    descending: bool = True,
) -> tuple[list[Book], int]:
    """
    A page of the catalog ordered by one of BOOK_SORT_COLUMNS.

    Book.id breaks ties in the same direction as the sort.

    Returns:
        (page of books, total number of books)
    """
    column = BOOK_SORT_COLUMNS[sort]
    if descending:
        order = (column.desc(), Book.id.desc())
    else:
        order = (column.asc(), Book.id.asc())
    return _page(db, select(Book).order_by(*order), skip, limit)


def search_books(
    db: Session,
    query: str,
    skip: int = 0,
    limit: int = 10,
    min_rating: Decimal | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
) -> tuple[list[Book], int]:
    """
    Books whose title, author or description contains query.

    Optional filters narrow by minimum average rating and publication year
    range. Best rated first.
    """
    term = query.strip().lower()
    stmt = select(Book).where(
        or_(
            func.lower(Book.title).contains(term, autoescape=True),
            func.lower(Book.author).contains(term, autoescape=True),
            func.lower(Book.description).contains(term, autoescape=True),
        )
    )
    if min_rating is not None:
        stmt = stmt.where(Book.average_rating >= min_rating)
    if min_year is not None:
        stmt = stmt.where(Book.published_year >= min_year)
    if max_year is not None:
        stmt = stmt.where(Book.published_year <= max_year)

    return _page(db, stmt.order_by(*_TOP_RATED_ORDER), skip, limit)


def find_popular_books(db: Session, min_review_count: int, limit: int) -> list[Book]:
    """Most reviewed books first, average rating breaking ties."""
    stmt = (
        select(Book)
        .where(Book.review_count >= min_review_count)
        .order_by(Book.review_count.desc(), Book.average_rating.desc(), Book.id)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def find_recent_books(db: Session, limit: int) -> list[Book]:
    """Most recently catalogued books first."""
    stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_catalog_statistics(db: Session) -> dict:
    """
    Catalog-wide counts read from the stored aggregates.

    rating_sum adds up the per-book averages of reviewed books only; an
    unreviewed book's 0.00 means "no rating", not a zero-star rating.
    """
    reviewed = Book.review_count >= 1
    stmt = select(
        func.count(Book.id),
        func.count(Book.id).filter(reviewed),
        func.coalesce(func.sum(Book.review_count), 0),
        func.coalesce(func.sum(Book.average_rating).filter(reviewed), 0),
        func.count(Book.id).filter(Book.review_count >= POPULAR_REVIEW_COUNT),
        func.count(Book.id).filter(
            reviewed, Book.average_rating >= HIGHLY_RATED_THRESHOLD
        ),
    )
    total, reviewed_count, review_total, rating_sum, popular, highly_rated = (
        db.execute(stmt).one()
    )
    return {
        "total_books": total,
        "reviewed_books": reviewed_count,
        "total_reviews": int(review_total),
        "rating_sum": Decimal(str(rating_sum)),
        "popular_books": popular,
        "highly_rated_books": highly_rated,
    }


# =============================================================================
# Favorites
# =============================================================================


def get_favorite_books(db: Session, user_id: int) -> list[Book]:
    """A user's favorite books, most recently favorited first."""
    stmt = (
        select(Book)
        .join(user_favorites, user_favorites.c.book_id == Book.id)
        .where(user_favorites.c.user_id == user_id)
        .order_by(user_favorites.c.created_at.desc(), Book.id)
    )
    return list(db.execute(stmt).scalars().all())


def is_favorite(db: Session, user_id: int, book_id: int) -> bool:
    stmt = select(func.count()).select_from(user_favorites).where(
        user_favorites.c.user_id == user_id,
        user_favorites.c.book_id == book_id,
    )
    return (db.execute(stmt).scalar() or 0) > 0
