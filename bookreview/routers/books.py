"""
Books Router

Read endpoints for catalog books and their rating aggregate.

Endpoints:
- GET /books - Browse the catalog (paginated, sortable)
- GET /books/search - Search title, author and description
- GET /books/popular - Most reviewed books
- GET /books/recent - Most recently added books
- GET /books/stats - Catalog-wide totals
- GET /books/top-rated - Reviewed books with a high average rating
- GET /books/{book_id} - Get a book
- GET /books/{book_id}/rating - Rating aggregate and distribution
- GET /books/{book_id}/similar - Books sharing an author or genre
"""

from typing import Literal

from fastapi import APIRouter, Query

from bookreview.dependencies import BookFilters, DbSession, Pagination
from bookreview.schemas.book import (
    BookListResponse,
    BookPageResponse,
    BookRatingStats,
    BookResponse,
    BookSearchResponse,
    CatalogStatistics,
)
from bookreview.services import books as book_service
from bookreview.services import ratings as rating_service
from bookreview.services import recommendations as recommendation_service

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={404: {"description": "Book not found"}},
)


def _book_list(books) -> BookListResponse:
    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=len(books),
    )


@router.get(
    "",
    response_model=BookPageResponse,
    summary="Browse the catalog",
)
def list_books(
    db: DbSession,
    pagination: Pagination,
    sort: str = Query(
        default="created_at",
        description="created_at, title, author, published_year, average_rating or review_count",
    ),
    direction: Literal["asc", "desc"] = Query(default="desc"),
) -> BookPageResponse:
    books, total = book_service.list_books(
        db, pagination.skip, pagination.per_page, sort=sort, direction=direction
    )
    return BookPageResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


# The fixed paths below are declared before /{book_id} so they are not
# parsed as an id


@router.get(
    "/search",
    response_model=BookSearchResponse,
    summary="Search books",
)
def search_books(
    db: DbSession,
    filters: BookFilters,
    pagination: Pagination,
) -> BookSearchResponse:
    """Partial, case-insensitive match on title, author or description."""
    books, total = book_service.search_books(
        db,
        filters.q,
        pagination.skip,
        pagination.per_page,
        min_rating=filters.min_rating,
        min_year=filters.min_year,
        max_year=filters.max_year,
    )
    return BookSearchResponse(
        query=filters.q,
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


@router.get(
    "/popular",
    response_model=BookListResponse,
    summary="Most reviewed books",
)
def get_popular_books(
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=50),
    min_reviews: int = Query(default=1, ge=1),
) -> BookListResponse:
    return _book_list(book_service.get_popular_books(db, limit, min_reviews))


@router.get(
    "/recent",
    response_model=BookListResponse,
    summary="Recently added books",
)
def get_recent_books(
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=50),
) -> BookListResponse:
    return _book_list(book_service.get_recent_books(db, limit))


@router.get(
    "/stats",
    response_model=CatalogStatistics,
    summary="Catalog statistics",
)
def get_catalog_statistics(db: DbSession) -> CatalogStatistics:
    return CatalogStatistics(**book_service.get_catalog_statistics(db))


@router.get(
    "/top-rated",
    response_model=BookListResponse,
    summary="Top-rated books",
)
def get_top_rated_books(
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=50),
    min_rating: float | None = Query(default=None, ge=0, le=5),
) -> BookListResponse:
    """Books with at least one review, best average first."""
    books = recommendation_service.get_top_rated_books(db, limit, min_rating)
    return _book_list(books)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
def get_book(book_id: int, db: DbSession) -> BookResponse:
    return BookResponse.model_validate(book_service.get_book(db, book_id))


@router.get(
    "/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Stored average rating and review count, plus the rating distribution.",
)
def get_book_rating_stats(book_id: int, db: DbSession) -> BookRatingStats:
    return BookRatingStats(**rating_service.get_rating_statistics(db, book_id))


@router.get(
    "/{book_id}/similar",
    response_model=BookListResponse,
    summary="Get similar books",
)
def get_similar_books(
    book_id: int,
    db: DbSession,
    limit: int = Query(default=5, ge=1, le=50),
) -> BookListResponse:
    """Books by the same author or sharing a genre tag, best rated first."""
    books = recommendation_service.get_similar_books(db, book_id, limit)
    return _book_list(books)
