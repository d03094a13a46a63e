"""
Favorites Router

Endpoints:
- POST /books/{book_id}/favorite - Add a book to my favorites
- DELETE /books/{book_id}/favorite - Remove a book from my favorites
- GET /books/{book_id}/favorite - Is this book one of my favorites?
- GET /users/me/favorites - My favorites, most recent first

Adding an existing favorite (or removing a missing one) is not an error;
the response reports changed=false.
"""

from fastapi import APIRouter

from bookreview.dependencies import CurrentUser, DbSession, Pagination
from bookreview.schemas.book import (
    BookResponse,
    FavoriteCheckResponse,
    FavoriteListResponse,
    FavoriteStatusResponse,
)
from bookreview.services import favorites as favorite_service

router = APIRouter(tags=["Favorites"])


@router.post(
    "/books/{book_id}/favorite",
    response_model=FavoriteStatusResponse,
    summary="Add to favorites",
)
def add_favorite(
    book_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> FavoriteStatusResponse:
    added = favorite_service.add_to_favorites(db, book_id, current_user.id)
    return FavoriteStatusResponse(book_id=book_id, is_favorite=True, changed=added)


@router.delete(
    "/books/{book_id}/favorite",
    response_model=FavoriteStatusResponse,
    summary="Remove from favorites",
)
def remove_favorite(
    book_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> FavoriteStatusResponse:
    removed = favorite_service.remove_from_favorites(db, book_id, current_user.id)
    return FavoriteStatusResponse(book_id=book_id, is_favorite=False, changed=removed)


@router.get(
    "/books/{book_id}/favorite",
    response_model=FavoriteCheckResponse,
    summary="Check a favorite",
)
def check_favorite(
    book_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> FavoriteCheckResponse:
    is_favorite = favorite_service.is_book_favorited(db, book_id, current_user.id)
    return FavoriteCheckResponse(book_id=book_id, is_favorite=is_favorite)


@router.get(
    "/users/me/favorites",
    response_model=FavoriteListResponse,
    summary="List my favorites",
)
def list_my_favorites(
    db: DbSession,
    current_user: CurrentUser,
    pagination: Pagination,
) -> FavoriteListResponse:
    books, total = favorite_service.list_favorites(
        db, current_user.id, skip=pagination.skip, limit=pagination.per_page
    )
    return FavoriteListResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )
