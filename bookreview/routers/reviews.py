"""
Reviews Router

CRUD endpoints for book reviews. Every mutation updates the book's rating
aggregate before it responds.

Endpoints:
- GET /books/{book_id}/reviews - List reviews for a book
- POST /books/{book_id}/reviews - Create a review (authenticated)
- GET /reviews/{review_id} - Get a specific review
- PUT /reviews/{review_id} - Update a review (owner only)
- DELETE /reviews/{review_id} - Delete a review (owner only)
- GET /users/me/reviews - The current user's reviews

Business Rules:
- One review per user per book (409 on a second create)
- Only the review author can update or delete their review (403)
"""

from fastapi import APIRouter, status

from bookreview.dependencies import CurrentUser, DbSession, Pagination
from bookreview.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.services import reviews as review_service

router = APIRouter(
    tags=["Reviews"],
    responses={404: {"description": "Review or book not found"}},
)


def _review_page(items, total: int, pagination) -> ReviewListResponse:
    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


# =============================================================================
# Book Review Endpoints
# =============================================================================


@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
    description="Get a paginated list of reviews for a book, newest first.",
)
def list_book_reviews(
    book_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    items, total = review_service.list_book_reviews(
        db, book_id, skip=pagination.skip, limit=pagination.per_page
    )
    return _review_page(items, total, pagination)


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Create a review for a book. One review per book per user.",
    responses={409: {"description": "Book already reviewed by this user"}},
)
def create_review(
    book_id: int,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    review = review_service.create_review(
        db,
        book_id=book_id,
        user_id=current_user.id,
        rating=review_data.rating,
        review_text=review_data.review_text,
    )
    return ReviewResponse.model_validate(review)


# =============================================================================
# Individual Review Endpoints
# =============================================================================


@router.get(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review by ID",
)
def get_review(review_id: int, db: DbSession) -> ReviewResponse:
    return ReviewResponse.model_validate(review_service.get_review(db, review_id))


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Replace the rating and text of your own review.",
    responses={403: {"description": "Not the review author"}},
)
def update_review(
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    review = review_service.update_review(
        db,
        review_id=review_id,
        user_id=current_user.id,
        rating=review_data.rating,
        review_text=review_data.review_text,
    )
    return ReviewResponse.model_validate(review)


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    responses={403: {"description": "Not the review author"}},
)
def delete_review(
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    review_service.delete_review(db, review_id=review_id, user_id=current_user.id)


# =============================================================================
# User Review Endpoints
# =============================================================================


@router.get(
    "/users/me/reviews",
    response_model=ReviewListResponse,
    summary="List my reviews",
)
def list_my_reviews(
    db: DbSession,
    current_user: CurrentUser,
    pagination: Pagination,
) -> ReviewListResponse:
    items, total = review_service.list_user_reviews(
        db, current_user.id, skip=pagination.skip, limit=pagination.per_page
    )
    return _review_page(items, total, pagination)
