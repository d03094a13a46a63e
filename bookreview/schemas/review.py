"""
Review Pydantic Schemas

Schemas:
- ReviewCreate / ReviewUpdate: Request bodies (rating plus optional text)
- ReviewResponse: A review with the reviewed book
- ReviewListResponse: Paginated list of reviews

Business Rules:
- Rating must be 1-5 (checked here and again by the service)
- Review text is trimmed by the service; blank text is stored as null and
  at most 2000 characters are accepted
- One review per user per book (409 on a second create)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bookreview.schemas.book import BookMinimal


class ReviewBase(BaseModel):
    rating: int = Field(
        ...,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )

    review_text: str | None = Field(
        default=None,
        description="Optional review text (at most 2000 characters)",
        examples=["This book changed my perspective on..."],
    )


class ReviewCreate(ReviewBase):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 5,
        "review_text": "One of the best books I've ever read..."
    }
    """

    pass


class ReviewUpdate(ReviewBase):
    """
    Schema for updating a review.

    Both fields are replaced: omitting review_text clears the text.
    """

    pass


class ReviewResponse(ReviewBase):
    """
    Schema for review responses.

    Includes the database fields (id, timestamps) and the reviewed book.
    """

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    book: BookMinimal = Field(..., description="Book being reviewed")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 5,
                "review_text": "A must-read classic!",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "book": {"id": 42, "title": "1984", "author": "George Orwell"},
            }
        },
    )


class ReviewListResponse(BaseModel):
    """
    Schema for paginated review list responses.

    - total: Total number of reviews
    - page / per_page: The requested page
    - pages: Total number of pages
    """

    items: list[ReviewResponse] = Field(..., description="Reviews on this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
