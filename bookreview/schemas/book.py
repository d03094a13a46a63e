"""
Book Pydantic Schemas

Books are read-only through this API; the catalog itself is managed
elsewhere. Responses carry the derived rating aggregate as stored.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class BookResponse(BaseModel):
    """
    Schema for book responses.

    is_placeholder marks AI suggestions that are not catalog entries; such
    books have a negative id and cannot be reviewed or favorited.
    """

    id: int = Field(..., description="Book ID (negative for placeholders)")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    description: str | None = Field(default=None, description="Summary")
    cover_image_url: str | None = Field(default=None, description="Cover image URL")
    genres: str | None = Field(
        default=None,
        description="Comma-separated genre tags",
        examples=["Fantasy, Adventure"],
    )
    published_year: int | None = Field(default=None, description="Year of publication")
    average_rating: Decimal = Field(
        ...,
        ge=0,
        le=5,
        description="Mean review rating, 2 decimals (0.00 means no reviews)",
    )
    review_count: int = Field(..., ge=0, description="Number of reviews")
    is_placeholder: bool = Field(
        default=False,
        description="True for AI suggestions not in the catalog",
    )
    is_popular: bool = Field(default=False, description="At least 10 reviews")
    is_highly_rated: bool = Field(default=False, description="Average rating of 4.00 or more")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "description": "A hobbit is swept into a quest...",
                "cover_image_url": "https://covers.openlibrary.org/b/id/6979861-L.jpg",
                "genres": "Fantasy, Adventure",
                "published_year": 1937,
                "average_rating": "4.25",
                "review_count": 4,
                "is_placeholder": False,
                "is_popular": False,
                "is_highly_rated": True,
            }
        },
    )


class BookListResponse(BaseModel):
    """A plain list of books, with its length."""

    items: list[BookResponse]
    total: int = Field(..., ge=0)


class BookPageResponse(BaseModel):
    """A page of the catalog with pagination metadata."""

    items: list[BookResponse]
    total: int = Field(..., ge=0, description="Total number of matching books")
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class BookSearchResponse(BookPageResponse):
    query: str = Field(..., description="The search text as given")


class CatalogStatistics(BaseModel):
    """
    Catalog-wide totals.

    average_rating is the mean of the per-book averages of reviewed books
    (0.00 when nothing has been reviewed).
    """

    total_books: int = Field(..., ge=0)
    reviewed_books: int = Field(..., ge=0, description="Books with at least one review")
    total_reviews: int = Field(..., ge=0)
    average_rating: Decimal = Field(..., ge=0, le=5)
    popular_books: int = Field(..., ge=0, description="Books with at least 10 reviews")
    highly_rated_books: int = Field(..., ge=0, description="Reviewed books rated 4.00 or more")


class BookMinimal(BaseModel):
    """Just enough book data to identify the book inside another response."""

    id: int = Field(..., description="Book ID")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")

    model_config = ConfigDict(from_attributes=True)


class BookRatingStats(BaseModel):
    """
    Stored rating aggregate of a book plus its rating distribution.

    average_rating and review_count are exactly the values on the book
    row; the distribution is counted from the reviews.
    """

    book_id: int = Field(..., description="Book ID")
    average_rating: Decimal = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)"
    )
    review_count: int = Field(..., ge=0, description="Total number of reviews")
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "book_id": 42,
                "average_rating": "4.25",
                "review_count": 4,
                "rating_distribution": {"1": 0, "2": 0, "3": 1, "4": 1, "5": 2},
            }
        },
    )


class FavoriteStatusResponse(BaseModel):
    """Result of adding or removing a favorite."""

    book_id: int
    is_favorite: bool
    changed: bool = Field(
        ...,
        description="False when the book was already (or already not) a favorite",
    )


class FavoriteListResponse(BaseModel):
    """A page of the user's favorite books, most recently favorited first."""

    items: list[BookResponse]
    total: int = Field(..., ge=0, description="Total number of favorites")
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class FavoriteCheckResponse(BaseModel):
    book_id: int
    is_favorite: bool
