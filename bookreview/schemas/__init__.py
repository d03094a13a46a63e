"""
Pydantic Schemas Package

Request/response models for the HTTP layer. Services work with ORM
models and dataclasses; routers convert them with model_validate().

Schema Naming Convention:
- XxxCreate / XxxUpdate: Request bodies
- XxxResponse: Fields returned in API responses
- XxxListResponse: Lists with pagination metadata
"""

from bookreview.schemas.book import (
    BookListResponse,
    BookMinimal,
    BookPageResponse,
    BookRatingStats,
    BookResponse,
    BookSearchResponse,
    CatalogStatistics,
    FavoriteCheckResponse,
    FavoriteListResponse,
    FavoriteStatusResponse,
)
from bookreview.schemas.recommendation import (
    RecommendationListResponse,
    RecommendationResponse,
)
from bookreview.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)

__all__ = [
    "BookListResponse",
    "BookMinimal",
    "BookPageResponse",
    "BookRatingStats",
    "BookResponse",
    "BookSearchResponse",
    "CatalogStatistics",
    "FavoriteCheckResponse",
    "FavoriteListResponse",
    "FavoriteStatusResponse",
    "RecommendationListResponse",
    "RecommendationResponse",
    "ReviewCreate",
    "ReviewListResponse",
    "ReviewResponse",
    "ReviewUpdate",
]
