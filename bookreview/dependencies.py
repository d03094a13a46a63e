"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- DbSession: per-request database session
- Pagination: page/per_page query parameters
- BookFilters: search text and filters for book search
- CurrentUser: the user identified by the Bearer token
- AIService / CoverService: external collaborator clients (tests override
  these with fakes through app.dependency_overrides)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.config import get_settings
from bookreview.database import get_db
from bookreview.models import User
from bookreview.services.ai import OpenAIService, get_ai_service
from bookreview.services.covers import BookCoverService, get_cover_service
from bookreview.services.security import get_user_id_from_token

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for the database query

    Usage in route:
        @router.get("/books/{book_id}/reviews")
        def list_reviews(book_id: int, db: DbSession, pagination: Pagination):
            reviews.list_book_reviews(db, book_id, pagination.skip, pagination.per_page)
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Page 1 skips 0 items, page 2 skips per_page items, and so on."""
        return (self.page - 1) * self.per_page

    def pages(self, total: int) -> int:
        return (total + self.per_page - 1) // self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book Search Filters
# =============================================================================
class BookSearchParams:
    """
    Search text and filters for GET /books/search.

    q is matched against title, author and description (partial match,
    case-insensitive). The other filters are optional and combine with AND.

    Usage:
        GET /books/search?q=tolkien&min_rating=4&min_year=1930&max_year=1960
    """

    def __init__(
        self,
        q: str = Query(
            ...,
            min_length=1,
            max_length=100,
            description="Search text (title, author or description)",
            examples=["tolkien", "desert planet"],
        ),
        min_rating: float | None = Query(
            default=None,
            ge=0,
            le=5,
            description="Minimum average rating",
        ),
        min_year: int | None = Query(
            default=None,
            ge=1000,
            le=9999,
            description="Minimum publication year",
            examples=[1900, 1950],
        ),
        max_year: int | None = Query(
            default=None,
            ge=1000,
            le=9999,
            description="Maximum publication year",
            examples=[2000, 2024],
        ),
    ) -> None:
        self.q = q
        self.min_rating = min_rating
        self.min_year = min_year
        self.max_year = max_year


BookFilters = Annotated[BookSearchParams, Depends()]


# =============================================================================
# JWT Authentication
# =============================================================================
# Tokens are issued by the account service; the URL only feeds Swagger UI.

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=True,
)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the Bearer token to an active user.

    Raises:
        HTTPException: 401 if the token is invalid or the user is unknown,
            403 if the account is inactive
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = get_user_id_from_token(token)
    if user_id is None:
        raise credentials_exception

    user = repositories.get_user(db, user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


# =============================================================================
# External Collaborators
# =============================================================================
AIService = Annotated[OpenAIService, Depends(get_ai_service)]
CoverService = Annotated[BookCoverService, Depends(get_cover_service)]


def get_recommendation_limit(
    limit: int = Query(
        default=settings.recommendation_default_limit,
        ge=0,
        le=50,
        description="Maximum number of recommendations",
    ),
) -> int:
    return limit


RecommendationLimit = Annotated[int, Depends(get_recommendation_limit)]
