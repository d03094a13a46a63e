"""
Recommendations Router

Endpoints:
- GET /recommendations - Rule-based recommendations from my favorites
- GET /recommendations/ai - AI-assisted recommendations (best-effort)

The AI endpoint answers 200 even when the AI service is down: the list is
empty and ai_available is false.
"""

from fastapi import APIRouter

from bookreview.dependencies import (
    AIService,
    CoverService,
    CurrentUser,
    DbSession,
    RecommendationLimit,
)
from bookreview.schemas.recommendation import RecommendationListResponse
from bookreview.services import recommendations as recommendation_service

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


@router.get(
    "",
    response_model=RecommendationListResponse,
    summary="Personalized recommendations",
    description="Similar books, then top books in your genres, then community favorites.",
)
def get_recommendations(
    db: DbSession,
    current_user: CurrentUser,
    limit: RecommendationLimit,
) -> RecommendationListResponse:
    result = recommendation_service.get_personalized_recommendations(
        db, current_user.id, limit
    )
    return RecommendationListResponse.model_validate(result)


@router.get(
    "/ai",
    response_model=RecommendationListResponse,
    summary="AI-powered recommendations",
    description="Suggestions from the AI service; check ai_available before trusting an empty list.",
)
def get_ai_recommendations(
    db: DbSession,
    current_user: CurrentUser,
    limit: RecommendationLimit,
    ai_service: AIService,
    cover_service: CoverService,
) -> RecommendationListResponse:
    result = recommendation_service.get_ai_recommendations(
        db,
        current_user.id,
        limit,
        ai_service=ai_service,
        cover_service=cover_service,
    )
    return RecommendationListResponse.model_validate(result)
