"""
Recommendation Pydantic Schemas

Response shapes for personalized and AI recommendations. Both endpoints
return the same envelope; kind tells them apart and ai_available is only
set for AI results.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bookreview.schemas.book import BookResponse
from bookreview.services.recommendations import StrategyType


class RecommendationResponse(BaseModel):
    book: BookResponse
    explanation: str = Field(..., description="Why this book was recommended")
    strategy: StrategyType = Field(..., description="Strategy that produced it")
    confidence: float = Field(..., ge=0, le=1, description="Heuristic score, not a probability")
    recommended_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecommendationListResponse(BaseModel):
    """
    A ranked recommendation list.

    Example:
        {
            "user_id": 7,
            "kind": "ai_powered",
            "ai_available": false,
            "count": 0,
            "recommendations": [],
            "refreshed_at": "2024-01-15T10:30:00Z"
        }
    """

    user_id: int
    kind: str = Field(..., description='"personalized" or "ai_powered"')
    ai_available: bool | None = Field(
        default=None,
        description="AI results only: false when the AI service was unavailable",
    )
    count: int = Field(..., ge=0)
    recommendations: list[RecommendationResponse]
    refreshed_at: datetime

    model_config = ConfigDict(from_attributes=True)
