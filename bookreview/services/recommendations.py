"""
Recommendations Service

Produces ranked, explained book recommendations for a user.

Personalized recommendations blend three strategies, filled in order:
1. Similarity: books sharing an author or genre tag with a favorite
   (capped at roughly half of the list)
2. Genre trend: top-rated books in the genres the user favors
3. Community: globally top-rated books for whatever slots remain

AI recommendations are a separate entry point. They ask the AI text
collaborator for "Title by Author" suggestions, resolve each against the
catalog (or synthesize a placeholder book), and attach an AI-written
explanation.

Failure Model:
==============
The AI strategy is best-effort. An unconfigured or failing AI collaborator
yields an empty list with ai_available=False; a failing explanation falls
back to a default sentence. The whole AI strategy runs against a deadline
so a slow provider cannot hold the request.
"""

import itertools
import logging
import math
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy.orm import Session

from bookreview import repositories
from bookreview.config import get_settings
from bookreview.exceptions import ExternalServiceError, NotFoundError
from bookreview.models import Book
from bookreview.services.ai import OpenAIService, get_ai_service, split_title_author
from bookreview.services.covers import (
    BookCoverService,
    get_cover_service,
    placeholder_cover_url,
)

logger = logging.getLogger(__name__)

AI_CONFIDENCE = 0.5
MAX_AI_SEEDS = 5
GENERIC_GENRES = ["Mystery", "Romance", "Fantasy", "Science Fiction"]

PLACEHOLDER_DESCRIPTION = "This book was recommended by AI but is not yet in our database."
PLACEHOLDER_GENRES = "Various"
GENERIC_AI_EXPLANATION = "AI-recommended popular book in this genre"


class StrategyType(str, Enum):
    """Which strategy produced a recommendation."""

    GENRE_SIMILARITY = "genre_similarity"
    GENRE_TRENDING = "genre_trending"
    COMMUNITY_FAVORITE = "community_favorite"
    AI_RECOMMENDATION = "ai_recommendation"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Recommendation:
    book: Book
    explanation: str
    strategy: StrategyType
    confidence: float
    recommended_at: datetime = field(default_factory=_utcnow)

    @property
    def is_placeholder(self) -> bool:
        """True when the book is not a catalog entry."""
        return self.book.is_placeholder


@dataclass
class RecommendationResult:
    """
    A ranked recommendation list.

    kind is "personalized" or "ai_powered". ai_available is None for
    personalized results; for AI results False means the collaborator was
    unconfigured or failed, so an empty list says nothing about the user.
    """

    user_id: int
    recommendations: list[Recommendation]
    kind: str
    ai_available: bool | None = None
    refreshed_at: datetime = field(default_factory=_utcnow)

    @property
    def count(self) -> int:
        return len(self.recommendations)


# =============================================================================
# Confidence Scoring
# =============================================================================


def calculate_confidence(book: Book, strategy: StrategyType) -> float:
    """
    Heuristic [0, 1] score for a rule-based recommendation.

    Scoring:
    - Base: 0.5
    - Rating: +0.3 if >= 4.5, +0.2 if >= 4.0, +0.1 if >= 3.5
    - Popularity: +0.2 if >= 100 reviews, +0.1 if >= 50
    - Strategy: +0.1 for similarity hits, +0.05 for community favorites

    Example:
        A 4.6-rated book with 120 reviews found by similarity scores 1.0
        (0.5 + 0.3 + 0.2 + 0.1, clamped).
    """
    confidence = 0.5
    rating = book.average_rating if book.average_rating is not None else Decimal("0")
    review_count = book.review_count or 0

    if rating >= Decimal("4.5"):
        confidence += 0.3
    elif rating >= Decimal("4.0"):
        confidence += 0.2
    elif rating >= Decimal("3.5"):
        confidence += 0.1

    if review_count >= 100:
        confidence += 0.2
    elif review_count >= 50:
        confidence += 0.1

    if strategy == StrategyType.GENRE_SIMILARITY:
        confidence += 0.1
    elif strategy == StrategyType.COMMUNITY_FAVORITE:
        confidence += 0.05

    return round(min(1.0, max(0.0, confidence)), 2)


# =============================================================================
# Internal Helpers
# =============================================================================


class _RecommendationList:
    """Accumulates recommendations, skipping excluded and duplicate books."""

    def __init__(self, limit: int, excluded_ids: set[int]) -> None:
        self.limit = limit
        self.excluded_ids = set(excluded_ids)
        self.chosen_ids: set[int] = set()
        self.items: list[Recommendation] = []

    @property
    def is_full(self) -> bool:
        return len(self.items) >= self.limit

    @property
    def remaining(self) -> int:
        return max(0, self.limit - len(self.items))

    @property
    def skip_count(self) -> int:
        """How many fetched rows may be skipped as excluded or duplicate."""
        return len(self.excluded_ids) + len(self.chosen_ids)

    def accepts(self, book: Book) -> bool:
        return (
            not self.is_full
            and book.id not in self.excluded_ids
            and book.id not in self.chosen_ids
        )

    def add(
        self,
        book: Book,
        explanation: str,
        strategy: StrategyType,
        confidence: float | None = None,
    ) -> bool:
        if not self.accepts(book):
            return False
        if confidence is None:
            confidence = calculate_confidence(book, strategy)
        self.chosen_ids.add(book.id)
        self.items.append(Recommendation(book, explanation, strategy, confidence))
        return True


class _Deadline:
    """Time budget shared by every external call of one AI request."""

    def __init__(self, seconds: float) -> None:
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0

    def timeout(self, client_timeout: float) -> float:
        return min(client_timeout, self.remaining())


def _require_user(db: Session, user_id: int) -> None:
    if repositories.get_user(db, user_id) is None:
        raise NotFoundError(f"User with id {user_id} not found")


def _resolve_limit(limit: int | None) -> int:
    return get_settings().recommendation_default_limit if limit is None else limit


def _distinct_genres(books: list[Book]) -> list[str]:
    """Genre tags across books, deduplicated case-insensitively, in order."""
    seen: set[str] = set()
    genres = []
    for book in books:
        for genre in book.genre_list:
            if genre.lower() not in seen:
                seen.add(genre.lower())
                genres.append(genre)
    return genres


# =============================================================================
# Personalized Recommendations
# =============================================================================


def get_personalized_recommendations(
    db: Session,
    user_id: int,
    limit: int | None = None,
) -> RecommendationResult:
    """
    Rule-based recommendations from the user's favorites.

    A user without favorites gets community favorites only. Favorites
    themselves are never recommended.

    Args:
        db: Database session
        user_id: The user to recommend for
        limit: Maximum number of recommendations (default from settings)

    Raises:
        NotFoundError: Unknown user
    """
    settings = get_settings()
    limit = _resolve_limit(limit)
    if limit <= 0:
        return RecommendationResult(user_id, [], "personalized")

    _require_user(db, user_id)

    favorites = repositories.get_favorite_books(db, user_id)
    results = _RecommendationList(limit, {book.id for book in favorites})

    # Strategy 1: similarity, capped at half the list
    similarity_cap = math.ceil(limit / 2)
    per_favorite = settings.similar_books_per_favorite
    for favorite in favorites:
        if len(results.items) >= similarity_cap:
            break
        candidates = repositories.find_similar_books(
            db,
            favorite.id,
            favorite.author,
            favorite.genre_list,
            per_favorite + results.skip_count,
        )
        added = 0
        for book in candidates:
            if added >= per_favorite or len(results.items) >= similarity_cap:
                break
            if results.add(
                book,
                f"Similar to your favorite: {favorite.title}",
                StrategyType.GENRE_SIMILARITY,
            ):
                added += 1

    logger.debug(f"User {user_id}: {len(results.items)} similarity recommendation(s)")

    # Strategy 2: top-rated books in the user's genres
    per_genre = settings.genre_books_per_tag
    for genre in _distinct_genres(favorites):
        if results.is_full:
            break
        candidates = repositories.find_books_by_genre(
            db, genre, per_genre + results.skip_count
        )
        added = 0
        for book in candidates:
            if added >= per_genre or results.is_full:
                break
            if results.add(book, f"Highly rated in {genre}", StrategyType.GENRE_TRENDING):
                added += 1

    # Strategy 3: community favorites fill what is left
    if not results.is_full:
        candidates = repositories.find_top_rated_books(
            db,
            Decimal(str(settings.top_rated_min_rating)),
            results.remaining + results.skip_count,
        )
        for book in candidates:
            if results.is_full:
                break
            results.add(book, "Top rated by the community", StrategyType.COMMUNITY_FAVORITE)

    logger.debug(f"User {user_id}: {len(results.items)} personalized recommendation(s)")
    return RecommendationResult(user_id, results.items, "personalized")


# =============================================================================
# AI Recommendations
# =============================================================================


def _find_catalog_match(db: Session, title: str, author: str) -> Book | None:
    """First exact (title or author) match, else first partial match."""
    matches = repositories.find_books_by_title_or_author(db, title, author)
    for book in matches:
        if book.title.lower() == title.lower() or book.author.lower() == author.lower():
            return book
    return matches[0] if matches else None


def _placeholder_book(
    book_id: int,
    title: str,
    author: str,
    cover_service: BookCoverService,
    deadline: _Deadline,
) -> Book:
    """A transient Book for an AI suggestion that is not in the catalog."""
    if deadline.expired():
        cover_url = placeholder_cover_url(title, author)
    else:
        cover_url = cover_service.cover_url(
            title, author, timeout=deadline.timeout(get_settings().cover_timeout)
        )

    return Book(
        id=book_id,
        title=title,
        author=author,
        description=PLACEHOLDER_DESCRIPTION,
        cover_image_url=cover_url,
        genres=PLACEHOLDER_GENRES,
        average_rating=Decimal("0.00"),
        review_count=0,
    )


def _explain(
    ai_service: OpenAIService,
    recommendation: str,
    seeds: list[str],
    deadline: _Deadline,
) -> str:
    default = f"Because you liked {seeds[0]}, you might enjoy this similar book."
    if deadline.expired():
        return default

    try:
        explanation = ai_service.explain_recommendation(
            recommendation,
            seeds,
            timeout=deadline.timeout(get_settings().openai_timeout),
        )
    except ExternalServiceError as e:
        logger.warning(f"AI explanation failed for '{recommendation}': {e}")
        return default

    return explanation or default


def get_ai_recommendations(
    db: Session,
    user_id: int,
    limit: int | None = None,
    ai_service: OpenAIService | None = None,
    cover_service: BookCoverService | None = None,
    deadline_seconds: float | None = None,
) -> RecommendationResult:
    """
    AI-assisted recommendations based on up to 5 of the user's favorites.

    Never raises for AI or cover failures; check ai_available on the result
    before reading anything into an empty list.

    Args:
        db: Database session
        user_id: The user to recommend for
        limit: Maximum number of recommendations (default from settings)
        ai_service: AI text collaborator (default: shared instance)
        cover_service: Cover lookup collaborator (default: shared instance)
        deadline_seconds: Time budget (default: settings.ai_deadline_seconds)

    Raises:
        NotFoundError: Unknown user
    """
    settings = get_settings()
    limit = _resolve_limit(limit)
    ai_service = ai_service or get_ai_service()
    cover_service = cover_service or get_cover_service()

    if limit <= 0:
        return RecommendationResult(
            user_id, [], "ai_powered", ai_available=ai_service.is_available()
        )

    _require_user(db, user_id)

    if not ai_service.is_available():
        logger.info("AI service not configured, skipping AI recommendations")
        return RecommendationResult(user_id, [], "ai_powered", ai_available=False)

    deadline = _Deadline(
        settings.ai_deadline_seconds if deadline_seconds is None else deadline_seconds
    )

    favorites = repositories.get_favorite_books(db, user_id)
    seeds = [book.display_name() for book in favorites[:MAX_AI_SEEDS]]
    generic = not seeds
    if generic:
        seeds = [f"Popular {random.choice(GENERIC_GENRES)} books"]

    try:
        suggestions = ai_service.recommend_books(
            seeds, timeout=deadline.timeout(settings.openai_timeout)
        )
    except ExternalServiceError as e:
        logger.warning(f"AI recommendations unavailable for user {user_id}: {e}")
        return RecommendationResult(user_id, [], "ai_powered", ai_available=False)

    favorite_keys = {(book.title.lower(), book.author.lower()) for book in favorites}
    seen_keys: set[tuple[str, str]] = set()
    placeholder_ids = itertools.count(-1, -1)
    results = _RecommendationList(limit, {book.id for book in favorites})

    for suggestion in suggestions:
        if results.is_full:
            break

        parts = split_title_author(suggestion)
        if parts is None:
            continue
        title, author = parts

        key = (title.lower(), author.lower())
        if key in favorite_keys or key in seen_keys:
            continue
        seen_keys.add(key)

        book = _find_catalog_match(db, title, author)
        if book is None:
            book = _placeholder_book(
                next(placeholder_ids), title, author, cover_service, deadline
            )
        elif (book.title.lower(), book.author.lower()) in favorite_keys:
            continue

        if not results.accepts(book):
            continue

        if generic:
            explanation = GENERIC_AI_EXPLANATION
        else:
            explanation = _explain(ai_service, suggestion, seeds, deadline)

        results.add(book, explanation, StrategyType.AI_RECOMMENDATION, AI_CONFIDENCE)

    logger.debug(f"User {user_id}: {len(results.items)} AI recommendation(s)")
    return RecommendationResult(user_id, results.items, "ai_powered", ai_available=True)


# =============================================================================
# Catalog Listings
# =============================================================================


def get_similar_books(db: Session, book_id: int, limit: int = 10) -> list[Book]:
    """
    Books sharing an author or genre tag with the given book.

    Raises:
        NotFoundError: Unknown book
    """
    book = repositories.get_book(db, book_id)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    if limit <= 0:
        return []
    return repositories.find_similar_books(db, book.id, book.author, book.genre_list, limit)


def get_top_rated_books(
    db: Session,
    limit: int = 10,
    min_rating: float | None = None,
) -> list[Book]:
    """Reviewed books rated at least min_rating (default from settings)."""
    if limit <= 0:
        return []
    if min_rating is None:
        min_rating = get_settings().top_rated_min_rating
    return repositories.find_top_rated_books(db, Decimal(str(min_rating)), limit)
