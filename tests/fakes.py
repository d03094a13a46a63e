"""
In-memory stand-ins for the external collaborators.

They follow the method signatures of OpenAIService and BookCoverService
and record every call so tests can assert on timeouts and call counts.
"""

from bookreview.exceptions import ExternalServiceError


class FakeAIService:
    def __init__(
        self,
        available: bool = True,
        recommendations: list[str] | None = None,
        explanation: str = "It shares the themes you enjoy.",
        fail_recommend: bool = False,
        fail_explain: bool = False,
    ) -> None:
        self.available = available
        self.recommendations = recommendations or []
        self.explanation = explanation
        self.fail_recommend = fail_recommend
        self.fail_explain = fail_explain
        self.recommend_calls: list[tuple[list[str], float | None]] = []
        self.explain_calls: list[tuple[str, list[str], float | None]] = []

    def is_available(self) -> bool:
        return self.available

    def recommend_books(self, favorite_books, timeout=None) -> list[str]:
        self.recommend_calls.append((list(favorite_books), timeout))
        if self.fail_recommend:
            raise ExternalServiceError("AI request failed: connection refused")
        return list(self.recommendations)

    def explain_recommendation(self, recommendation, favorite_books, timeout=None) -> str:
        self.explain_calls.append((recommendation, list(favorite_books), timeout))
        if self.fail_explain:
            raise ExternalServiceError("AI request failed: timed out")
        return self.explanation


class FakeCoverService:
    def __init__(self, url: str = "https://covers.openlibrary.org/b/id/1-L.jpg") -> None:
        self.url = url
        self.calls: list[tuple[str, str, float | None]] = []

    def cover_url(self, title, author, timeout=None) -> str:
        self.calls.append((title, author, timeout))
        return self.url
