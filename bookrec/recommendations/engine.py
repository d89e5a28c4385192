from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .models import Book, RecommendationQuery, RecommendationResult

DEFAULT_LIMIT = 5
MAX_LIMIT = 5


def _genre_matches(genre: str, tokens: list[str]) -> bool:
    """Return True when *genre* contains any of the lower-cased *tokens*."""
    genre_lower = genre.lower()
    return any(token in genre_lower for token in tokens)


class RecommendationEngine:
    """Answers lookups and ranked recommendation queries over a fixed catalog.

    The catalog is copied into a tuple of frozen :class:`Book` models at
    construction and never changes afterwards, so one engine can be shared
    by concurrent requests.
    """

    def __init__(self, catalog: Iterable[Book], limit: int = DEFAULT_LIMIT) -> None:
        self._catalog: tuple[Book, ...] = tuple(catalog)
        if not self._catalog:
            raise ValueError("catalog must contain at least one book")
        if not 1 <= limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
        self._limit = limit

    @property
    def catalog(self) -> tuple[Book, ...]:
        return self._catalog

    @property
    def limit(self) -> int:
        return self._limit

    def list_all(self) -> list[Book]:
        """Return every book in catalog order as a new list."""
        return list(self._catalog)

    def find_by_id(self, book_id: int) -> Book | None:
        """Return the book with *book_id*, or ``None`` when there is none."""
        for book in self._catalog:
            if book.id == book_id:
                return book
        return None

    def recommend(
        self, query: RecommendationQuery | Mapping[str, Any] | None = None,
    ) -> RecommendationResult:
        """Filter the catalog by *query* and return the top-rated matches.

        *query* may be a :class:`RecommendationQuery` or a decoded request
        body; the latter is validated first and raises
        :class:`~bookrec.recommendations.errors.QueryValidationError` on bad
        input. Books with equal ratings keep their catalog order.
        """
        if not isinstance(query, RecommendationQuery):
            query = RecommendationQuery.from_payload(query)

        tokens = [genre.lower() for genre in query.preferred_genres]

        candidates = [
            book
            for book in self._catalog
            if book.rating >= query.min_rating
            and book.pages <= query.max_pages
            and (not tokens or _genre_matches(book.genre, tokens))
        ]

        # sorted() is stable, also with reverse=True
        ranked = sorted(candidates, key=lambda book: book.rating, reverse=True)

        return RecommendationResult(
            books=ranked[: self._limit],
            filters=query,
            total_candidates=len(candidates),
        )
