from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import QueryValidationError

DEFAULT_MAX_PAGES = 500
DEFAULT_MIN_RATING = 4.0


class Book(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    genre: str = Field(..., min_length=1)
    pages: int = Field(..., gt=0)
    rating: float = Field(..., ge=0.0, le=5.0)


class RecommendationQuery(BaseModel):
    """Filters for a recommendation request.

    Accepts the camelCase wire names (``preferredGenres``, ``maxPages``,
    ``minRating``) as well as the attribute names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    preferred_genres: list[str] = Field(default_factory=list, alias="preferredGenres")
    max_pages: float = Field(default=DEFAULT_MAX_PAGES, gt=0, allow_inf_nan=False, alias="maxPages")
    min_rating: float = Field(
        default=DEFAULT_MIN_RATING, ge=0.0, le=5.0, allow_inf_nan=False, alias="minRating"
    )

    @field_validator("preferred_genres", mode="before")
    @classmethod
    def _require_list(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise ValueError("must be an array of strings")
        return value

    @field_validator("max_pages", "min_rating", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> Any:
        # bool is an int subclass; "true" is not a page count
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("must be a number")
        return value

    @field_serializer("max_pages")
    def _serialize_max_pages(self, value: float) -> int | float:
        # echo 1000 as 1000, not 1000.0
        return int(value) if float(value).is_integer() else value

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> RecommendationQuery:
        """Build a query from a decoded request body.

        Raises :class:`QueryValidationError` naming the first field that failed.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise QueryValidationError("body", "must be a JSON object")
        try:
            return cls.model_validate(dict(payload))
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            loc = error.get("loc") or ("body",)
            field = _WIRE_NAMES.get(str(loc[0]), str(loc[0]))
            reason = error["msg"].removeprefix("Value error, ")
            raise QueryValidationError(field, reason) from exc


_WIRE_NAMES = {
    name: info.alias or name for name, info in RecommendationQuery.model_fields.items()
}


class RecommendationResult(BaseModel):
    books: list[Book]
    filters: RecommendationQuery
    total_candidates: int


# ── HTTP envelopes ───────────────────────────────────────────────────────


class BookListResponse(BaseModel):
    success: bool = True
    data: list[Book]
    count: int


class BookResponse(BaseModel):
    success: bool = True
    data: Book


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: list[Book]
    filters: RecommendationQuery
    count: int
    total_candidates: int = Field(..., alias="totalCandidates")


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    field: str | None = None
    details: list[dict[str, str]] | None = None
