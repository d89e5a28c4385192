from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from .analytics.aggregator import compute_analytics
from .analytics.store import EventStore
from .config import DEFAULT_CONFIG, AppConfig
from .metrics import RequestMetrics
from .recommendations.data_store import get_catalog
from .recommendations.engine import RecommendationEngine
from .recommendations.errors import QueryValidationError
from .recommendations.models import (
    Book,
    BookListResponse,
    BookResponse,
    ErrorResponse,
    RecommendationResponse,
)

logger = logging.getLogger(__name__)

UNMATCHED_ROUTE = "<unmatched>"

# Replacements for Starlette's bare status phrases
_DEFAULT_ERRORS = {
    404: "Endpoint not found",
    405: "Method not allowed",
}

router = APIRouter()


# ── Dependencies ─────────────────────────────────────────────────────────


def get_engine(request: Request) -> RecommendationEngine:
    return request.app.state.engine


def get_metrics(request: Request) -> RequestMetrics:
    return request.app.state.metrics


def get_event_store(request: Request) -> EventStore:
    return request.app.state.events


async def _read_json_body(request: Request) -> Any:
    """Decode the request body; an empty body counts as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        raise HTTPException(status_code=400, detail="Invalid JSON in request body") from None


def _route_label(request: Request) -> str:
    """Return the route template for *request*, e.g. ``/books/{book_id}``."""
    partial = None
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
        if match == Match.PARTIAL and partial is None:
            partial = getattr(route, "path", None)
    return partial or UNMATCHED_ROUTE


# ── Public endpoints ─────────────────────────────────────────────────────


@router.get("/health")
def health(request: Request) -> dict[str, Any]:
    uptime = time.monotonic() - request.app.state.started_at
    return {"status": "OK", "uptime_seconds": round(uptime, 3)}


@router.get("/books", response_model=BookListResponse)
def list_books(engine: RecommendationEngine = Depends(get_engine)) -> BookListResponse:
    books = engine.list_all()
    return BookListResponse(data=books, count=len(books))


@router.get("/books/{book_id}", response_model=BookResponse)
def get_book(
    book_id: int,
    engine: RecommendationEngine = Depends(get_engine),
) -> BookResponse:
    book = engine.find_by_id(book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse(data=book)


@router.post("/recommendations", response_model=RecommendationResponse)
async def recommendations(
    request: Request,
    engine: RecommendationEngine = Depends(get_engine),
    events: EventStore = Depends(get_event_store),
) -> RecommendationResponse:
    payload = await _read_json_body(request)
    result = engine.recommend(payload)

    logger.debug(
        "Recommended %d of %d candidates for genres=%s",
        len(result.books), result.total_candidates, result.filters.preferred_genres,
    )
    events.record_event("recommendation", {
        "preferred_genres": list(result.filters.preferred_genres),
        "max_pages": result.filters.max_pages,
        "min_rating": result.filters.min_rating,
        "total_candidates": result.total_candidates,
        "results_returned": len(result.books),
    })

    return RecommendationResponse(
        data=result.books,
        filters=result.filters,
        count=len(result.books),
        total_candidates=result.total_candidates,
    )


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics(sink: RequestMetrics = Depends(get_metrics)) -> Response:
    payload, content_type = sink.render()
    return Response(content=payload, media_type=content_type)


@router.get("/analytics")
def analytics(events: EventStore = Depends(get_event_store)) -> dict[str, Any]:
    return compute_analytics(events.get_events())


# ── Error handlers ───────────────────────────────────────────────────────


def _error_response(
    status_code: int, error: str, headers: dict[str, str] | None = None, **extra: Any,
) -> JSONResponse:
    body = ErrorResponse(error=error, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


async def _handle_query_validation(request: Request, exc: QueryValidationError) -> JSONResponse:
    logger.info("Rejected recommendation query: %s", exc)
    return _error_response(400, f"Invalid {exc.field}: {exc.reason}", field=exc.field)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return _error_response(400, "Invalid request parameters", details=details)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = str(exc.detail)
    if detail == HTTPStatus(exc.status_code).phrase:
        detail = _DEFAULT_ERRORS.get(exc.status_code, detail)
    return _error_response(exc.status_code, detail, headers=getattr(exc, "headers", None))


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    # The server logs the traceback when the error is re-raised
    logger.error(
        "Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path,
    )
    return _error_response(500, "Internal server error")


# ── Application factory ──────────────────────────────────────────────────


def create_app(
    catalog: Sequence[Book] | None = None,
    config: AppConfig | None = None,
    metrics: RequestMetrics | None = None,
    events: EventStore | None = None,
) -> FastAPI:
    """Build the API around an engine, a metrics sink and an event store.

    Anything not passed in is created from *config* (``DEFAULT_CONFIG`` by
    default); the catalog is read from ``config.catalog_path``.
    """
    app_config = config or DEFAULT_CONFIG
    books = catalog if catalog is not None else get_catalog(app_config.catalog_path)

    app = FastAPI(title="Book Recommendation API", version="1.0.0")
    app.state.engine = RecommendationEngine(books, limit=app_config.recommendation_limit)
    app.state.metrics = metrics if metrics is not None else RequestMetrics()
    if events is None:
        events = EventStore(max_events=app_config.analytics_max_events)
    app.state.events = events
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - start
            route = _route_label(request)
            request.app.state.metrics.observe(request.method, route, status_code, elapsed)
            request.app.state.events.record_event("request", {
                "method": request.method,
                "route": route,
                "status_code": status_code,
                "response_time_ms": round(elapsed * 1000, 3),
            })

    app.add_exception_handler(QueryValidationError, _handle_query_validation)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected)

    app.include_router(router)

    logger.info("Book Recommendation API ready with %d books", len(app.state.engine.catalog))
    return app


app = create_app()
