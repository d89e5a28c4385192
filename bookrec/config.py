from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .analytics.store import DEFAULT_MAX_EVENTS
from .recommendations.data_store import DEFAULT_CATALOG_PATH
from .recommendations.engine import DEFAULT_LIMIT

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class AppConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    catalog_path: Path = DEFAULT_CATALOG_PATH
    recommendation_limit: int = DEFAULT_LIMIT
    cors_origins: tuple[str, ...] = ("*",)
    analytics_max_events: int = DEFAULT_MAX_EVENTS


def _split_origins(raw: str) -> tuple[str, ...]:
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or ("*",)


def load_config() -> AppConfig:
    """Build an :class:`AppConfig` from ``BOOKREC_*`` environment variables."""
    return AppConfig(
        host=os.getenv("BOOKREC_HOST", "0.0.0.0"),
        port=int(os.getenv("BOOKREC_PORT") or os.getenv("PORT") or 3000),
        log_level=os.getenv("BOOKREC_LOG_LEVEL", "INFO").upper(),
        catalog_path=Path(os.getenv("BOOKREC_CATALOG_PATH") or DEFAULT_CATALOG_PATH),
        recommendation_limit=int(os.getenv("BOOKREC_RECOMMENDATION_LIMIT") or DEFAULT_LIMIT),
        cors_origins=_split_origins(os.getenv("BOOKREC_CORS_ORIGINS", "*")),
        analytics_max_events=int(os.getenv("BOOKREC_ANALYTICS_MAX_EVENTS") or DEFAULT_MAX_EVENTS),
    )


DEFAULT_CONFIG = load_config()
