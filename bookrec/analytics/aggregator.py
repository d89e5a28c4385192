from __future__ import annotations

from collections import Counter
from typing import Any


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "request"]
    total = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Status codes and routes
    status_counter: Counter[str] = Counter(str(r.get("status_code", "unknown")) for r in requests)
    route_counter: Counter[str] = Counter(
        f"{r.get('method', '?')} {r.get('route', 'unknown')}" for r in requests
    )
    top_routes = [{"name": n, "count": c} for n, c in route_counter.most_common(10)]
    errors = sum(1 for r in requests if int(r.get("status_code", 0)) >= 400)

    # Recommendation usage
    recs = [e for e in events if e["type"] == "recommendation"]
    genre_counter: Counter[str] = Counter()
    for r in recs:
        for g in r.get("preferred_genres", []) or []:
            genre_counter[g.lower()] += 1
    top_genres = [{"name": n, "count": c} for n, c in genre_counter.most_common(10)]

    returned = [r.get("results_returned", 0) for r in recs]
    avg_results = round(sum(returned) / len(returned), 1) if returned else 0.0
    with_genres = sum(1 for r in recs if r.get("preferred_genres"))

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "status_codes": dict(status_counter),
        "top_routes": top_routes,
        "error_rate": _rate(errors, total),
        "recommendations": {
            "total": len(recs),
            "top_genres": top_genres,
            "avg_results_returned": avg_results,
            "empty_results": sum(1 for n in returned if n == 0),
            "genre_filter_usage": _rate(with_genres, len(recs)),
        },
    }
