"""
Book recommendation engine.

Responsibilities:
- Load the canonical book catalog once at startup.
- Validate recommendation queries (genres, page limit, minimum rating).
- Filter and rank the catalog into a short, rating-ordered list.
"""
