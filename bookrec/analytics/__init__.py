"""
Request analytics.

Responsibilities:
- Record one event per HTTP request and per recommendation served.
- Aggregate recorded events into the ``/analytics`` summary.
"""
