from __future__ import annotations


class QueryValidationError(ValueError):
    """A recommendation query field is malformed or out of range."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason
