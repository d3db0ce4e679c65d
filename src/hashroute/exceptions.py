"""Package exception types."""

from __future__ import annotations


class HashRouteError(Exception):
    """Base error type."""


class RouteDefinitionError(HashRouteError, ValueError):
    """Raised when a route key or path template cannot be compiled."""

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Invalid route {key!r}: {detail}")
        self.key = key
        self.detail = detail


class ResponseTypeError(HashRouteError, TypeError):
    """Raised when a handler returns something other than a response."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Handler returned {type(value).__name__}, expected Response")
        self.value = value
