"""HTTP status codes."""

from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    """Enumeration of the HTTP status codes emitted by the router."""

    OK = 200
    TEMPORARY_REDIRECT = 307
    NOT_FOUND = 404
    UNSUPPORTED_MEDIA_TYPE = 415
    INTERNAL_SERVER_ERROR = 500


__all__ = ["Status"]
