"""Response primitives."""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import msgspec

from .http import Status
from .serialization import json_encode

Headers = tuple[tuple[str, str], ...]

_REDIRECT_BASE = "http://localhost"


class Response(msgspec.Struct, frozen=True):
    """Immutable response payload."""

    status: int = int(Status.OK)
    headers: Headers = ()
    body: bytes = b""
    reason: str | None = None

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the last value set for ``name`` (case-insensitive)."""

        lowered = name.lower()
        for key, value in reversed(self.headers):
            if key.lower() == lowered:
                return value
        return default

    def text(self) -> str:
        return self.body.decode("utf-8")


class ResponseInit(msgspec.Struct, frozen=True):
    """Status and extra headers a caller wants on an encoded response."""

    status: int = int(Status.OK)
    headers: Headers = ()

    def with_header(self, name: str, value: str) -> "ResponseInit":
        """Return a copy with ``name`` set to ``value``, replacing earlier values."""

        lowered = name.lower()
        kept = tuple((key, val) for key, val in self.headers if key.lower() != lowered)
        return ResponseInit(status=self.status, headers=kept + ((lowered, value),))


def PlainTextResponse(
    text: str,
    *,
    status: int = int(Status.OK),
    headers: Iterable[tuple[str, str]] | None = None,
    reason: str | None = None,
) -> Response:
    """Create a plain text response."""

    default_headers = (("content-type", "text/plain; charset=utf-8"),)
    combined = default_headers + tuple(headers or ())
    return Response(status=status, headers=combined, body=text.encode("utf-8"), reason=reason)


def JSONResponse(data: Any, init: ResponseInit | None = None) -> Response:
    """Create a JSON response encoded via :mod:`msgspec`.

    ``init`` supplies the status and extra headers; its ``content-type`` is
    always replaced with ``application/json``.
    """

    init = (init or ResponseInit()).with_header("content-type", "application/json")
    return Response(status=init.status, headers=init.headers, body=json_encode(data))


def redirect(url: str, query: Mapping[str, str] | None = None) -> Response:
    """Return a temporary redirect to ``url``.

    ``query`` items are set on the target, replacing any existing values for
    the same keys. Relative targets stay relative in the ``location`` header.
    """

    target = urlsplit(urljoin(_REDIRECT_BASE + "/", url))
    pairs = parse_qsl(target.query, keep_blank_values=True)
    for key, value in (query or {}).items():
        pairs = _set_query_item(pairs, key, value)
    search = urlencode(pairs)
    path = target.path or "/"
    if f"{target.scheme}://{target.netloc}" == _REDIRECT_BASE:
        location = path + (f"?{search}" if search else "")
    else:
        location = urlunsplit((target.scheme, target.netloc, path, search, target.fragment))
    return Response(status=int(Status.TEMPORARY_REDIRECT), headers=(("location", location),))


def _set_query_item(pairs: list[tuple[str, str]], key: str, value: str) -> list[tuple[str, str]]:
    updated: list[tuple[str, str]] = []
    replaced = False
    for existing_key, existing_value in pairs:
        if existing_key != key:
            updated.append((existing_key, existing_value))
        elif not replaced:
            updated.append((key, value))
            replaced = True
    if not replaced:
        updated.append((key, value))
    return updated


__all__ = [
    "Headers",
    "JSONResponse",
    "PlainTextResponse",
    "Response",
    "ResponseInit",
    "redirect",
]
