"""URL-encoded query and form codec."""

from __future__ import annotations

from typing import Any, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode


def decode_query(data: str | Mapping[str, Any] | Iterable[tuple[str, str]]) -> dict[str, str]:
    """Decode URL-encoded ``data`` into a flat mapping.

    ``data`` may be a raw query string (a leading ``?`` is ignored), the
    mapping of lists produced by :func:`urllib.parse.parse_qs`, or the pairs
    produced by :func:`urllib.parse.parse_qsl`. Each key keeps its last value.
    """

    if isinstance(data, str):
        return dict(parse_qsl(data.removeprefix("?"), keep_blank_values=True))
    if isinstance(data, Mapping):
        decoded: dict[str, str] = {}
        for key, values in data.items():
            if isinstance(values, str):
                decoded[key] = values
            elif values:
                decoded[key] = values[-1]
        return decoded
    if isinstance(data, (list, tuple)) and all(
        isinstance(pair, tuple) and len(pair) == 2 for pair in data
    ):
        return {key: value for key, value in data}
    raise TypeError(f"Invalid type of data ({type(data).__name__}), expected string!")


def encode_query(data: Mapping[str, str | None]) -> str:
    """Encode ``data`` as a URL-encoded string, skipping non-string values."""

    return urlencode([(key, value) for key, value in data.items() if isinstance(value, str)])


__all__ = ["decode_query", "encode_query"]
