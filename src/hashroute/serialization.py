from __future__ import annotations

from typing import Any, Protocol, cast

import msgspec


class _JSONModule(Protocol):
    def encode(self, obj: Any) -> bytes: ...

    def decode(self, data: bytes | str) -> Any: ...


_json = cast(_JSONModule, getattr(msgspec, "json"))


def json_encode(value: Any) -> bytes:
    """Serialize ``value`` to JSON bytes using msgspec."""

    return _json.encode(value)


def json_decode(data: bytes | str) -> Any:
    """Deserialize JSON ``data`` into native Python values."""

    return _json.decode(data)


def json_dumps(value: Any) -> str:
    """Serialize ``value`` to a JSON string."""

    return json_encode(value).decode("utf-8")
