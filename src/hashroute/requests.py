"""Request primitives."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Mapping

BodyLoader = Callable[[], Awaitable[bytes | bytearray | memoryview | None]]


class Request:
    """View of an incoming request addressed by its absolute URL.

    A request either carries a body (``body`` bytes or a ``body_loader``
    coroutine) or declares none at all; ``has_body`` tells the two apart,
    an empty payload still counts as a body.
    """

    __slots__ = (
        "_body",
        "_body_loader",
        "_body_lock",
        "headers",
        "method",
        "url",
    )

    def __init__(
        self,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        body_loader: BodyLoader | None = None,
    ) -> None:
        if body is not None and body_loader is not None:
            raise ValueError("Request body and body_loader are mutually exclusive")
        self.method = method.upper()
        self.url = url
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self._body: bytes | None = body
        self._body_loader = body_loader
        self._body_lock = asyncio.Lock()

    @property
    def has_body(self) -> bool:
        return self._body is not None or self._body_loader is not None

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    async def _ensure_body(self) -> bytes:
        if self._body is None:
            if self._body_loader is None:
                return b""
            async with self._body_lock:
                loader = self._body_loader
                if self._body is None and loader is not None:
                    raw = await loader()
                    if raw is None:
                        self._body = b""
                    elif isinstance(raw, bytes):
                        self._body = raw
                    else:
                        self._body = bytes(raw)
                    self._body_loader = None
        body = self._body
        assert body is not None
        return body

    async def body(self) -> bytes:
        return await self._ensure_body()

    async def text(self) -> str:
        body = await self._ensure_body()
        return body.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Request({self.method} {self.url})"


__all__ = ["BodyLoader", "Request"]
