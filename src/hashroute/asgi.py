"""ASGI bridge for :class:`~hashroute.routing.Dispatcher`."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from .requests import Request
from .responses import Response
from .routing import RequestHandler

Receive = Callable[[], Awaitable[Mapping[str, Any]]]
Send = Callable[[Mapping[str, Any]], Awaitable[None]]


class ASGIAdapter:
    """Serve a request handler as an ASGI 3 application."""

    __slots__ = ("handler",)

    def __init__(self, handler: RequestHandler) -> None:
        self.handler = handler

    async def __call__(self, scope: Mapping[str, Any], receive: Receive, send: Send) -> None:
        scope_type = scope.get("type")
        if scope_type == "http":
            await self._handle_http(scope, receive, send)
            return
        if scope_type == "lifespan":
            await _handle_lifespan(receive, send)
            return
        raise RuntimeError(f"Unsupported ASGI scope type: {scope_type!r}")

    async def _handle_http(self, scope: Mapping[str, Any], receive: Receive, send: Send) -> None:
        headers = {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}
        body_state: dict[str, Any] = {"buffer": bytearray(), "done": False}

        async def load_body() -> bytes:
            while not body_state["done"]:
                message = await receive()
                message_type = message.get("type")
                if message_type == "http.disconnect":
                    body_state["done"] = True
                    continue
                if message_type != "http.request":
                    continue
                chunk = message.get("body", b"")
                if chunk:
                    body_state["buffer"].extend(chunk)
                if not message.get("more_body", False):
                    body_state["done"] = True
            return bytes(body_state["buffer"])

        request = Request(
            method=scope["method"],
            url=request_url(scope, headers),
            headers=headers,
            body_loader=load_body if _declares_body(headers) else None,
        )
        response = await self.handler(request)
        await send_response(response, send)


async def send_response(response: Response, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in response.headers],
        }
    )
    await send({"type": "http.response.body", "body": response.body, "more_body": False})


def request_url(scope: Mapping[str, Any], headers: Mapping[str, str]) -> str:
    """Rebuild the absolute request URL from an ASGI ``scope``."""

    scheme = scope.get("scheme", "http")
    host = headers.get("host")
    if host is None:
        server = scope.get("server")
        if server is None:
            host = "localhost"
        else:
            name, port = server
            default_port = 443 if scheme == "https" else 80
            host = name if port in (None, default_port) else f"{name}:{port}"
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else scope.get("path", "/")
    query = (scope.get("query_string") or b"").decode("latin-1")
    url = f"{scheme}://{host}{path}"
    return f"{url}?{query}" if query else url


def _declares_body(headers: Mapping[str, str]) -> bool:
    if "transfer-encoding" in headers:
        return True
    length = headers.get("content-length")
    if length is None:
        return False
    return length.strip() not in ("", "0")


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


__all__ = ["ASGIAdapter", "request_url", "send_response"]
