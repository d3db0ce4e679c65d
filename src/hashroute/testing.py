"""Testing helpers."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urljoin

from .query import encode_query
from .requests import Request
from .responses import Response
from .routing import RequestHandler
from .serialization import json_encode


class TestClient:
    """Async test client that executes requests in-process."""

    __test__ = False

    def __init__(self, handler: RequestHandler, *, base_url: str = "http://testserver") -> None:
        self.handler = handler
        self.base_url = base_url

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        content: str | bytes | None = None,
        query: Mapping[str, str | None] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        request_headers = dict(headers or {})
        body: bytes | None = None
        if json is not None:
            body = json_encode(json)
            request_headers.setdefault("content-type", "application/json")
        elif content is not None:
            body = content.encode("utf-8") if isinstance(content, str) else content
        url = urljoin(self.base_url, path)
        query_string = encode_query(query or {})
        if query_string:
            url = f"{url}{'&' if '?' in url else '?'}{query_string}"
        request = Request(method=method, url=url, headers=request_headers, body=body)
        return await self.handler(request)

    async def get(
        self,
        path: str,
        *,
        query: Mapping[str, str | None] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request("GET", path, query=query, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any | None = None,
        content: str | bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return await self.request("POST", path, json=json, content=content, headers=headers)
