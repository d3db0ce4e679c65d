"""Route compilation and first-match dispatch.

A route table maps keys of the form ``<path-template>[#<method>]`` to
handlers. The method suffix is split at the last ``#`` and lower-cased; keys
without one match every method. Routes are tried in declaration order and
the first match wins.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import SplitResult, urlsplit, urlunsplit

from .config import DispatchConfig
from .exceptions import ResponseTypeError
from .http import Status
from .patterns import ANY_HASH, RoutePattern
from .query import decode_query
from .requests import Request
from .responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RouteContext:
    request: Request
    url: SplitResult
    params: Mapping[str, str]
    query: Mapping[str, str]
    meta: dict[str, Any] = field(default_factory=dict)


Handler = Callable[[RouteContext], Awaitable[Response] | Response]
RequestHandler = Callable[[Request], Awaitable[Response]]


@dataclass(slots=True, frozen=True)
class CompiledRoute:
    key: str
    pattern: RoutePattern
    handler: Handler


def default_handler(context: RouteContext) -> Response:
    """Fallback used when no route matches."""

    return PlainTextResponse("Page not found", status=int(Status.NOT_FOUND))


def split_route_key(key: str) -> tuple[str, str]:
    """Split ``key`` into its path template and lower-cased method discriminator."""

    path, separator, method = key.rpartition("#")
    if not separator:
        return key, ANY_HASH
    return path, method.lower()


def compile_route(key: str, handler: Handler) -> CompiledRoute:
    path, method = split_route_key(key)
    return CompiledRoute(key=key, pattern=RoutePattern.compile(path, method), handler=handler)


class Dispatcher:
    """Asynchronous request handler over an ordered tuple of compiled routes.

    Calling the dispatcher never raises: any failure while parsing the URL,
    matching, extracting parameters, or running a handler becomes a ``500``
    response whose body is the error message.
    """

    __slots__ = ("_config", "_fallback", "_routes")

    def __init__(
        self,
        routes: tuple[CompiledRoute, ...],
        fallback: Handler,
        *,
        config: DispatchConfig | None = None,
    ) -> None:
        self._routes = routes
        self._fallback = fallback
        self._config = config or DispatchConfig()

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        return self._routes

    @property
    def config(self) -> DispatchConfig:
        return self._config

    async def __call__(self, request: Request) -> Response:
        try:
            return await self._dispatch(request)
        except Exception as exc:
            if self._config.log_exceptions:
                logger.exception("Unhandled error dispatching %s %s", request.method, request.url)
            return PlainTextResponse(
                str(exc),
                status=int(Status.INTERNAL_SERVER_ERROR),
                reason=self._config.error_reason,
            )

    async def _dispatch(self, request: Request) -> Response:
        url = urlsplit(request.url)
        probe = urlunsplit(url._replace(fragment="")) + "#" + request.method.lower()
        for route in self._routes:
            if route.pattern.test(probe):
                params = route.pattern.exec(request.url) or {}
                return await _invoke(route.handler, _context(request, url, params))
        return await _invoke(self._fallback, _context(request, url, {}))


def compile_routes(
    routes: Mapping[str, Handler],
    fallback: Handler | None = None,
    *,
    config: DispatchConfig | None = None,
) -> Dispatcher:
    """Compile ``routes`` into a :class:`Dispatcher`.

    ``fallback`` handles requests no route matches; it defaults to
    :func:`default_handler`.
    """

    compiled = tuple(compile_route(key, handler) for key, handler in routes.items())
    return Dispatcher(compiled, fallback or default_handler, config=config)


def _context(request: Request, url: SplitResult, params: Mapping[str, str]) -> RouteContext:
    return RouteContext(
        request=request,
        url=url,
        params=params,
        query=decode_query(url.query),
        meta={},
    )


async def _invoke(handler: Handler, context: RouteContext) -> Response:
    result = handler(context)
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, Response):
        raise ResponseTypeError(result)
    return result


__all__ = [
    "CompiledRoute",
    "Dispatcher",
    "Handler",
    "RequestHandler",
    "RouteContext",
    "compile_route",
    "compile_routes",
    "default_handler",
    "split_route_key",
]
