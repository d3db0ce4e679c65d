"""Ordered route tables compiled into a single async request handler."""

from .asgi import ASGIAdapter
from .config import DispatchConfig
from .exceptions import HashRouteError, ResponseTypeError, RouteDefinitionError
from .http import Status
from .negotiation import (
    BodyData,
    CodecRegistry,
    Negotiator,
    decode_request_body,
    default_negotiator,
    encode_response_body,
)
from .patterns import RoutePattern
from .query import decode_query, encode_query
from .requests import Request
from .responses import JSONResponse, PlainTextResponse, Response, ResponseInit, redirect
from .routing import CompiledRoute, Dispatcher, RouteContext, compile_routes, default_handler
from .testing import TestClient

__all__ = [
    "ASGIAdapter",
    "BodyData",
    "CodecRegistry",
    "CompiledRoute",
    "DispatchConfig",
    "Dispatcher",
    "HashRouteError",
    "JSONResponse",
    "Negotiator",
    "PlainTextResponse",
    "Request",
    "Response",
    "ResponseInit",
    "ResponseTypeError",
    "RouteContext",
    "RouteDefinitionError",
    "RoutePattern",
    "Status",
    "TestClient",
    "compile_routes",
    "decode_query",
    "decode_request_body",
    "default_handler",
    "default_negotiator",
    "encode_query",
    "encode_response_body",
    "redirect",
]
