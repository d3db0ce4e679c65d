from __future__ import annotations

import logging
from urllib.parse import SplitResult

import pytest

from hashroute.config import DispatchConfig
from hashroute.exceptions import RouteDefinitionError
from hashroute.requests import Request
from hashroute.responses import PlainTextResponse, Response
from hashroute.routing import RouteContext, compile_routes, default_handler, split_route_key
from hashroute.testing import TestClient


def reply(text: str):
    def handler(context: RouteContext) -> Response:
        return PlainTextResponse(text)

    return handler


def test_split_route_key() -> None:
    assert split_route_key("/hello") == ("/hello", "*")
    assert split_route_key("/hello#POST") == ("/hello", "post")
    assert split_route_key("/a#b#Get") == ("/a#b", "get")


def test_compile_preserves_declaration_order() -> None:
    dispatcher = compile_routes({"/b": reply("b"), "/a#get": reply("a"), "/*": reply("any")})
    assert [route.key for route in dispatcher.routes] == ["/b", "/a#get", "/*"]
    assert dispatcher.routes[1].pattern.hash == "get"


def test_compile_rejects_invalid_templates() -> None:
    with pytest.raises(RouteDefinitionError):
        compile_routes({"/users/:#get": reply("x")})


@pytest.mark.asyncio
async def test_first_declared_match_wins() -> None:
    client = TestClient(compile_routes({"/users/*": reply("wildcard"), "/users/:user_id": reply("param")}))
    response = await client.get("/users/1")
    assert response.text() == "wildcard"

    client = TestClient(compile_routes({"/users/:user_id": reply("param"), "/users/*": reply("wildcard")}))
    response = await client.get("/users/1")
    assert response.text() == "param"


@pytest.mark.asyncio
async def test_method_suffix_restricts_matches() -> None:
    client = TestClient(compile_routes({"/hello#post": reply("posted"), "/hello": reply("fallthrough")}))
    assert (await client.post("/hello")).text() == "posted"
    assert (await client.get("/hello")).text() == "fallthrough"


@pytest.mark.asyncio
async def test_method_suffix_without_other_route_reaches_fallback() -> None:
    client = TestClient(compile_routes({"/hello#post": reply("posted")}))
    response = await client.get("/hello")
    assert response.status == 404
    assert response.text() == "Page not found"


@pytest.mark.asyncio
async def test_route_without_method_matches_any_method() -> None:
    client = TestClient(compile_routes({"/": reply("root")}))
    for method in ("GET", "POST", "DELETE"):
        response = await client.request(method, "/")
        assert response.status == 200
        assert response.text() == "root"


@pytest.mark.asyncio
async def test_methods_match_case_insensitively() -> None:
    client = TestClient(compile_routes({"/items#PUT": reply("put")}))
    response = await client.handler(Request(method="put", url="http://testserver/items"))
    assert response.text() == "put"


@pytest.mark.asyncio
async def test_handler_context() -> None:
    seen: list[RouteContext] = []

    async def handler(context: RouteContext) -> Response:
        seen.append(context)
        return PlainTextResponse("ok")

    client = TestClient(compile_routes({"/users/:user_id#get": handler}))
    await client.get("/users/42", query={"fields": "name", "expand": None})
    context = seen[0]
    assert context.params == {"user_id": "42"}
    assert context.query == {"fields": "name"}
    assert context.meta == {}
    assert isinstance(context.url, SplitResult)
    assert context.url.path == "/users/42"
    assert context.request.method == "GET"


@pytest.mark.asyncio
async def test_fallback_receives_empty_params() -> None:
    seen: list[RouteContext] = []

    def fallback(context: RouteContext) -> Response:
        seen.append(context)
        return PlainTextResponse("missing", status=410)

    client = TestClient(compile_routes({"/known": reply("known")}, fallback))
    response = await client.get("/unknown?x=1")
    assert response.status == 410
    assert seen[0].params == {}
    assert seen[0].query == {"x": "1"}


@pytest.mark.asyncio
async def test_default_fallback_is_not_found() -> None:
    client = TestClient(compile_routes({}))
    response = await client.get("/anything")
    assert response.status == 404
    assert response.text() == "Page not found"
    assert compile_routes({})._fallback is default_handler


@pytest.mark.asyncio
async def test_sync_handler_error_becomes_500() -> None:
    def broken(context: RouteContext) -> Response:
        raise ValueError("kaboom")

    client = TestClient(compile_routes({"/": broken}))
    response = await client.get("/")
    assert response.status == 500
    assert response.text() == "kaboom"
    assert response.reason == "internal server error"


@pytest.mark.asyncio
async def test_async_handler_error_becomes_500() -> None:
    async def broken(context: RouteContext) -> Response:
        raise RuntimeError("async kaboom")

    client = TestClient(compile_routes({"/": broken}))
    response = await client.get("/")
    assert response.status == 500
    assert response.text() == "async kaboom"


@pytest.mark.asyncio
async def test_failing_handler_does_not_fall_through() -> None:
    calls: list[str] = []

    def broken(context: RouteContext) -> Response:
        calls.append("broken")
        raise ValueError("stop")

    def later(context: RouteContext) -> Response:
        calls.append("later")
        return PlainTextResponse("later")

    client = TestClient(compile_routes({"/x": broken, "/*": later}))
    response = await client.get("/x")
    assert response.status == 500
    assert calls == ["broken"]


@pytest.mark.asyncio
async def test_non_response_result_becomes_500() -> None:
    def wrong(context: RouteContext) -> str:
        return "not a response"

    client = TestClient(compile_routes({"/": wrong}))  # type: ignore[dict-item]
    response = await client.get("/")
    assert response.status == 500
    assert "expected Response" in response.text()


@pytest.mark.asyncio
async def test_fallback_errors_are_contained() -> None:
    def fallback(context: RouteContext) -> Response:
        raise LookupError("no fallback today")

    client = TestClient(compile_routes({}, fallback))
    response = await client.get("/")
    assert response.status == 500
    assert response.text() == "no fallback today"


@pytest.mark.asyncio
async def test_errors_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    def broken(context: RouteContext) -> Response:
        raise ValueError("logged")

    client = TestClient(compile_routes({"/": broken}))
    with caplog.at_level(logging.ERROR, logger="hashroute.routing"):
        await client.get("/")
    assert "Unhandled error dispatching GET http://testserver/" in caplog.text


@pytest.mark.asyncio
async def test_logging_can_be_disabled(caplog: pytest.LogCaptureFixture) -> None:
    def broken(context: RouteContext) -> Response:
        raise ValueError("quiet")

    dispatcher = compile_routes(
        {"/": broken},
        config=DispatchConfig(log_exceptions=False, error_reason="oops"),
    )
    with caplog.at_level(logging.ERROR, logger="hashroute.routing"):
        response = await TestClient(dispatcher).get("/")
    assert response.reason == "oops"
    assert caplog.records == []
