"""Minimal hashroute application served with Granian.

Run ``pip install -e '.[example]'`` once, then ``python example.py``. Override
``HASHROUTE_HOST`` or ``HASHROUTE_PORT`` to change the listening address.

Try ``curl -H 'accept: application/json' localhost:8000/notes`` and
``curl -X POST -H 'content-type: application/json' -H 'accept: application/json'
-d '{"text": "hi"}' localhost:8000/notes``.
"""

from __future__ import annotations

import logging
import os

from granian import Granian

from hashroute import (
    ASGIAdapter,
    ResponseInit,
    RouteContext,
    compile_routes,
    decode_request_body,
    encode_response_body,
    redirect,
)
from hashroute.responses import Response

NOTES: list[str] = []


def list_notes(context: RouteContext) -> Response:
    limit = int(context.query.get("limit", len(NOTES)))
    return encode_response_body(context.request, {"notes": NOTES[:limit]})


async def create_note(context: RouteContext) -> Response:
    body = await decode_request_body(context.request)
    text = body.get("text")
    if not body.understood or not isinstance(text, str):
        return encode_response_body(context.request, {"error": "expected {\"text\": ...}"}, ResponseInit(status=400))
    NOTES.append(text)
    return encode_response_body(context.request, {"id": len(NOTES) - 1}, ResponseInit(status=201))


def show_note(context: RouteContext) -> Response:
    index = int(context.params["note_id"])
    return encode_response_body(context.request, {"id": index, "text": NOTES[index]})


app = ASGIAdapter(
    compile_routes(
        {
            "/": lambda context: redirect("/notes", {"limit": "10"}),
            "/notes#get": list_notes,
            "/notes#post": create_note,
            r"/notes/:note_id(\d+)#get": show_note,
        }
    )
)


def main() -> None:
    """Boot the Granian development server."""

    logging.basicConfig(level=logging.INFO)
    host = os.getenv("HASHROUTE_HOST", "127.0.0.1")
    port = int(os.getenv("HASHROUTE_PORT", "8000"))
    print("Serving hashroute example on Granian at http://%s:%d" % (host, port))
    Granian("example:app", address=host, port=port, interface="asgi").serve()


if __name__ == "__main__":
    main()
