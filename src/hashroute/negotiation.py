"""Request body decoding and response body encoding by MIME type.

Decoders turn request text into values and are looked up by the exact
``content-type`` header. Encoders turn values into response bodies and are
chosen from the client's ``Accept`` header, in the client's order. Both live
in :class:`CodecRegistry` instances owned by a :class:`Negotiator`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterator, Mapping, TypeVar

import msgspec

from .http import Status
from .requests import Request
from .responses import JSONResponse, Response, ResponseInit
from .serialization import json_decode, json_dumps

logger = logging.getLogger(__name__)

JSON_MIME = "application/json"

Decoder = Callable[[str], Any]
Encoder = Callable[[Any], str | bytes]

C = TypeVar("C")


class CodecRegistry(Generic[C]):
    """Mutable mapping of MIME type to codec function."""

    __slots__ = ("_codecs",)

    def __init__(self, codecs: Mapping[str, C] | None = None) -> None:
        self._codecs: dict[str, C] = dict(codecs or {})

    def register(self, mime_type: str, codec: C) -> None:
        self._codecs[mime_type] = codec

    def unregister(self, mime_type: str) -> None:
        self._codecs.pop(mime_type, None)

    def get(self, mime_type: str | None) -> C | None:
        if mime_type is None:
            return None
        return self._codecs.get(mime_type)

    def __contains__(self, mime_type: object) -> bool:
        return mime_type in self._codecs

    def __iter__(self) -> Iterator[str]:
        return iter(self._codecs)

    def __len__(self) -> int:
        return len(self._codecs)


class BodyData(msgspec.Struct, frozen=True):
    """Outcome of reading and decoding a request body.

    ``payload`` holds the decoder output and is only meaningful when
    ``understood`` is true. Check ``error`` for read or decode failures.
    """

    body: bool
    data: str
    understood: bool
    error: BaseException | None = None
    payload: Any = None

    def get(self, key: str, default: Any = None) -> Any:
        """Look ``key`` up in a mapping payload."""

        if isinstance(self.payload, Mapping):
            return self.payload.get(key, default)
        return default

    def as_dict(self) -> dict[str, Any]:
        """Return the flat form: payload keys overlaid by the sentinel keys."""

        merged: dict[str, Any] = dict(self.payload) if isinstance(self.payload, Mapping) else {}
        merged["_body"] = self.body
        merged["_data"] = self.data
        merged["_understood"] = self.understood
        if self.error is not None:
            merged["_error"] = self.error
        return merged


class _Negotiated(msgspec.Struct, frozen=True):
    mime_type: str
    encoder: Encoder


class _Rejected(msgspec.Struct, frozen=True):
    message: str


class _Encoded(msgspec.Struct, frozen=True):
    body: bytes


class _EncodeFailure(msgspec.Struct, frozen=True):
    error: Exception


def parse_accept(header: str) -> list[str]:
    """Return the MIME types named in an ``Accept`` header, parameters stripped.

    Quality values are ignored; the order is the order the client listed.
    """

    accepted: list[str] = []
    for item in header.split(","):
        mime_type = item.split(";", 1)[0].strip()
        if mime_type:
            accepted.append(mime_type)
    return accepted


def default_decoders() -> CodecRegistry[Decoder]:
    return CodecRegistry({JSON_MIME: json_decode})


def default_encoders() -> CodecRegistry[Encoder]:
    return CodecRegistry({JSON_MIME: json_dumps})


class Negotiator:
    """Content negotiation service over a pair of codec registries."""

    __slots__ = ("decoders", "encoders")

    def __init__(
        self,
        decoders: CodecRegistry[Decoder] | None = None,
        encoders: CodecRegistry[Encoder] | None = None,
    ) -> None:
        self.decoders = decoders if decoders is not None else default_decoders()
        self.encoders = encoders if encoders is not None else default_encoders()

    async def decode_request_body(self, request: Request) -> BodyData:
        """Read ``request``'s body and decode it by its ``content-type``.

        Never raises: read and decode failures are reported through
        ``BodyData.error`` with ``understood`` left false.
        """

        if not request.has_body:
            return BodyData(body=False, data="", understood=False)
        try:
            text = await request.text()
        except Exception as exc:
            logger.debug("Failed to read request body for %s", request.url, exc_info=True)
            return BodyData(body=True, data="", understood=False, error=exc)
        decoder = self.decoders.get(request.header("content-type"))
        if decoder is None:
            return BodyData(body=True, data=text, understood=False)
        try:
            payload = decoder(text)
        except Exception as exc:
            logger.debug("Failed to decode request body for %s", request.url, exc_info=True)
            return BodyData(body=True, data=text, understood=False, error=exc)
        return BodyData(body=True, data=text, understood=True, payload=payload)

    def negotiate(self, accept: str | None) -> _Negotiated | _Rejected:
        if not accept:
            return _Rejected("no accept header")
        for mime_type in parse_accept(accept):
            encoder = self.encoders.get(mime_type)
            if encoder is not None:
                return _Negotiated(mime_type, encoder)
        return _Rejected("couldn't negotiate response data type")

    def encode_response_body(
        self,
        request: Request,
        value: Any,
        init: ResponseInit | None = None,
    ) -> Response:
        """Encode ``value`` with the first encoder the client accepts.

        The negotiated type is set as ``content-type``; status and extra headers
        come from ``init``. Unsatisfiable ``Accept`` headers yield ``415``. A
        failing encoder is retried once with ``{"error": message}`` and a
        ``500`` status, then a JSON ``500`` is returned.
        """

        negotiated = self.negotiate(request.header("accept"))
        if isinstance(negotiated, _Rejected):
            return JSONResponse(
                {"error": negotiated.message},
                ResponseInit(status=int(Status.UNSUPPORTED_MEDIA_TYPE)),
            )
        init = (init or ResponseInit()).with_header("content-type", negotiated.mime_type)
        outcome = _encode(negotiated.encoder, value)
        if isinstance(outcome, _Encoded):
            return Response(status=init.status, headers=init.headers, body=outcome.body)
        message = str(outcome.error)
        logger.warning("Failed to encode %s response: %s", negotiated.mime_type, message)
        retry = _encode(negotiated.encoder, {"error": message})
        if isinstance(retry, _Encoded):
            return Response(
                status=int(Status.INTERNAL_SERVER_ERROR),
                headers=init.headers,
                body=retry.body,
            )
        return JSONResponse({"error": message}, ResponseInit(status=int(Status.INTERNAL_SERVER_ERROR)))


def _encode(encoder: Encoder, value: Any) -> _Encoded | _EncodeFailure:
    try:
        encoded = encoder(value)
        if isinstance(encoded, str):
            return _Encoded(encoded.encode("utf-8"))
        if isinstance(encoded, (bytes, bytearray)):
            return _Encoded(bytes(encoded))
        raise TypeError(f"Encoder returned {type(encoded).__name__}, expected str or bytes")
    except Exception as exc:
        return _EncodeFailure(exc)


default_negotiator = Negotiator()


async def decode_request_body(request: Request) -> BodyData:
    """Decode ``request``'s body with :data:`default_negotiator`."""

    return await default_negotiator.decode_request_body(request)


def encode_response_body(request: Request, value: Any, init: ResponseInit | None = None) -> Response:
    """Encode ``value`` for ``request`` with :data:`default_negotiator`."""

    return default_negotiator.encode_response_body(request, value, init)


__all__ = [
    "JSON_MIME",
    "BodyData",
    "CodecRegistry",
    "Decoder",
    "Encoder",
    "Negotiator",
    "decode_request_body",
    "default_decoders",
    "default_encoders",
    "default_negotiator",
    "encode_response_body",
    "parse_accept",
]
