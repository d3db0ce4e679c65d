"""Dispatcher configuration objects."""

from __future__ import annotations

from typing import Any, Mapping

import msgspec
from msgspec import Struct


class DispatchConfig(Struct, frozen=True):
    """Typed configuration for a :class:`~hashroute.routing.Dispatcher`."""

    log_exceptions: bool = True
    error_reason: str = "internal server error"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DispatchConfig":
        return msgspec.convert(dict(data), type=cls)
