"""Compiled URL patterns over a pathname and a hash discriminator.

Templates use a small URLPattern-like syntax:

* ``:name`` captures one path segment (``[^/]+``);
* ``:name(regex)`` captures using a custom regular expression;
* ``*`` captures any run of characters, exposed under positional names
  ``"0"``, ``"1"`` and so on;
* ``\\`` escapes the following character.

Everything else is literal and matched in its percent-encoded form, so a
literal ``#`` in a template matches ``%23`` in a request path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

import rure
from rure.regex import RegexObject

from .exceptions import RouteDefinitionError

ANY_HASH = "*"

_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_META_CHARACTERS = frozenset("\\.+*?()|[]{}^$#&-~")
_URL_SAFE = "/:@!$&'()*+,;=-._~%"


@dataclass(slots=True, frozen=True)
class RoutePattern:
    """A path template plus hash discriminator compiled to regular expressions."""

    path: str
    hash: str
    _path_regex: RegexObject
    _hash_regex: RegexObject | None
    _groups: tuple[tuple[str, str], ...]

    @classmethod
    def compile(cls, path: str, hash: str = ANY_HASH) -> "RoutePattern":
        source, groups = _translate(path)
        try:
            path_regex = rure.compile(f"^{source}$")
            hash_regex = None if hash == ANY_HASH else rure.compile(f"^{_escape(hash)}$")
        except Exception as exc:
            raise RouteDefinitionError(path, str(exc)) from exc
        return cls(path, hash, path_regex, hash_regex, groups)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(public for _, public in self._groups)

    def test(self, candidate: str) -> bool:
        """Return ``True`` when ``candidate``'s pathname and fragment both match."""

        parts = urlsplit(candidate)
        if self._path_regex.match(parts.path or "/") is None:
            return False
        return self._hash_regex is None or self._hash_regex.match(parts.fragment) is not None

    def exec(self, candidate: str) -> dict[str, str] | None:
        """Return the named path groups of ``candidate`` or ``None`` when the path differs."""

        captures = self._path_regex.match(urlsplit(candidate).path or "/")
        if captures is None:
            return None
        params: dict[str, str] = {}
        for group, public in self._groups:
            value = captures.group(group)
            if value is None:
                continue
            params[public] = value
        return params

    def __repr__(self) -> str:
        return f"RoutePattern(path={self.path!r}, hash={self.hash!r})"


def _escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _META_CHARACTERS else char for char in text)


def _literal(text: str) -> str:
    return _escape(quote(text, safe=_URL_SAFE))


def _translate(template: str) -> tuple[str, tuple[tuple[str, str], ...]]:
    parts: list[str] = []
    groups: list[tuple[str, str]] = []
    literal: list[str] = []
    wildcards = 0
    index = 0

    def flush() -> None:
        if literal:
            parts.append(_literal("".join(literal)))
            literal.clear()

    def add_group(public: str, expression: str) -> None:
        if public in {name for _, name in groups}:
            raise RouteDefinitionError(template, f"duplicate parameter {public!r}")
        group = f"g{len(groups)}"
        groups.append((group, public))
        parts.append(f"(?P<{group}>{expression})")

    while index < len(template):
        char = template[index]
        if char == "\\":
            if index + 1 == len(template):
                raise RouteDefinitionError(template, "dangling escape")
            literal.append(template[index + 1])
            index += 2
        elif char == ":":
            match = _NAME_PATTERN.match(template, index + 1)
            if match is None:
                raise RouteDefinitionError(template, f"missing parameter name at offset {index}")
            flush()
            index = match.end()
            expression = "[^/]+"
            if index < len(template) and template[index] == "(":
                expression, index = _read_group(template, index)
            add_group(match.group(0), expression)
        elif char == "*":
            flush()
            add_group(str(wildcards), ".*")
            wildcards += 1
            index += 1
        else:
            literal.append(char)
            index += 1
    flush()
    return "".join(parts), tuple(groups)


def _read_group(template: str, start: int) -> tuple[str, int]:
    depth = 0
    index = start
    while index < len(template):
        char = template[index]
        if char == "\\":
            index += 2
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                expression = template[start + 1 : index]
                if not expression:
                    raise RouteDefinitionError(template, "empty parameter expression")
                return f"(?:{expression})", index + 1
        index += 1
    raise RouteDefinitionError(template, "unbalanced parameter expression")


__all__ = ["ANY_HASH", "RoutePattern"]
