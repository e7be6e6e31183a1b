"""RouteEntry, RouteMatch, and the route pattern compiler.

Patterns use the familiar path-template syntax::

    /admin                                 static
    /admin/dashboard/view/:slug            named parameter
    /admin/dashboard(/page/:page)?         optional group
    /:category_slug/articles/:slug/index.html

A named parameter matches one path segment (no ``/``). An optional group
``(...)?`` matches entirely or not at all; its parameters are absent from
the match when it doesn't participate. ``:name?`` makes a single parameter
optional.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from roost.errors import ConfigurationError

_PARAM_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Group:
    """A parenthesized group; ``optional`` when followed by ``?``."""

    parts: tuple[Literal | Param | Group, ...]
    optional: bool = True


Token = Literal | Param | Group


def parse_pattern(pattern: str) -> tuple[Token, ...]:
    """Parse a route pattern into tokens.

    Raises:
        ConfigurationError: On unbalanced parentheses or a bare ``:``.
    """
    tokens, pos = _parse(pattern, 0, depth=0)
    if pos != len(pattern):
        msg = f"Unbalanced ')' at position {pos} in route pattern {pattern!r}."
        raise ConfigurationError(msg)
    return tokens


def _parse(pattern: str, pos: int, depth: int) -> tuple[tuple[Token, ...], int]:
    tokens: list[Token] = []
    buf: list[str] = []

    def flush() -> None:
        if buf:
            tokens.append(Literal("".join(buf)))
            buf.clear()

    while pos < len(pattern):
        ch = pattern[pos]
        if ch == ":":
            m = _PARAM_NAME.match(pattern, pos + 1)
            if m is None:
                msg = f"Expected a parameter name after ':' at position {pos} in {pattern!r}."
                raise ConfigurationError(msg)
            flush()
            pos = m.end()
            optional = pos < len(pattern) and pattern[pos] == "?"
            if optional:
                pos += 1
            tokens.append(Param(m.group(), optional))
        elif ch == "(":
            flush()
            parts, pos = _parse(pattern, pos + 1, depth + 1)
            if pos >= len(pattern) or pattern[pos] != ")":
                msg = f"Unclosed '(' in route pattern {pattern!r}."
                raise ConfigurationError(msg)
            pos += 1
            optional = pos < len(pattern) and pattern[pos] == "?"
            if optional:
                pos += 1
            tokens.append(Group(parts, optional))
        elif ch == ")":
            if depth == 0:
                break
            flush()
            return tuple(tokens), pos
        else:
            buf.append(ch)
            pos += 1
    flush()
    return tuple(tokens), pos


def to_regex(tokens: tuple[Token, ...]) -> str:
    out: list[str] = []
    for token in tokens:
        if isinstance(token, Literal):
            out.append(re.escape(token.text))
        elif isinstance(token, Param):
            out.append(f"(?P<{token.name}>[^/]+?)" + ("?" if token.optional else ""))
        else:
            out.append(f"(?:{to_regex(token.parts)})" + ("?" if token.optional else ""))
    return "".join(out)


def param_names(tokens: tuple[Token, ...]) -> list[str]:
    names: list[str] = []
    for token in tokens:
        if isinstance(token, Param):
            names.append(token.name)
        elif isinstance(token, Group):
            names.extend(param_names(token.parts))
    return names


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One addressable endpoint, loaded once from configuration.

    ``pattern`` is the literal template string as configured; ``regex`` is
    compiled from it when the entry is built.
    """

    name: str
    pattern: str
    module: str
    controller: str
    action: str
    tokens: tuple[Token, ...] = field(default=(), repr=False, compare=False)
    regex: re.Pattern[str] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def build(cls, name: str, pattern: str, module: str, controller: str, action: str) -> RouteEntry:
        """Parse and compile *pattern* into a ready-to-match entry."""
        tokens = parse_pattern(pattern)
        names = param_names(tokens)
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            msg = f"Route {name!r} declares parameter(s) more than once: {', '.join(sorted(duplicates))}."
            raise ConfigurationError(msg)
        try:
            regex = re.compile(f"^{to_regex(tokens)}$")
        except re.error as exc:
            msg = f"Route {name!r} has an invalid pattern {pattern!r}: {exc}"
            raise ConfigurationError(msg) from exc
        return cls(name, pattern, module, controller, action, tokens, regex)

    @property
    def param_names(self) -> list[str]:
        return param_names(self.tokens)

    @property
    def triple(self) -> tuple[str, str, str]:
        return (self.module, self.controller, self.action)

    def match(self, path: str) -> dict[str, str] | None:
        """Return extracted parameters if *path* matches, else ``None``."""
        if self.regex is None:
            return {} if path == self.pattern else None
        m = self.regex.match(path)
        if m is None:
            return None
        return {k: v for k, v in m.groupdict().items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        return {
            "route": self.pattern,
            "module": self.module,
            "controller": self.controller,
            "action": self.action,
        }


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    entry: RouteEntry
    params: dict[str, str] = field(default_factory=dict)

    @property
    def route_name(self) -> str:
        return self.entry.name

    @property
    def module(self) -> str:
        return self.entry.module

    @property
    def controller(self) -> str:
        return self.entry.controller

    @property
    def action(self) -> str:
        return self.entry.action
