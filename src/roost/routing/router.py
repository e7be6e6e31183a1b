"""The route table: ordered, immutable, matched by linear scan.

Routes are loaded once from configuration when the application freezes.
The table owns both pattern matching and parameter extraction; the
transport only supplies the raw request path.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import quote

from roost.errors import ConfigurationError, RoutingError
from roost.routing.route import (
    Group,
    Literal,
    Param,
    RouteEntry,
    RouteMatch,
    Token,
    param_names,
)


def _normalize(path: str) -> str:
    if not path:
        return "/"
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path


class RouteTable:
    """Ordered route table.

    Usage::

        table = RouteTable.from_config({
            "adminIndexDashboard": {
                "route": "/admin/dashboard(/page/:page)?",
                "module": "admin", "controller": "index", "action": "dashboard",
            },
        })
        match = table.match("/admin/dashboard/page/2")
        match.route_name        # "adminIndexDashboard"
        match.params            # {"page": "2"}
        table.url_for("adminIndexDashboard")   # "/admin/dashboard"
    """

    __slots__ = ("_by_name", "_by_pattern", "_entries")

    def __init__(self, entries: list[RouteEntry] | tuple[RouteEntry, ...] = ()) -> None:
        self._entries: tuple[RouteEntry, ...] = ()
        self._by_name: dict[str, RouteEntry] = {}
        self._by_pattern: dict[str, RouteEntry] = {}
        for entry in entries:
            self._add(entry)

    @classmethod
    def from_config(cls, routes: Mapping[str, Mapping[str, str]]) -> "RouteTable":
        """Build the table from a ``name -> {route, module, controller, action}`` mapping."""
        entries = []
        for name, spec in routes.items():
            try:
                entries.append(
                    RouteEntry.build(
                        name,
                        spec["route"],
                        spec["module"],
                        spec["controller"],
                        spec["action"],
                    )
                )
            except KeyError as exc:
                msg = f"Route {name!r} is missing required key {exc.args[0]!r}."
                raise ConfigurationError(msg) from exc
        return cls(entries)

    def _add(self, entry: RouteEntry) -> None:
        if entry.name in self._by_name:
            msg = f"Duplicate route name {entry.name!r}."
            raise ConfigurationError(msg)
        self._entries = (*self._entries, entry)
        self._by_name[entry.name] = entry
        # First configured entry wins for an identical template
        self._by_pattern.setdefault(entry.pattern, entry)

    # -- Lookup --

    def match(self, path: str) -> RouteMatch | None:
        """Return the first entry matching *path*, or ``None``.

        A path equal to an entry's literal template resolves to that entry
        without parameters. Otherwise entries are tried in configuration
        order. Never raises.
        """
        literal = self._by_pattern.get(path)
        if literal is not None:
            return RouteMatch(literal, {})
        path = _normalize(path)
        for entry in self._entries:
            params = entry.match(path)
            if params is not None:
                return RouteMatch(entry, params)
        return None

    def lookup(self, pattern: str) -> RouteEntry | None:
        """Metadata for a template string the transport already matched."""
        return self._by_pattern.get(pattern)

    def get(self, name: str) -> RouteEntry | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries

    # -- URL generation --

    def url_for(self, name: str, params: Mapping[str, object] | None = None) -> str:
        """Build the path for a named route.

        Optional groups are emitted only when every parameter inside them
        has a value, so a name with no value never appears in the result.

        Raises:
            RoutingError: Unknown route name, or a required parameter is missing.
        """
        entry = self._by_name.get(name)
        if entry is None:
            msg = f"No route named {name!r}."
            raise RoutingError(msg)
        values = {k: str(v) for k, v in (params or {}).items() if v is not None and v != ""}
        built = _render(entry.tokens, values, route=name)
        return built or "/"


def _render(tokens: tuple[Token, ...], values: dict[str, str], *, route: str) -> str:
    out: list[str] = []
    for token in tokens:
        if isinstance(token, Literal):
            out.append(token.text)
        elif isinstance(token, Param):
            if token.name in values:
                out.append(quote(values[token.name], safe=""))
            elif not token.optional:
                msg = f"Route {route!r} requires parameter {token.name!r}."
                raise RoutingError(msg)
        elif isinstance(token, Group):
            if token.optional:
                if _has_all(token.parts, values):
                    out.append(_render(token.parts, values, route=route))
            else:
                out.append(_render(token.parts, values, route=route))
    return "".join(out)


def _required(tokens: tuple[Token, ...]) -> list[str]:
    names: list[str] = []
    for token in tokens:
        if isinstance(token, Param) and not token.optional:
            names.append(token.name)
        elif isinstance(token, Group) and not token.optional:
            names.extend(_required(token.parts))
    return names


def _has_all(tokens: tuple[Token, ...], values: dict[str, str]) -> bool:
    """An optional group renders when it binds at least one value and none are missing."""
    names = param_names(tokens)
    if not any(n in values for n in names):
        return False
    return all(n in values for n in _required(tokens))
