"""Immutable query string parameters."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    ``__getitem__`` returns the first value for a key; ``get_list``
    returns all of them. ``to_dict`` flattens single values the way the
    dispatch request exposes them to controllers.
    """

    __slots__ = ("_data", "_raw")

    _data: dict[str, list[str]]
    _raw: bytes

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, str):
            query_string = query_string.encode("latin-1")
        object.__setattr__(self, "_raw", query_string)
        parsed = parse_qs(query_string.decode("latin-1"), keep_blank_values=True)
        object.__setattr__(self, "_data", parsed)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({self.to_dict()!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def to_dict(self) -> dict[str, str | list[str]]:
        """Single-valued keys map to a string, repeated keys to a list."""
        return {k: v[0] if len(v) == 1 else list(v) for k, v in self._data.items()}

    @property
    def raw(self) -> bytes:
        return self._raw
