"""Immutable, case-insensitive HTTP headers.

Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.
Stores name/value pairs in arrival order; lookups ignore case.
"""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header (e.g. multiple ``Set-Cookie``).
    """

    __slots__ = ("_raw",)

    def __init__(
        self,
        raw: Mapping[str, str] | Iterable[tuple[str, str]] = (),
    ) -> None:
        pairs = raw.items() if isinstance(raw, Mapping) else raw
        object.__setattr__(self, "_raw", tuple((str(k), str(v)) for k, v in pairs))

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower()
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (e.g. multiple ``Set-Cookie``)."""
        key_lower = key.lower()
        return [value for name, value in self._raw if name.lower() == key_lower]

    @property
    def raw(self) -> tuple[tuple[str, str], ...]:
        """Name/value pairs exactly as given."""
        return self._raw
