"""Case-insensitive HTTP headers.

``Headers`` is the read-only view of an incoming request's headers.
``MutableHeaders`` is the multi-valued store a ``Response`` builds up
before it is sent.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers, decoded from ASGI byte pairs.

    Keys are lower-cased. Indexing returns the first value for a name;
    ``get_list`` returns every value.
    """

    __slots__ = ("_pairs", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._pairs = tuple(
            (name.decode("latin-1").lower(), value.decode("latin-1")) for name, value in raw
        )

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._pairs:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and any(name == key.lower() for name, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._pairs))

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        wanted = key.lower()
        return [value for name, value in self._pairs if name == wanted]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs exactly as the server sent them."""
        return self._raw


class MutableHeaders:
    """Ordered, multi-valued, case-insensitive header store.

    Names keep the casing they were first added with; lookups ignore case.
    """

    __slots__ = ("_items",)

    def __init__(self, items: tuple[tuple[str, str], ...] = ()) -> None:
        self._items: list[tuple[str, str]] = list(items)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any existing values for *name*."""
        self._items.append((name, value))

    def set(self, name: str, value: str) -> None:
        """Replace every value for *name* with a single *value*."""
        self.remove(name)
        self._items.append((name, value))

    def remove(self, name: str) -> None:
        key = name.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != key]

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for *name*, or *default* if missing."""
        key = name.lower()
        for n, v in self._items:
            if n.lower() == key:
                return v
        return default

    def get_list(self, name: str) -> list[str]:
        key = name.lower()
        return [v for n, v in self._items if n.lower() == key]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = name.lower()
        return any(n.lower() == key for n, _ in self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

    def raw(self) -> list[tuple[bytes, bytes]]:
        """Encode as lower-cased ASGI header byte pairs."""
        return [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self._items
        ]
