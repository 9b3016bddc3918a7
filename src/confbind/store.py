"""PropertyStore — the live key/value mapping behind one configuration.

Values are plain strings; typed decoding happens elsewhere. A key is either
present with a string value or absent. The store never locks: the mutator
that owns it serialises access.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping

Snapshot = Mapping[str, str]


class _LiveKeys:
    """Restartable view over the store's keys.

    Each iteration copies the key list at the moment it starts, so the store
    may be mutated while a previous iteration is being consumed.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, str]) -> None:
        self._data = data

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"keys({list(self._data)!r})"


class PropertyStore:
    """String-keyed, string-valued mapping in insertion order."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = {}
        if data:
            for key, value in data.items():
                self.put(key, value)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        if value is None:
            raise ValueError(f"cannot store None for {key!r}; delete the key instead")
        self._data[key] = value

    def delete(self, key: str) -> str | None:
        """Remove key. Returns the previous value, or None if it was absent."""
        return self._data.pop(key, None)

    def keys(self) -> _LiveKeys:
        return _LiveKeys(self._data)

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())

    def snapshot(self) -> Snapshot:
        """Immutable copy of the current mapping."""
        return MappingProxyType(dict(self._data))

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the contents with snapshot, keeping its key order.

        Views handed out by keys() stay attached.
        """
        self._data.clear()
        self._data.update(snapshot)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"PropertyStore({self._data!r})"
