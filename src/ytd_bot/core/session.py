"""In-process keyed state store.

:class:`InMemoryStore` satisfies :class:`~ytd_bot.core.protocols.KeyedStore`
and backs both per-user sessions and per-user text-capture modes.  It
holds no lock: all access happens on the single event-loop thread.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class InMemoryStore(Generic[K, V]):
    """Dictionary-backed :class:`KeyedStore` with no persistence."""

    def __init__(self) -> None:
        self._items: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._items.get(key)

    def set(self, key: K, value: V) -> None:
        self._items[key] = value

    def delete(self, key: K) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._items))
