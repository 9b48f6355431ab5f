"""A bounded least-recently-used cache whose entries carry an expiry time."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Hashable


@dataclass
class _Entry:
    value: Any
    expiry: int


class LruCache:
    """Keeps at most ``max_size`` entries and drops the least recently used first."""

    def __init__(self, max_size: int) -> None:
        if max_size < 0:
            raise ValueError("max_size must not be negative")
        self.max_size = max_size
        # The most recently used entry sits at the end.
        self._items: OrderedDict[Hashable, _Entry] = OrderedDict()

    def put(self, key: Hashable, value: Any, expiry: int = 0) -> None:
        """Store ``value`` under ``key``, valid while the clock is below ``expiry``."""
        self._items.pop(key, None)
        self._items[key] = _Entry(value, expiry)
        if len(self._items) > self.max_size:
            self._items.popitem(last=False)

    def get(self, key: Hashable, clock: int | None = None) -> Any:
        """Return the value for ``key`` and mark it as recently used.

        The expiry is not consulted; a missing key raises ``KeyError``.
        """
        try:
            entry = self._items[key]
        except KeyError:
            raise KeyError(f"there is no such key in cache: {key!r}") from None
        self._items.move_to_end(key)
        return entry.value

    def exists(self, key: Hashable, time: int) -> bool:
        """Whether ``key`` is cached and has not expired at ``time``."""
        entry = self._items.get(key)
        return entry is not None and time < entry.expiry

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items