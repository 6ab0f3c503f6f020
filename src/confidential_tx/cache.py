"""Process-local session cache for party capabilities and contract status reads."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionCache:
    """Memoize values per scope and drop whole scopes atomically.

    All mutation happens between suspension points, so the event loop cannot
    interleave another task halfway through an invalidation.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, dict[Hashable, Any]] = {}
        self._generations: dict[Hashable, int] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_or_init(self, scope: Hashable, key: Hashable, factory: Callable[[], T]) -> T:
        entries = self._entries.setdefault(scope, {})
        if key not in entries:
            entries[key] = factory()
        return entries[key]

    async def get_or_load(
        self,
        scope: Hashable,
        key: Hashable,
        loader: Callable[[], Awaitable[T]],
        *,
        store_if: Callable[[T], bool] | None = None,
    ) -> T:
        """Return a cached value or await ``loader`` to produce it.

        A value loaded while ``scope`` was invalidated is returned to the
        caller but not stored. ``store_if`` limits which values are memoized.
        """

        entries = self._entries.get(scope)
        if entries is not None and key in entries:
            return entries[key]

        generation = self.generation(scope)
        value = await loader()
        if self.generation(scope) != generation:
            logger.debug("Discarding %s/%s loaded before invalidation", scope, key)
        elif store_if is None or store_if(value):
            self._entries.setdefault(scope, {})[key] = value
        return value

    def peek(self, scope: Hashable, key: Hashable, default: Any = None) -> Any:
        return self._entries.get(scope, {}).get(key, default)

    def contains(self, scope: Hashable, key: Hashable) -> bool:
        return key in self._entries.get(scope, {})

    def generation(self, scope: Hashable) -> int:
        return self._generations.get(scope, 0)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------
    def invalidate(self, scope: Hashable, key: Hashable | None = None) -> None:
        """Drop one entry, or every entry of ``scope`` when ``key`` is omitted."""

        if key is None:
            self._entries.pop(scope, None)
            logger.info("Invalidated cache scope %s", scope)
        else:
            self._entries.get(scope, {}).pop(key, None)
        self._generations[scope] = self.generation(scope) + 1

    def clear(self) -> None:
        for scope in list(self._entries):
            self.invalidate(scope)
