"""Dependency-tagged memo store for layout values."""

import logging
from collections.abc import Callable, Hashable, Iterable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CacheTag(Enum):
    """Mutation classes that invalidate cached layout values.

    Handler replacements are tagged with the replaced ``PropertyKey`` itself.
    """

    STRUCTURE = "structure"  # add/remove node, child, layer or relation
    VISIBILITY = "visibility"  # show/hide or visibility handler change


class LayoutCache:
    """Memoized values, each tagged with the mutations that invalidate it."""

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}
        self._by_tag: dict[Hashable, set[Hashable]] = {}

    def get(
        self,
        key: Hashable,
        tags: Iterable[Hashable],
        compute: Callable[[], Any],
    ) -> Any:
        """Return the cached value for key, computing and tagging it on a miss."""
        try:
            return self._values[key]
        except KeyError:
            pass

        value = compute()
        self._values[key] = value
        for tag in tags:
            self._by_tag.setdefault(tag, set()).add(key)
        return value

    def invalidate(self, *tags: Hashable) -> int:
        """Drop every value carrying any of the given tags.

        Returns:
            Number of values removed.
        """
        removed = 0
        for tag in tags:
            for key in self._by_tag.pop(tag, set()):
                if key in self._values:
                    del self._values[key]
                    removed += 1
        if removed:
            logger.debug("Invalidated %d cached values for %s", removed, tags)
        return removed

    def clear(self) -> None:
        self._values.clear()
        self._by_tag.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)
