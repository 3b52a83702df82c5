"""
Query cache with typed invalidation tags.

Entries are keyed by (CacheTag, params). Mutations invalidate whole tags;
stale entries keep their data until the next successful fetch replaces it,
so a failed refetch never loses what was shown before.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class CacheTag(str, Enum):
    VPS_CONFIGURATIONS = "vps-configurations"
    BLOGS = "blogs"
    WORDPRESS_SITES = "wordpress-sites"
    FEATURES = "features"
    NOTIFICATIONS = "notifications"
    UNREAD_COUNT = "unread-count"
    DISCOVERY_USERS = "discovery-users"
    RECOMMENDED_USERS = "recommended-users"
    USER_PROFILE = "user-profile"


CacheKey = tuple[CacheTag, tuple[Hashable, ...]]


@dataclass
class CacheEntry:
    data: Any
    fetched_at: datetime = field(default_factory=datetime.now)
    stale: bool = False


class QueryCache:
    """In-memory query results, invalidated by tag."""

    def __init__(self):
        self._entries: dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def key(tag: CacheTag, *params: Hashable) -> CacheKey:
        return (tag, tuple(params))

    async def fetch(
        self,
        tag: CacheTag,
        loader: Callable[[], Awaitable[Any]],
        *params: Hashable,
    ) -> Any:
        """
        Return fresh cached data, or await loader and cache its result.

        Exceptions from loader propagate and leave any previous entry as is.
        """
        key = self.key(tag, *params)
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            return entry.data

        data = await loader()
        self._entries[key] = CacheEntry(data=data)
        return data

    def peek(self, tag: CacheTag, *params: Hashable) -> Optional[Any]:
        """Cached data even when stale, or None."""
        entry = self._entries.get(self.key(tag, *params))
        return entry.data if entry is not None else None

    def set(self, tag: CacheTag, data: Any, *params: Hashable):
        self._entries[self.key(tag, *params)] = CacheEntry(data=data)

    def is_stale(self, tag: CacheTag, *params: Hashable) -> bool:
        """True when there is no entry or the entry was invalidated."""
        entry = self._entries.get(self.key(tag, *params))
        return entry is None or entry.stale

    def invalidate(self, *tags: CacheTag) -> int:
        """Mark every entry under the given tags stale. Returns the count."""
        count = 0
        for (tag, _), entry in self._entries.items():
            if tag in tags and not entry.stale:
                entry.stale = True
                count += 1
        if tags:
            logger.debug(f"Invalidated {count} entries for {', '.join(t.value for t in tags)}")
        return count

    def clear(self):
        self._entries.clear()
