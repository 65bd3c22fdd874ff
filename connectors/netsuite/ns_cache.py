"""Expiring caches for NetSuite lookups.

One TTLCache instance holds one value (the full vendor list, the full
account list, the attachment folder id). Entries are replaced wholesale,
never patched.

Concurrent callers may both find the entry stale and both populate it; the
later write wins. That is acceptable because every value is an idempotent
projection of ERP state.
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

VENDOR_CACHE_TTL = 30 * 60  # seconds
ACCOUNT_CACHE_TTL = 30 * 60  # seconds


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the clock reading when it was fetched."""
    value: T
    fetched_at: float


class TTLCache(Generic[T]):
    """Single-value cache with time-based expiry.

    Usage:
        vendors = TTLCache[List[VendorRef]]("vendors")
        result = await vendors.get_or_populate(fetch_all_vendors, ttl=VENDOR_CACHE_TTL)
    """

    def __init__(self, name: str, clock: Callable[[], float] = time.monotonic):
        """Initialize cache.

        Args:
            name: Label used in logs
            clock: Seconds source; injectable for tests
        """
        self.name = name
        self._clock = clock
        self._entry: Optional[CacheEntry[T]] = None

    @property
    def entry(self) -> Optional[CacheEntry[T]]:
        return self._entry

    def is_fresh(self, ttl: Optional[float]) -> bool:
        """True if an entry exists and is younger than ttl (None never expires)."""
        if self._entry is None:
            return False
        if ttl is None:
            return True
        return self._clock() - self._entry.fetched_at < ttl

    async def get_or_populate(
        self,
        populate: Callable[[], Awaitable[T]],
        ttl: Optional[float],
    ) -> T:
        """Return the cached value, or populate, store and return a new one.

        A populate call that raises leaves the previous entry untouched.
        """
        if self.is_fresh(ttl):
            return self._entry.value

        value = await populate()
        self._entry = CacheEntry(value=value, fetched_at=self._clock())
        return value
