"""
In-memory denylist of client IPs that failed the webhook secret check.

Bounded: the least recently denied entry is evicted once max_size is reached.
Entries optionally expire after ttl_seconds. Nothing is persisted; a restart
forgets every entry.

Keys are bare IP addresses (no port) for both insert and lookup, so a caller
cannot dodge the block by reconnecting from another source port.
"""
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Denylist:
    """
    Example:
        denylist = Denylist(max_size=10000, ttl_seconds=3600)
        denylist.add("203.0.113.7")
        if "203.0.113.7" in denylist:
            ...
    """

    def __init__(
        self,
        max_size: int = 10000,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got: {max_size}")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # ip -> monotonic deadline (None = never expires)
        self._entries: "OrderedDict[str, Optional[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def add(self, ip: str) -> None:
        deadline = None
        if self.ttl_seconds is not None:
            deadline = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[ip] = deadline
            self._entries.move_to_end(ip)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.info(f"DENYLIST_EVICTED ip={evicted} size={self.max_size}")

    def contains(self, ip: str) -> bool:
        with self._lock:
            if ip not in self._entries:
                return False
            deadline = self._entries[ip]
            if deadline is not None and self._clock() >= deadline:
                del self._entries[ip]
                return False
            return True

    def remove(self, ip: str) -> None:
        with self._lock:
            self._entries.pop(ip, None)

    def __contains__(self, ip: object) -> bool:
        return isinstance(ip, str) and self.contains(ip)

    def __len__(self) -> int:
        """Number of live (unexpired) entries; expired ones are purged."""
        with self._lock:
            now = self._clock()
            expired = [ip for ip, deadline in self._entries.items() if deadline is not None and now >= deadline]
            for ip in expired:
                del self._entries[ip]
            return len(self._entries)
