import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from pydantic import ValidationError

from .errors import CacheConfigError, CacheStoppedError
from .logging import get_logger
from .schemas import CacheOptions, CacheStats

log = get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    """Stored value with its insertion and expiration times (cache clock)."""

    data: T
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache(Generic[T]):
    """Thread-safe TTL-backed key-value cache.

    Parameters
    ----------
    ttl_seconds : float
        Time-to-live in seconds. Entries are logically absent once
        `now >= inserted_at + ttl_seconds`.
    cleanup_interval : Optional[float]
        If set, a daemon thread calls `sweep()` every `cleanup_interval` seconds.
    max_size : Optional[int]
        Optional entry cap. Adding a new key to a full cache first purges
        expired entries, then evicts the oldest insertion.
    enable_logging : bool
        Emit DEBUG records for hits, misses, expirations and evictions.
    clock : Optional[Callable[[], float]]
        Monotonic time source, `time.monotonic` by default. Tests inject a fake one.

    Raises
    ------
    CacheConfigError
        If `ttl_seconds`, `cleanup_interval` or `max_size` is not strictly positive.

    Notes
    -----
    - Keys are typed as `str` in this implementation.
    - Operations are O(1) average time, except `sweep()`, `stats()` and `keys()`
      which scan the store.
    - Expiration is checked on every read (lazy eviction); the optional sweep
      only bounds memory held by keys that are never read again.
    - `has()` never changes the hit/miss counters.
    - After `stop()` every operation raises `CacheStoppedError`.
    """

    def __init__(
        self,
        ttl_seconds: float,
        cleanup_interval: Optional[float] = None,
        max_size: Optional[int] = None,
        enable_logging: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ):
        try:
            self.options = CacheOptions(
                ttl=ttl_seconds,
                cleanup_interval=cleanup_interval,
                max_size=max_size,
                enable_logging=enable_logging,
            )
        except ValidationError as exc:
            raise CacheConfigError(f"invalid cache options: {exc.errors()[0]['msg']}") from exc

        self.ttl = self.options.ttl
        self._clock = clock or time.monotonic
        self._store: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._last_cleared: Optional[float] = None
        self._stopped = False
        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

        if self.options.cleanup_interval:
            self._sweeper = threading.Thread(target=self._run_sweeper, name="ttl-cache-sweeper", daemon=True)
            self._sweeper.start()
        self._debug("TTLCache initialized", ttl=self.ttl, cleanup_interval=cleanup_interval)

    @classmethod
    def from_options(cls, options: CacheOptions, clock: Optional[Callable[[], float]] = None) -> "TTLCache":
        return cls(
            options.ttl,
            cleanup_interval=options.cleanup_interval,
            max_size=options.max_size,
            enable_logging=options.enable_logging,
            clock=clock,
        )

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _ensure_running(self) -> None:
        if self._stopped:
            raise CacheStoppedError()

    def _debug(self, msg: str, **fields: Any) -> None:
        if self.options.enable_logging:
            log.debug(msg, extra=fields)

    def set(self, key: str, value: T) -> None:
        """Insert or replace the value for `key`, restarting its TTL.

        Parameters
        ----------
        key : str
            Cache key.
        value : T
            Arbitrary Python object to store.
        """

        with self._lock:
            self._ensure_running()
            now = self._clock()
            # Re-inserting moves the key to the end, so iteration order is insertion-time order.
            replaced = self._store.pop(key, None) is not None
            if not replaced and self.options.max_size and len(self._store) >= self.options.max_size:
                self._purge_expired(now)
                if len(self._store) >= self.options.max_size:
                    oldest = next(iter(self._store))
                    del self._store[oldest]
                    self._debug("Cache entry evicted", key=oldest)
            self._store[key] = CacheEntry(data=value, inserted_at=now, expires_at=now + self.ttl)
        self._debug("Cache entry set", key=key)

    def get(self, key: str) -> Optional[T]:
        """Return the cached value for `key` if present and not expired.

        Parameters
        ----------
        key : str
            Cache key.

        Returns
        -------
        Optional[T]
            The stored value, or `None` if the key is missing or the entry expired.

        Notes
        -----
        - Counts a hit or a miss on every call.
        - Performs lazy eviction: a stale entry is removed and counted as a miss.
        """

        with self._lock:
            self._ensure_running()
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                self._debug("Cache miss", key=key)
                return None
            if entry.is_expired(self._clock()):
                del self._store[key]
                self._misses += 1
                self._debug("Cache entry expired", key=key)
                return None
            self._hits += 1
        self._debug("Cache hit", key=key)
        return entry.data

    def has(self, key: str) -> bool:
        """Return whether `key` holds a live entry, without touching hit/miss counters.

        An expired entry found here is removed, as in `get`.
        """

        with self._lock:
            self._ensure_running()
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                del self._store[key]
                self._debug("Cache entry expired during has check", key=key)
                return False
            return True

    def get_or_set(self, key: str, factory: Callable[[], T]) -> T:
        """Return the live value for `key`, or compute it with `factory` and cache it.

        The factory runs outside the lock; concurrent callers may each compute
        the value, and the last one stored wins.
        """

        value = self.get(key)
        if value is not None:
            return value
        value = factory()
        self.set(key, value)
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._ensure_running()
            self._store.pop(key, None)
        self._debug("Cache entry deleted", key=key)

    def clear(self) -> None:
        """Remove all entries. Hit/miss counters are kept; `last_cleared` is updated."""

        with self._lock:
            self._ensure_running()
            self._store.clear()
            self._last_cleared = time.time()
        self._debug("Cache cleared")

    def keys(self) -> List[str]:
        with self._lock:
            self._ensure_running()
            now = self._clock()
            return [k for k, e in self._store.items() if not e.is_expired(now)]

    def stats(self) -> CacheStats:
        """Return a snapshot of counters and the number of live entries.

        Returns
        -------
        CacheStats
            `hits`, `misses`, `size` (non-expired entries only) and `last_cleared`.
        """

        with self._lock:
            self._ensure_running()
            now = self._clock()
            size = sum(1 for e in self._store.values() if not e.is_expired(now))
            return CacheStats(hits=self._hits, misses=self._misses, size=size, last_cleared=self._last_cleared)

    get_stats = stats

    def sweep(self) -> int:
        """Remove every expired entry now.

        Returns
        -------
        int
            Number of entries removed.
        """

        with self._lock:
            self._ensure_running()
            cleaned = self._purge_expired(self._clock())
        if cleaned:
            self._debug("Cache cleanup completed", cleaned=cleaned)
        return cleaned

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._store.items() if e.is_expired(now)]
        for k in expired:
            del self._store[k]
        return len(expired)

    def _run_sweeper(self) -> None:
        interval = self.options.cleanup_interval
        while not self._stop_event.wait(interval):
            try:
                self.sweep()
            except CacheStoppedError:
                return

    def stop(self) -> None:
        """Cancel the background sweep and release all entries.

        Calling `stop()` more than once is harmless. Any other operation on a
        stopped cache raises `CacheStoppedError`.
        """

        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop_event.set()
            self._store.clear()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join()
        self._sweeper = None
        self._debug("TTLCache stopped")

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return self.stats().size
