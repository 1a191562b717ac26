"""Process-wide cache handle.

The shared cache is built lazily by the first `get_cache()` call and lives
until `reset_cache()` stops it (the FastAPI lifespan does this on shutdown).
If a caller stops the shared handle directly, the next `get_cache()` builds a
new one instead of handing out the stopped cache.
Prefer passing a `TTLCache` explicitly to collaborators; this module exists
for the places that genuinely need one instance per process.
"""

import threading
from typing import Optional

from .cache import TTLCache
from .errors import CacheAlreadyConfiguredError
from .logging import get_logger
from .schemas import CacheOptions
from .settings import get_settings

log = get_logger(__name__)

_lock = threading.Lock()
_instance: Optional[TTLCache] = None


def get_cache(options: Optional[CacheOptions] = None) -> TTLCache:
    """Return the shared cache, creating it on first use.

    Parameters
    ----------
    options : Optional[CacheOptions]
        Options for the first construction. Defaults to the environment-backed
        `Settings.cache_options()`.

    Returns
    -------
    TTLCache
        The same handle on every call until `reset_cache()`. A handle that
        was stopped directly is replaced by a fresh one.

    Raises
    ------
    CacheAlreadyConfiguredError
        If the cache already exists and `options` differ from the ones it was built with.
    """

    global _instance
    with _lock:
        if _instance is None or _instance.stopped:
            _instance = TTLCache.from_options(options or get_settings().cache_options())
            log.info("Shared cache created", extra={"ttl": _instance.ttl})
            return _instance
        if options is not None and options != _instance.options:
            raise CacheAlreadyConfiguredError(
                "shared cache is already configured; call reset_cache() before reconfiguring"
            )
        return _instance


def reset_cache() -> None:
    """Stop the shared cache, if any, and forget it."""

    global _instance
    with _lock:
        if _instance is None:
            return
        _instance.stop()
        _instance = None
    log.info("Shared cache reset")
