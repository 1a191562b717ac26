from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheOptions(BaseModel):
    """Construction options for a `TTLCache`.

    Notes
    -----
    - `ttl` is required and must be strictly positive (seconds).
    - Setting `cleanup_interval` starts a background sweep that runs every
      `cleanup_interval` seconds.
    - `max_size` caps the number of stored entries; when a new key would
      exceed it, expired entries are purged and then the oldest insertion is evicted.
    - Instances are frozen so the shared-instance factory can compare them.
    """

    model_config = ConfigDict(frozen=True)

    ttl: float = Field(gt=0)
    cleanup_interval: Optional[float] = Field(default=None, gt=0)
    max_size: Optional[int] = Field(default=None, gt=0)
    enable_logging: bool = True


class CacheStats(BaseModel):
    """Point-in-time cache statistics.

    Notes
    -----
    - `size` counts only entries that were still live when the snapshot was taken.
    - `last_cleared` is a Unix timestamp (seconds) of the last `clear()` call.
    """

    hits: int = 0
    misses: int = 0
    size: int = 0
    last_cleared: Optional[float] = None


class GraphQLRequest(BaseModel):
    query: str
    variables: Optional[Dict[str, Any]] = None
    use_cache: bool = True


class GraphQLResponse(BaseModel):
    data: Any
    cached: bool
