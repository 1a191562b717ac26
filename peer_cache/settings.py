from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .schemas import CacheOptions


class Settings(BaseSettings):
    """Runtime configuration read from the environment (and `.env`, if present).

    Notes
    -----
    - Field names map to upper-case environment variables, e.g. `cache_ttl`
      is read from `CACHE_TTL`.
    - TTLs and periods are expressed in seconds.
    - `cache_check_period = 0` disables the background sweep; expired entries
      are then only evicted lazily on access.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Cache
    cache_ttl: float = 300  # 5 minutes
    cache_check_period: float = 60
    cache_max_size: Optional[int] = None
    cache_enable_logging: bool = True

    # Upstream GraphQL API
    graphql_endpoint: str = "http://localhost:4000/graphql"
    api_token: Optional[str] = None
    graphql_timeout: float = 20

    log_level: str = "INFO"

    def cache_options(self) -> CacheOptions:
        """Build the `CacheOptions` used for the shared cache instance."""

        return CacheOptions(
            ttl=self.cache_ttl,
            cleanup_interval=self.cache_check_period or None,
            max_size=self.cache_max_size,
            enable_logging=self.cache_enable_logging,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
