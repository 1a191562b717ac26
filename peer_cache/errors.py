from typing import Any, Dict, List, Optional


class CacheError(Exception):
    """Base error for cache and client failures.

    Notes
    -----
    - `status_code` is the HTTP status the service answers with when the
      error escapes a request handler.
    - Missing or expired keys are never errors; they surface as `None`/`False`.
    """

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code:
            self.status_code = status_code
        self.message = message


class CacheConfigError(CacheError):
    status_code = 400


class CacheStoppedError(CacheError):
    status_code = 503

    def __init__(self, message: str = "cache has been stopped"):
        super().__init__(message)


class CacheAlreadyConfiguredError(CacheError):
    status_code = 409


class GraphQLError(CacheError):
    status_code = 502


class NetworkError(GraphQLError):
    pass


class GraphQLResponseError(GraphQLError):
    """Upstream answered, but the payload carries a GraphQL `errors` array."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []
