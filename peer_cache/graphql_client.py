import hashlib
import json
from typing import Any, Dict, Optional, Tuple

import httpx

from .cache import TTLCache
from .errors import GraphQLResponseError, NetworkError
from .logging import get_logger
from .settings import get_settings

log = get_logger(__name__)


class GraphQLClient:
    """Thin async GraphQL client whose results are served from a `TTLCache`.

    Parameters
    ----------
    cache : TTLCache
        Cache used to store `data` payloads of successful responses.
    endpoint : Optional[str]
        GraphQL endpoint URL. Defaults to `settings.graphql_endpoint`.
    token : Optional[str]
        Bearer token sent in the `Authorization` header. Defaults to `settings.api_token`.
    timeout : Optional[float]
        Per-request timeout in seconds. Defaults to `settings.graphql_timeout`.
    transport : Optional[httpx.AsyncBaseTransport]
        Custom transport, e.g. `httpx.MockTransport` in tests.

    Notes
    -----
    - Payloads are opaque: the client neither parses nor validates the schema.
    - Responses carrying GraphQL `errors`, and transport failures, are never cached.
    """

    def __init__(
        self,
        cache: TTLCache,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.cache = cache
        self.endpoint = endpoint or settings.graphql_endpoint
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout or settings.graphql_timeout
        self._transport = transport

    @staticmethod
    def cache_key(query: str, variables: Optional[Dict[str, Any]] = None) -> str:
        """Build a stable cache key from the operation text and its variables.

        Whitespace in `query` is normalized and `variables` are serialized with
        sorted keys, so equivalent requests share one entry.
        """

        normalized = " ".join(query.split())
        raw = json.dumps({"query": normalized, "variables": variables or {}}, sort_keys=True, default=str)
        return "gql:" + hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, query: str, variables: Optional[Dict[str, Any]]) -> Any:
        """POST one GraphQL operation and return the decoded response body.

        Raises
        ------
        NetworkError
            For transport errors, 4xx/5xx statuses or a non-JSON body.
        """

        body = {"query": query, "variables": variables or {}}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.endpoint, json=body, headers=self._headers())
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(f"GraphQL endpoint returned {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"GraphQL request failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError("GraphQL endpoint returned a non-JSON body") from exc

    async def fetch(
        self, query: str, variables: Optional[Dict[str, Any]] = None, use_cache: bool = True
    ) -> Tuple[Any, bool]:
        """Execute an operation and report whether it was served from cache.

        Returns
        -------
        Tuple[Any, bool]
            The response `data` and `True` when it came from the cache.

        Raises
        ------
        NetworkError
            If the request could not be completed or the body is not a JSON object.
        GraphQLResponseError
            If the response contains an `errors` array.
        """

        key = self.cache_key(query, variables)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached, True

        log.info("Fetching GraphQL data", extra={"endpoint": self.endpoint})
        payload = await self._post(query, variables)
        if not isinstance(payload, dict):
            raise NetworkError("GraphQL endpoint returned a non-object body")
        errors = payload.get("errors")
        if errors and not isinstance(errors, list):
            raise GraphQLResponseError("GraphQL error: malformed errors field", errors=[{"message": str(errors)}])
        if errors:
            first = errors[0].get("message", "unknown error") if isinstance(errors[0], dict) else str(errors[0])
            log.warning("GraphQL response contained errors", extra={"count": len(errors)})
            raise GraphQLResponseError(f"GraphQL error: {first}", errors=errors)

        data = payload.get("data")
        if data is not None:
            self.cache.set(key, data)
        return data, False

    async def execute(
        self, query: str, variables: Optional[Dict[str, Any]] = None, use_cache: bool = True
    ) -> Any:
        data, _ = await self.fetch(query, variables, use_cache=use_cache)
        return data

    def invalidate(self, query: str, variables: Optional[Dict[str, Any]] = None) -> None:
        self.cache.delete(self.cache_key(query, variables))
