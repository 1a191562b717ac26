from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .cache import TTLCache
from .errors import CacheError
from .graphql_client import GraphQLClient
from .logging import get_logger, setup_logging
from .schemas import CacheStats, GraphQLRequest, GraphQLResponse
from .shared import get_cache, reset_cache

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    get_cache()
    yield
    reset_cache()


app = FastAPI(title="Peer Cache API", version="1.0.0", lifespan=lifespan)


def cache_dependency() -> TTLCache:
    return get_cache()


def client_dependency(cache: TTLCache = Depends(cache_dependency)) -> GraphQLClient:
    return GraphQLClient(cache)


@app.exception_handler(CacheError)
async def handle_cache_error(request: Request, err: CacheError):
    log.warning("CacheError: %s", err.message)
    return JSONResponse(status_code=err.status_code, content={"detail": err.message})


@app.get("/health")
async def health():
    """Liveness probe for the service.

    Returns
    -------
    dict
        A fixed payload `{"status": "ok"}` used by orchestrators and uptime checks.
    """

    return {"status": "ok"}


@app.get("/v1/cache/stats", response_model=CacheStats)
async def cache_stats(cache: TTLCache = Depends(cache_dependency)):
    """Return hit/miss counters and the number of live entries.

    Notes
    -----
    - `size` counts only entries that have not expired at the time of the call.
    """

    return cache.stats()


@app.delete("/v1/cache", response_model=CacheStats)
async def clear_cache(cache: TTLCache = Depends(cache_dependency)):
    """Drop every entry and return the resulting statistics.

    Counters survive the clear; `last_cleared` is updated.
    """

    cache.clear()
    return cache.stats()


@app.delete("/v1/cache/{key:path}", status_code=204)
async def delete_key(key: str, cache: TTLCache = Depends(cache_dependency)):
    cache.delete(key)
    return Response(status_code=204)


@app.post("/v1/graphql", response_model=GraphQLResponse)
async def graphql_proxy(body: GraphQLRequest, client: GraphQLClient = Depends(client_dependency)):
    """Forward a GraphQL operation upstream, serving repeated requests from the cache.

    Parameters
    ----------
    body : GraphQLRequest
        `query`, optional `variables`, and `use_cache` (set `false` to force a refetch).

    Returns
    -------
    GraphQLResponse
        Upstream `data` and whether it was served from cache.

    Raises
    ------
    GraphQLError
        Mapped to 502 when the upstream fails or answers with `errors`.
    """

    data, cached = await client.fetch(body.query, body.variables, use_cache=body.use_cache)
    return {"data": data, "cached": cached}
