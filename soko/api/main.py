"""
FastAPI application for the soko identity API.

Startup configures logging from settings, opens the PostgreSQL pool and
applies the SQL migrations; shutdown closes the pool. Domain errors are
translated to HTTP in the v1 routes, everything else lands in the
catch-all handler below.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from soko import __version__
from soko.adapters.repository.postgres import run_migrations
from soko.api.dependencies import get_pool
from soko.api.v1 import router as v1_router
from soko.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

tags_metadata = [
    {
        "name": "v1",
        "description": "Sign up, verify the email address, mint access tokens",
    },
]


def _open_pool(settings: Settings) -> ConnectionPool:
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    logger.info(
        "Connection pool open (min=%d, max=%d)", settings.pool_min_size, settings.pool_max_size
    )
    return pool


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Own the connection pool for the lifetime of the process."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    pool = _open_pool(settings)
    try:
        run_migrations(pool)
    except RuntimeError:
        pool.close()
        raise
    app.state.pool = pool
    logger.info("soko %s ready", __version__)

    yield

    pool.close()
    logger.info("Connection pool closed")


app = FastAPI(
    title="soko",
    description="Account identity API - signup, email verification and access tokens",
    version=__version__,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log infrastructure failures with context and answer a generic 500."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health_check(pool: ConnectionPool = Depends(get_pool)) -> dict[str, str]:
    """
    Liveness plus database round trip.

    A database failure propagates to the catch-all handler (500).
    """
    with pool.connection() as conn:
        conn.execute("SELECT 1")
    return {"status": "healthy"}
