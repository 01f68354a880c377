"""
FastAPI application entry point.
Mounts routes, Prometheus metrics, domain error rendering and startup (logging, ES index).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from lendoo.api.v1.router import api_router
from lendoo.config import get_settings
from lendoo.core.exceptions import (
    InvariantViolation,
    LendooError,
    TransientError,
)
from lendoo.core.logging import setup_logging
from lendoo.search.elasticsearch_client import ensure_items_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: ensure Elasticsearch index when ES is available."""
    setup_logging()
    try:
        await ensure_items_index()
    except Exception as e:
        # ES may be down; the app still works and search returns empty
        logger.warning("could not ensure search index at startup: %s", e)
    yield


async def lendoo_error_handler(request: Request, exc: LendooError) -> JSONResponse:
    """Render domain errors. Defects, outages and user errors log at different levels."""
    if isinstance(exc, InvariantViolation):
        logger.error("invariant violation on %s %s: %s", request.method, request.url.path, exc.message)
    elif isinstance(exc, TransientError):
        logger.warning("transient failure on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Peer-to-peer rental marketplace: catalog, cart, loan lifecycle and loan views.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LendooError, lendoo_error_handler)

    # Prometheus metrics at /metrics
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
