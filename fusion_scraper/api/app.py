"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging from ``LOG_LEVEL``.  The fetchers used
by the routes are created in :func:`create_app` and stored on ``app.state``
so tests can swap them:

    app.state.fetcher         — configured by ``FETCH_STRATEGY``
    app.state.static_fetcher  — plain httpx fetcher (live-scrape fallback)
    app.state.renderer        — headless browser with phone-reveal clicks

Errors
------
Every failure is rendered as ``{"error": message}``:

    InvalidInput / bad request body  → 400
    UpstreamStatus                   → 502
    any other scrape or server error → 500
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fusion_scraper.api.routers import scrape as scrape_router
from fusion_scraper.config import settings
from fusion_scraper.log import configure_logging
from fusion_scraper.scraper.errors import InvalidInput, ScrapeError, UpstreamStatus
from fusion_scraper.scraper.fetcher import RenderingFetcher, StaticFetcher, get_fetcher
from fusion_scraper.scraper.listing import REVEAL_PHONE_SELECTORS

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup."""
    configure_logging()
    logger.info("Fetch strategy: %s", settings.fetch_strategy)
    yield


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ScrapeError)
    async def scrape_error_handler(request: Request, exc: ScrapeError) -> JSONResponse:
        if isinstance(exc, InvalidInput):
            return _error(400, str(exc))
        if isinstance(exc, UpstreamStatus):
            return _error(502, str(exc))
        logger.error("Scrape of %s failed: %s", request.url.path, exc)
        return _error(500, str(exc) or "Scrape failed")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        return _error(400, f"Invalid request body: {first.get('msg', 'malformed JSON')}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, str(exc) or "Internal server error")


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Fusion Scraper API",
        description=(
            "Scrapes arbitrary pages into title/description/headings/links, "
            "extracts classified-ad listing fields, and crawls paginated "
            "listing searches."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # The browser shell is served from another origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.fetcher = get_fetcher()
    app.state.static_fetcher = StaticFetcher()
    app.state.renderer = RenderingFetcher(reveal_selectors=REVEAL_PHONE_SELECTORS)

    _install_error_handlers(app)

    @app.get("/api/ping", tags=["meta"])
    def ping() -> dict[str, str]:
        return {"message": settings.ping_message}

    app.include_router(scrape_router.router, prefix="/api", tags=["scrape"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn fusion_scraper.api.app:app --reload
app = create_app()
