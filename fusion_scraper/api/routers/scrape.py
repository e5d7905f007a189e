"""Scrape endpoints — generic pages, listings, search crawls.

Routes
------
POST /api/scrape                   Body: {"url": "https://..."}          → generic page
POST /api/scrape/kijiji            Body: {"url": "https://...kijiji.ca/..."} → listing
POST /api/scrape/kijiji/search     Body: {"url": "...", "pages": 3}      → crawl
POST /api/scrape/kijiji/live       Body: {"url": "https://...kijiji.ca/..."} → rendered listing
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from fusion_scraper.config import settings
from fusion_scraper.scraper.crawler import crawl_search
from fusion_scraper.scraper.errors import FetchError, InvalidInput
from fusion_scraper.scraper.extractor import extract_page
from fusion_scraper.scraper.fetcher import FetchContext, ensure_http_url
from fusion_scraper.scraper.listing import extract_listing, is_target_url
from fusion_scraper.scraper.live import scrape_listing_live

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    url: Optional[str] = None


class SearchRequest(BaseModel):
    url: Optional[str] = None
    # Any value is accepted and clamped by the crawler.
    pages: Any = 1


class ScrapeLinkOut(BaseModel):
    text: str
    href: str


class GenericScrapeResponse(BaseModel):
    kind: Literal["generic"] = "generic"
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    headings: List[str] = []
    links: List[ScrapeLinkOut] = []


class ListingScrapeResponse(BaseModel):
    kind: Literal["listing"] = "listing"
    url: str
    model: Optional[str] = None
    price: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_links: int = Field(alias="totalLinks")
    results: List[ListingScrapeResponse] = []


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _target_url(url: Optional[str], what: str = "listing URL") -> str:
    """Validate *url* as an http(s) URL on the target domain."""
    message = f"Provide a valid {settings.target_domain} {what}"
    try:
        checked = ensure_http_url(url)
    except InvalidInput:
        raise InvalidInput(message) from None
    if not is_target_url(checked):
        raise InvalidInput(message)
    return checked


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scrape", response_model=GenericScrapeResponse)
def scrape_page(body: ScrapeRequest, request: Request) -> dict[str, Any]:
    """Fetch any page and return its title, description, headings and links."""
    url = ensure_http_url(body.url)
    html = request.app.state.fetcher.fetch(url, FetchContext.for_policy("scrape"))
    return asdict(extract_page(html, url))


@router.post("/scrape/kijiji", response_model=ListingScrapeResponse)
def scrape_listing(body: ScrapeRequest, request: Request) -> dict[str, Any]:
    """Fetch a listing page on the target domain and extract its fields."""
    url = _target_url(body.url)
    html = request.app.state.fetcher.fetch(url, FetchContext.for_policy("scrape"))
    return asdict(extract_listing(html, url))


@router.post("/scrape/kijiji/search", response_model=SearchResponse)
def scrape_search(body: SearchRequest, request: Request) -> dict[str, Any]:
    """Crawl up to ``pages`` search pages and scrape every listing found.

    Any search-page fetch failure aborts the crawl with a 500.
    """
    url = _target_url(body.url, "URL")
    try:
        result = crawl_search(url, body.pages, request.app.state.fetcher)
    except FetchError as exc:
        raise HTTPException(status_code=500, detail=f"Search scrape failed: {exc}") from exc
    return {
        "totalLinks": result.total_links,
        "results": [asdict(r) for r in result.results],
    }


@router.post("/scrape/kijiji/live", response_model=ListingScrapeResponse)
def scrape_listing_rendered(body: ScrapeRequest, request: Request) -> dict[str, Any]:
    """Render a listing in a headless browser, revealing the phone if possible.

    Falls back to a static fetch when rendering fails; 500 if both fail.
    """
    url = _target_url(body.url)
    state = request.app.state
    try:
        result = scrape_listing_live(url, state.renderer, state.static_fetcher)
    except FetchError as exc:
        raise HTTPException(status_code=500, detail=f"Live scrape failed: {exc}") from exc
    return asdict(result)
