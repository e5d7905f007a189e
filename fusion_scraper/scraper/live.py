"""Listing scrape through a rendering browser, with a static fallback."""

from __future__ import annotations

import logging

from fusion_scraper.scraper.errors import ScrapeError
from fusion_scraper.scraper.fetcher import FetchContext, Fetcher
from fusion_scraper.scraper.listing import extract_listing
from fusion_scraper.scraper.models import ListingScrapeResult

logger = logging.getLogger(__name__)


def scrape_listing_live(url: str, renderer: Fetcher, fallback: Fetcher) -> ListingScrapeResult:
    """Render *url* (clicking reveal controls) and extract the listing.

    If rendering fails for any reason, including Playwright not being
    installed, the page is fetched statically with *fallback* and parsed with
    the same extractor.  Errors from the fallback propagate.
    """
    try:
        html = renderer.fetch(url, FetchContext.for_policy("render"))
        return extract_listing(html, url)
    except (ScrapeError, ImportError) as exc:
        logger.warning("Rendered scrape of %s failed (%s); falling back to static fetch", url, exc)

    html = fallback.fetch(url, FetchContext.for_policy("scrape"))
    return extract_listing(html, url)
