"""Multi-page search crawl: discover listing links, then scrape each listing.

Failure policy
--------------
* A failed **search-page** fetch aborts the whole crawl: the
  :class:`~fusion_scraper.scraper.errors.FetchError` propagates, because a
  partially paginated crawl would silently under-report.
* A failed **listing** scrape is logged and skipped; ``total_links`` still
  counts it.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Set

from fusion_scraper.config import settings
from fusion_scraper.scraper.discovery import discover_listing_links, is_listing_url, with_page
from fusion_scraper.scraper.errors import ScrapeError
from fusion_scraper.scraper.fetcher import FetchContext, Fetcher
from fusion_scraper.scraper.listing import extract_listing
from fusion_scraper.scraper.models import ListingScrapeResult, SearchResult

logger = logging.getLogger(__name__)


def clamp_pages(pages: Any, upper: Optional[int] = None) -> int:
    """Clamp a requested page count to ``[1, upper]`` (default ``MAX_SEARCH_PAGES``).

    Numeric strings and floats are accepted; anything that is not a number
    counts as 1.
    """
    upper = upper if upper is not None else settings.max_search_pages
    try:
        value = float(pages or 1)
    except (TypeError, ValueError):
        value = 1.0
    if math.isnan(value):
        value = 1.0
    return int(max(1, min(upper, value)))


def discover_links(url: str, pages: int, fetcher: Fetcher, policy: str = "crawl") -> Set[str]:
    """Collect listing links across ``pages`` search pages starting at *url*.

    A listing URL is returned as a one-item set without any fetch.
    """
    if is_listing_url(url):
        return {url}

    links: Set[str] = set()
    for page in range(1, pages + 1):
        page_url = with_page(url, page)
        html = fetcher.fetch(page_url, FetchContext.for_policy(policy))
        found = discover_listing_links(html, page_url)
        logger.info("Search page %d: %d listing link(s)", page, len(found))
        links |= found
    return links


def scrape_listing(url: str, fetcher: Fetcher, policy: str = "crawl") -> ListingScrapeResult:
    """Fetch and extract a single listing page."""
    html = fetcher.fetch(url, FetchContext.for_policy(policy))
    return extract_listing(html, url)


def _scrape_or_skip(url: str, fetcher: Fetcher, policy: str) -> Optional[ListingScrapeResult]:
    try:
        return scrape_listing(url, fetcher, policy)
    except ScrapeError as exc:
        logger.warning("Skipping listing %s: %s", url, exc)
        return None


def crawl_search(
    url: str,
    pages: Any,
    fetcher: Fetcher,
    concurrency: Optional[int] = None,
    policy: str = "crawl",
) -> SearchResult:
    """Crawl a paginated search and scrape every discovered listing.

    Args:
        url: Search-results URL (or a single listing URL).
        pages: Requested page count; clamped to ``[1, MAX_SEARCH_PAGES]``.
        fetcher: Source of markup for both search and listing pages.
        concurrency: Maximum parallel listing scrapes (``CRAWL_CONCURRENCY``
            by default); ``1`` scrapes sequentially.
        policy: Timeout policy applied to each individual fetch.

    Raises:
        FetchError: If any search page cannot be fetched.
    """
    count = clamp_pages(pages)
    links = sorted(discover_links(url, count, fetcher, policy))
    workers = max(1, concurrency if concurrency is not None else settings.crawl_concurrency)

    if workers == 1 or len(links) <= 1:
        scraped = [_scrape_or_skip(link, fetcher, policy) for link in links]
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(links))) as pool:
            # map() keeps link order regardless of completion order.
            scraped = list(pool.map(lambda link: _scrape_or_skip(link, fetcher, policy), links))
    results: List[ListingScrapeResult] = [r for r in scraped if r is not None]

    logger.info("Crawl of %s: %d link(s), %d scraped", url, len(links), len(results))
    return SearchResult(total_links=len(links), results=results)
