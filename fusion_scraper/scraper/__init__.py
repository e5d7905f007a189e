"""Scraper package: fetching, extraction, link discovery and crawling."""

from fusion_scraper.scraper.crawler import crawl_search
from fusion_scraper.scraper.discovery import discover_listing_links
from fusion_scraper.scraper.extractor import extract_page
from fusion_scraper.scraper.fetcher import FetchContext, RenderingFetcher, StaticFetcher, get_fetcher
from fusion_scraper.scraper.listing import extract_listing, is_target_url
from fusion_scraper.scraper.models import (
    GenericScrapeResult,
    ListingScrapeResult,
    ScrapeLink,
    SearchResult,
)

__all__ = [
    "crawl_search",
    "discover_listing_links",
    "extract_page",
    "extract_listing",
    "is_target_url",
    "FetchContext",
    "StaticFetcher",
    "RenderingFetcher",
    "get_fetcher",
    "GenericScrapeResult",
    "ListingScrapeResult",
    "ScrapeLink",
    "SearchResult",
]
