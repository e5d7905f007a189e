"""Batch runner: push a list of URLs through the scrape API, one report row each.

Rows are produced sequentially and in input order.  A URL that fails for any
reason still gets a row (with blank fields), so row *n* of the report always
belongs to the *n*-th retained input line.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List

import httpx

from cli.rendering import report_row
from fusion_scraper.scraper.listing import is_target_url
from fusion_scraper.scraper.models import ScrapeResult, parse_scrape_result

logger = logging.getLogger(__name__)

GENERIC_ENDPOINT = "/api/scrape"
LISTING_ENDPOINT = "/api/scrape/kijiji"

_URL_LINE_RE = re.compile(r"^https?://", re.IGNORECASE)


def parse_url_lines(url_lines: str | Iterable[str]) -> List[str]:
    """Split, trim and keep only lines that start with ``http://`` or ``https://``."""
    lines = url_lines.splitlines() if isinstance(url_lines, str) else url_lines
    stripped = (line.strip() for line in lines)
    return [line for line in stripped if _URL_LINE_RE.match(line)]


def endpoint_for(url: str) -> str:
    """Listing endpoint for the target domain, generic endpoint otherwise."""
    return LISTING_ENDPOINT if is_target_url(url) else GENERIC_ENDPOINT


def scrape_via_api(client: httpx.Client, url: str) -> ScrapeResult:
    """POST *url* to the matching endpoint and decode the tagged result.

    Raises:
        httpx.HTTPError: Transport failure or non-2xx response.
        ValueError: The body is not JSON or carries no known ``kind``.
    """
    response = client.post(endpoint_for(url), json={"url": url})
    response.raise_for_status()
    return parse_scrape_result(response.json())


def run_batch(url_lines: str | Iterable[str], client: httpx.Client) -> List[str]:
    """Scrape every URL line through *client* and return the report rows."""
    rows: List[str] = []
    for url in parse_url_lines(url_lines):
        try:
            result: ScrapeResult | None = scrape_via_api(client, url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Batch scrape of %s failed: %s", url, exc)
            result = None
        rows.append(report_row(url, result))
    return rows
