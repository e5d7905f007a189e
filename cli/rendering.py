"""Utilities for rendering scrape results in the CLI."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Optional

from fusion_scraper.scraper.models import (
    GenericScrapeResult,
    ListingScrapeResult,
    ScrapeResult,
    SearchResult,
)

REPORT_SEPARATOR = "|"
REPORT_COLUMNS = ("url", "phone", "model_or_title", "price", "address")


def _cell(value: Optional[str]) -> str:
    # A separator or newline inside a value would shift the columns.
    return " ".join((value or "").replace(REPORT_SEPARATOR, " ").split())


def report_row(url: str, result: Optional[ScrapeResult]) -> str:
    """Format one batch-report line: ``url|phone|model-or-title|price|address``.

    ``result=None`` (a failed scrape) yields a row with every field blank.
    """
    if isinstance(result, ListingScrapeResult):
        cells = [result.phone, result.model, result.price, result.address]
    elif isinstance(result, GenericScrapeResult):
        cells = [None, result.title, None, None]
    else:
        cells = [None, None, None, None]
    return REPORT_SEPARATOR.join([url, *(_cell(c) for c in cells)])


def to_json(result: ScrapeResult | SearchResult) -> str:
    """Pretty-print a result the way the HTTP API would serialise it."""
    if isinstance(result, SearchResult):
        payload = {
            "totalLinks": result.total_links,
            "results": [asdict(r) for r in result.results],
        }
    else:
        payload = asdict(result)
    return json.dumps(payload, indent=2, ensure_ascii=False)
