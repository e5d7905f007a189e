"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Union


@dataclass
class ScrapeLink:
    """An anchor found on a page; ``href`` is absolute when resolvable."""

    text: str
    href: str


@dataclass
class GenericScrapeResult:
    """Generic page metadata extracted from any HTML document."""

    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    headings: List[str] = field(default_factory=list)
    links: List[ScrapeLink] = field(default_factory=list)
    kind: Literal["generic"] = field(default="generic", init=False)


@dataclass
class ListingScrapeResult:
    """Structured fields of a single classified-ad listing page."""

    url: str
    model: Optional[str] = None
    price: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    kind: Literal["listing"] = field(default="listing", init=False)


@dataclass
class SearchResult:
    """Aggregate output of a multi-page search crawl.

    ``total_links`` counts every discovered listing link, so it may exceed
    ``len(results)`` when individual listings fail to scrape.
    """

    total_links: int
    results: List[ListingScrapeResult] = field(default_factory=list)


ScrapeResult = Union[GenericScrapeResult, ListingScrapeResult]


def parse_scrape_result(payload: dict[str, Any]) -> ScrapeResult:
    """Rebuild a :data:`ScrapeResult` from its JSON form using the ``kind`` tag.

    Raises:
        ValueError: If the payload carries no known ``kind``.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    kind = payload.get("kind")
    if kind == "listing":
        return ListingScrapeResult(
            url=str(payload.get("url") or ""),
            model=payload.get("model"),
            price=payload.get("price"),
            address=payload.get("address"),
            phone=payload.get("phone"),
        )
    if kind == "generic":
        links = [
            ScrapeLink(text=str(lnk.get("text") or ""), href=str(lnk.get("href") or ""))
            for lnk in payload.get("links") or []
            if isinstance(lnk, dict)
        ]
        return GenericScrapeResult(
            url=str(payload.get("url") or ""),
            title=payload.get("title"),
            description=payload.get("description"),
            headings=[str(h) for h in payload.get("headings") or []],
            links=links,
        )
    raise ValueError(f"Unknown scrape result kind: {kind!r}")
