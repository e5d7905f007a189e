"""Generic extraction: turns any HTML page into a :class:`GenericScrapeResult`."""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from fusion_scraper.scraper.locators import FieldLocator, SelectorAttr, SelectorText, clean_text
from fusion_scraper.scraper.models import GenericScrapeResult, ScrapeLink

MAX_HEADINGS = 20
MAX_LINKS = 100

_TITLE = FieldLocator(
    "title",
    [
        SelectorAttr("meta[property='og:title']", "content"),
        SelectorText("title"),
    ],
)

_DESCRIPTION = FieldLocator(
    "description",
    [
        SelectorAttr("meta[name='description']", "content"),
        SelectorAttr("meta[property='og:description']", "content"),
    ],
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* leniently; malformed markup still yields a document."""
    return BeautifulSoup(html or "", "html.parser")


def to_absolute(href: str, base: str) -> str:
    """Resolve *href* against *base*; unparseable hrefs are returned as-is."""
    try:
        return urljoin(base, href)
    except ValueError:
        return href


def _extract_headings(doc: BeautifulSoup) -> List[str]:
    """Return the trimmed text of ``h1``–``h3`` elements in document order."""
    return [
        h.get_text().strip()
        for h in doc.find_all(["h1", "h2", "h3"], limit=MAX_HEADINGS)
    ]


def _extract_links(doc: BeautifulSoup, base_url: str) -> List[ScrapeLink]:
    """Return anchors with an ``href``, resolved to absolute URLs.

    Empty hrefs are kept (they resolve to the base URL), as are anchors without
    text; only the first :data:`MAX_LINKS` anchors are considered.
    """
    links: List[ScrapeLink] = []
    for a in doc.find_all("a", href=True, limit=MAX_LINKS):
        href = a.get("href") or ""
        if isinstance(href, list):
            href = " ".join(href)
        links.append(
            ScrapeLink(
                text=clean_text(a.get_text()) or "",
                href=to_absolute(href, base_url),
            )
        )
    return links


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page(html: str, base_url: str, doc: Optional[BeautifulSoup] = None) -> GenericScrapeResult:
    """Extract title, description, headings and links from *html*.

    Missing elements yield ``None`` or empty lists; this never raises on bad
    markup.  *doc* may be passed to reuse an already-parsed document.
    """
    doc = doc if doc is not None else parse_html(html)
    return GenericScrapeResult(
        url=base_url,
        title=_TITLE.locate(doc),
        description=_DESCRIPTION.locate(doc),
        headings=_extract_headings(doc),
        links=_extract_links(doc, base_url),
    )
