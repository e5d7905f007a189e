"""Listing-link discovery on search-result pages, plus URL helpers."""

from __future__ import annotations

import re
from typing import Set
from urllib.parse import urljoin, urlsplit, urlunsplit

from fusion_scraper.scraper.extractor import parse_html

_LISTING_MARKER_RE = re.compile(r"/v-")
_LISTING_ID_RE = re.compile(r"/[0-9]{7,}$")
_PAGE_PARAM_RE = re.compile(r"(^|&)page=[^&]*")


def _is_listing_href(href: str) -> bool:
    return bool(_LISTING_MARKER_RE.search(href) and _LISTING_ID_RE.search(href))


def discover_listing_links(search_html: str, base_url: str) -> Set[str]:
    """Return absolute URLs of listing pages linked from *search_html*.

    An anchor qualifies when its href contains ``/v-`` and ends in a numeric
    id of at least seven digits.  Hrefs that cannot be resolved are dropped.
    """
    links: Set[str] = set()
    for a in parse_html(search_html).find_all("a", href=True):
        href = a.get("href")
        if not isinstance(href, str) or not _is_listing_href(href.strip()):
            continue
        try:
            links.add(urljoin(base_url, href.strip()))
        except ValueError:
            continue
    return links


def is_listing_url(url: str) -> bool:
    """Return ``True`` if *url* already points at a single listing."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return bool(_LISTING_MARKER_RE.search(path) or _LISTING_ID_RE.search(path))


def with_page(url: str, page: int) -> str:
    """Set (or overwrite) the ``page`` query parameter, keeping the rest intact."""
    parts = urlsplit(url)
    query = parts.query
    if _PAGE_PARAM_RE.search(query):
        query = _PAGE_PARAM_RE.sub(lambda m: f"{m.group(1)}page={page}", query, count=1)
    else:
        query = f"{query}&page={page}" if query else f"page={page}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
