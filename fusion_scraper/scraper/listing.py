"""Listing extraction for classified-ad pages on the target domain.

The listing pages use generated class names that change between deploys, so
each field is located through a :class:`FieldLocator`: a structural selector
first, then semantic fallbacks.  When the selectors drift, fields degrade to
``None`` (or to a fallback source, for the phone) instead of failing.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from fusion_scraper.config import settings
from fusion_scraper.scraper.extractor import parse_html
from fusion_scraper.scraper.locators import (
    FieldLocator,
    Pattern,
    SelectorAttr,
    SelectorText,
    VisibleText,
    json_ld_field,
)
from fusion_scraper.scraper.models import ListingScrapeResult

# ---------------------------------------------------------------------------
# Structural selectors for known page regions
# ---------------------------------------------------------------------------
_MAIN = "#base-layout-main-wrapper > div.sc-81698752-0.bNPVmS > div.sc-81698752-2.ldPhHG"

SEL_MODEL = f"{_MAIN} > div:nth-child(2) > div.sc-1f51e79f-0.QJUhf > h1"
SEL_PRICE = f"{_MAIN} > div:nth-child(2) > div.sc-1f51e79f-0.hVjQcj > div > div > div > p"
SEL_ADDRESS = (
    f"{_MAIN} > section > div.sc-30b4d0e2-2.jFnPsI > div > div"
    " > div.sc-eb45309b-0.bEMmoW > div > div > button"
)
SEL_PHONE = f"{_MAIN} > section > div.sc-30b4d0e2-3.iFFiBy > div > div.sc-eb45309b-0.vAthl.sc-30b4d0e2-6.iqmXm"
SEL_DESCRIPTION = (
    f"{_MAIN} > div:nth-child(2)"
    " > div.sc-1f51e79f-0.sc-31977afe-0.sc-ea528b23-1.dWsjGh.kgrFRj.kqdDwo"
    " > div.sc-69f589a8-0.fqzJRP > div.sc-ea528b23-0.bmKHcm > div"
)
SEL_PHONE_ATTR = "*[data-phone], *[data-testid*='phone']"
SEL_TEL_LINK = "a[href^='tel']"

#: Controls clicked by the rendering fetcher to reveal a hidden phone number.
REVEAL_PHONE_SELECTORS = (
    "button:has-text('phone')",
    "button:has-text('Phone')",
    "button:has-text('number')",
    "button[data-testid*='phone']",
    "[role='button']:has-text('phone')",
)

# North-American number: optional +1/1, optionally parenthesised area code,
# then 3 + 4 digits; separators are space, dot or hyphen.
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?(?:\(?\d{3}\)?[-.\s]?)\d{3}[-.\s]?\d{4}")

MIN_PHONE_DIGITS = 7


def normalise_phone(value: Optional[str]) -> Optional[str]:
    """Keep digits and a leading ``+``; ``None`` if fewer than 7 digits remain.

    >>> normalise_phone("(416) 555-0199")
    '4165550199'
    """
    kept = re.sub(r"[^\d+]", "", value or "")
    digits = kept.replace("+", "")
    if len(digits) < MIN_PHONE_DIGITS:
        return None
    return f"+{digits}" if kept.startswith("+") else digits


# ---------------------------------------------------------------------------
# Field locators
# ---------------------------------------------------------------------------

MODEL = FieldLocator("model", [SelectorText(SEL_MODEL)])
PRICE = FieldLocator("price", [SelectorText(SEL_PRICE)])
ADDRESS = FieldLocator("address", [SelectorText(SEL_ADDRESS)])

PHONE = FieldLocator(
    "phone",
    [
        SelectorText(SEL_PHONE),
        Pattern(SelectorText(SEL_DESCRIPTION), PHONE_RE),
        Pattern(SelectorText(SEL_PHONE_ATTR), PHONE_RE),
        Pattern(SelectorAttr(SEL_TEL_LINK, "href"), PHONE_RE),
        Pattern(SelectorText(SEL_TEL_LINK), PHONE_RE),
        Pattern(VisibleText(), PHONE_RE),
        json_ld_field("telephone"),
    ],
    normalise=normalise_phone,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def is_target_url(url: str, domain: Optional[str] = None) -> bool:
    """Return ``True`` if *url*'s host is the target domain or a subdomain of it."""
    domain = (domain or settings.target_domain).lower().lstrip(".")
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return host == domain or host.endswith("." + domain)


def extract_listing(html: str, url: str, doc: Optional[BeautifulSoup] = None) -> ListingScrapeResult:
    """Extract model, price, address and phone from a listing page.

    The caller is responsible for checking the URL with :func:`is_target_url`.
    Every field is independently ``None`` when it cannot be found.
    """
    doc = doc if doc is not None else parse_html(html)
    return ListingScrapeResult(
        url=url,
        model=MODEL.locate(doc),
        price=PRICE.locate(doc),
        address=ADDRESS.locate(doc),
        phone=PHONE.locate(doc),
    )
