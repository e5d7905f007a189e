"""Field locators: ordered fallback chains of extraction strategies.

A :class:`FieldLocator` tries each strategy in turn against a parsed
document and returns the first value its normaliser accepts.  Strategies are
small callables, so a selector that breaks when the target markup changes can
be swapped without touching the rest of the chain.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional, Sequence

from bs4 import BeautifulSoup, Comment, Tag

Strategy = Callable[[BeautifulSoup], Optional[str]]
Normaliser = Callable[[Optional[str]], Optional[str]]

_WS_RE = re.compile(r"\s+")
_NON_VISIBLE = {"script", "style", "noscript", "template", "head", "title"}


def clean_text(value: Optional[str]) -> Optional[str]:
    """Collapse whitespace runs, trim, and map empty strings to ``None``."""
    text = _WS_RE.sub(" ", value or "").strip()
    return text or None


def _first(doc: BeautifulSoup, css: str) -> Optional[Tag]:
    return doc.select_one(css)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class SelectorText:
    """Text content of the first element matching *css*."""

    def __init__(self, css: str) -> None:
        self.css = css

    def __call__(self, doc: BeautifulSoup) -> Optional[str]:
        el = _first(doc, self.css)
        return clean_text(el.get_text()) if el is not None else None

    def __repr__(self) -> str:
        return f"SelectorText({self.css!r})"


class SelectorAttr:
    """An attribute of the first element matching *css*."""

    def __init__(self, css: str, attr: str) -> None:
        self.css = css
        self.attr = attr

    def __call__(self, doc: BeautifulSoup) -> Optional[str]:
        el = _first(doc, self.css)
        if el is None:
            return None
        value = el.get(self.attr)
        if isinstance(value, list):
            value = " ".join(value)
        return clean_text(value)

    def __repr__(self) -> str:
        return f"SelectorAttr({self.css!r}, {self.attr!r})"


class VisibleText:
    """Visible text of the whole document (scripts and styles excluded)."""

    def __call__(self, doc: BeautifulSoup) -> Optional[str]:
        root = doc.body or doc
        parts = [
            s for s in root.find_all(string=True)
            if not isinstance(s, Comment)
            and s.parent is not None
            and s.parent.name not in _NON_VISIBLE
        ]
        return clean_text(" ".join(parts))

    def __repr__(self) -> str:
        return "VisibleText()"


class JsonLdBlocks:
    """Raw contents of every ``application/ld+json`` script, newline-joined."""

    def __call__(self, doc: BeautifulSoup) -> Optional[str]:
        blocks = [
            el.decode_contents()
            for el in doc.select('script[type="application/ld+json"]')
        ]
        joined = "\n".join(b for b in blocks if b.strip())
        return joined or None

    def __repr__(self) -> str:
        return "JsonLdBlocks()"


class Pattern:
    """Run *inner* and return the first *regex* match in its output.

    If the regex has a capture group, the first group is returned instead of
    the whole match.
    """

    def __init__(self, inner: Strategy, regex: re.Pattern[str]) -> None:
        self.inner = inner
        self.regex = regex

    def __call__(self, doc: BeautifulSoup) -> Optional[str]:
        text = self.inner(doc)
        if not text:
            return None
        m = self.regex.search(text)
        if not m:
            return None
        return m.group(1) if self.regex.groups else m.group(0)

    def __repr__(self) -> str:
        return f"Pattern({self.inner!r}, {self.regex.pattern!r})"


def json_ld_field(key: str) -> Pattern:
    """Strategy pulling ``"<key>": "<value>"`` out of JSON-LD blocks."""
    regex = re.compile(rf'"{re.escape(key)}"\s*:\s*"([^"]+)"', re.IGNORECASE)
    return Pattern(JsonLdBlocks(), regex)


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------

class FieldLocator:
    """Prioritised chain of strategies for one output field."""

    def __init__(
        self,
        name: str,
        strategies: Sequence[Strategy],
        normalise: Normaliser = clean_text,
    ) -> None:
        self.name = name
        self.strategies = list(strategies)
        self.normalise = normalise

    def candidates(self, doc: BeautifulSoup) -> Iterable[Optional[str]]:
        """Yield each strategy's raw value, lazily and in priority order."""
        for strategy in self.strategies:
            yield strategy(doc)

    def locate(self, doc: BeautifulSoup) -> Optional[str]:
        for raw in self.candidates(doc):
            value = self.normalise(raw)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:
        return f"FieldLocator({self.name!r}, {self.strategies!r})"
