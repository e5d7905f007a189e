"""Exception hierarchy for the scraper pipeline.

Missing fields in extracted data are *not* errors; they are reported as
``None`` / empty collections.  Only input validation and fetch failures raise.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for every error raised by :mod:`fusion_scraper.scraper`."""


class InvalidInput(ScrapeError):
    """Malformed or missing URL, or a URL outside the target domain."""


class FetchError(ScrapeError):
    """A page could not be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class UpstreamStatus(FetchError):
    """The target site answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"Fetch failed with status {status_code}")
        self.status_code = status_code


class FetchTimeout(FetchError):
    """The fetch exceeded its time budget and was aborted."""


class FetchCancelled(FetchError):
    """The caller cancelled the fetch before it completed."""


class NetworkError(FetchError):
    """DNS, TLS or connection-level failure."""
