"""HTML fetchers: a static httpx fetcher and a Playwright rendering fetcher.

Both implement :class:`Fetcher` so callers (extractors, the crawler, the API)
never branch on how the markup was obtained.  Every fetch is bounded by a
:class:`FetchContext`, which carries the deadline for the call and a
cancellation flag the caller can trip from another thread.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx

from fusion_scraper.config import settings
from fusion_scraper.scraper.errors import (
    FetchCancelled,
    FetchTimeout,
    InvalidInput,
    NetworkError,
    UpstreamStatus,
)

logger = logging.getLogger(__name__)

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_POLL_INTERVAL = 0.05


def ensure_http_url(url: str | None) -> str:
    """Return *url* stripped, or raise :class:`InvalidInput` if it is not http(s)."""
    candidate = (url or "").strip()
    if not _HTTP_URL_RE.match(candidate):
        raise InvalidInput("Valid http(s) URL required")
    try:
        host = httpx.URL(candidate).host
    except httpx.InvalidURL:
        host = ""
    if not host:
        raise InvalidInput("Valid http(s) URL required")
    return candidate


# ---------------------------------------------------------------------------
# Cancellation / deadline
# ---------------------------------------------------------------------------

class FetchContext:
    """Per-call cancellation token with a hard deadline.

    The clock starts when the context is created.  ``check()`` raises once the
    budget is spent or ``cancel()`` has been called.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout
        self._cancelled = threading.Event()

    @classmethod
    def for_policy(cls, policy: str) -> "FetchContext":
        """Build a context from the configured budget for *policy*."""
        return cls(settings.timeout_for(policy))

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float:
        """Seconds left before the deadline (never negative)."""
        return max(0.0, self.deadline - time.monotonic())

    def check(self, url: str) -> None:
        if self.cancelled:
            raise FetchCancelled(url, "Fetch cancelled")
        if self.remaining() <= 0:
            raise FetchTimeout(url, f"Fetch timed out after {self.timeout:g}s")

    def wait(self, done: threading.Event, url: str) -> None:
        """Block until *done* is set, raising as soon as the budget runs out or
        the context is cancelled."""
        while not done.wait(min(self.remaining(), _POLL_INTERVAL)):
            self.check(url)


# ---------------------------------------------------------------------------
# Fetcher interface
# ---------------------------------------------------------------------------

class Fetcher(ABC):
    """Retrieves the HTML markup of a URL."""

    #: Timeout policy used when the caller does not supply a context.
    policy = "scrape"

    @abstractmethod
    def fetch(self, url: str, ctx: Optional[FetchContext] = None) -> str:
        """Return the markup of *url*.

        Raises:
            InvalidInput: *url* is not an absolute http(s) URL.
            UpstreamStatus: The server answered with a non-2xx status.
            FetchTimeout: The context's deadline passed.
            FetchCancelled: The context was cancelled.
            NetworkError: DNS, TLS or connection failure.
        """

    def _context(self, ctx: Optional[FetchContext]) -> FetchContext:
        return ctx if ctx is not None else FetchContext.for_policy(self.policy)


class StaticFetcher(Fetcher):
    """Plain HTTP GET with httpx under a hard total deadline.

    The request runs on a worker thread while the caller waits on the
    :class:`FetchContext`.  When the budget runs out or the context is
    cancelled, the caller stops waiting and closes the client, whatever stage
    the request is in (connect, headers or body).
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.user_agent = user_agent or settings.user_agent
        self._transport = transport

    def fetch(self, url: str, ctx: Optional[FetchContext] = None) -> str:
        url = ensure_http_url(url)
        ctx = self._context(ctx)
        ctx.check(url)
        logger.debug("GET %s (budget %.1fs)", url, ctx.remaining())

        client = httpx.Client(
            headers={"User-Agent": self.user_agent},
            timeout=max(ctx.remaining(), 0.001),
            follow_redirects=True,
            transport=self._transport,
        )
        done = threading.Event()
        outcome: dict = {}

        def run() -> None:
            try:
                outcome["html"] = self._get(client, url, ctx)
            except Exception as exc:  # re-raised in the calling thread
                outcome["error"] = exc
            finally:
                done.set()

        threading.Thread(target=run, name=f"fetch {url}", daemon=True).start()
        try:
            ctx.wait(done, url)
        finally:
            # On timeout or cancel this aborts the request still in flight.
            client.close()

        if "error" in outcome:
            raise outcome["error"]
        return outcome["html"]

    def _get(self, client: httpx.Client, url: str, ctx: FetchContext) -> str:
        try:
            with client.stream("GET", url) as response:
                if not response.is_success:
                    raise UpstreamStatus(url, response.status_code)
                parts: list[str] = []
                for chunk in response.iter_text():
                    ctx.check(url)
                    parts.append(chunk)
        except httpx.TimeoutException as exc:
            raise FetchTimeout(url, f"Fetch timed out after {ctx.timeout:g}s") from exc
        except httpx.InvalidURL as exc:
            raise InvalidInput(f"Invalid URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(url, f"Network error: {exc}") from exc

        logger.debug("GET %s -> %d", url, response.status_code)
        return "".join(parts)


class RenderingFetcher(Fetcher):
    """Render the page in headless Chromium and return the live DOM.

    Optional *reveal_selectors* are clicked (best effort) after navigation so
    that click-to-reveal content, such as a hidden phone number, is present in
    the returned markup.  Playwright is imported lazily so nothing else in the
    package needs a browser installed.
    """

    policy = "render"

    def __init__(
        self,
        reveal_selectors: Sequence[str] = (),
        user_agent: Optional[str] = None,
        click_timeout_ms: int = 3000,
        settle_ms: int = 800,
    ) -> None:
        self.reveal_selectors = list(reveal_selectors)
        self.user_agent = user_agent or settings.render_user_agent
        self.click_timeout_ms = click_timeout_ms
        self.settle_ms = settle_ms

    def fetch(self, url: str, ctx: Optional[FetchContext] = None) -> str:
        from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415
        from playwright.sync_api import TimeoutError as PlaywrightTimeout  # noqa: PLC0415
        from playwright.sync_api import sync_playwright  # noqa: PLC0415

        url = ensure_http_url(url)
        ctx = self._context(ctx)
        ctx.check(url)
        logger.debug("Rendering %s (budget %.1fs)", url, ctx.remaining())

        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(headless=True)
                try:
                    context = browser.new_context(user_agent=self.user_agent)
                    page = context.new_page()
                    response = page.goto(
                        url,
                        timeout=int(ctx.remaining() * 1000),
                        wait_until="domcontentloaded",
                    )
                    if response is not None and not response.ok:
                        raise UpstreamStatus(url, response.status)
                    self._reveal(page, ctx, url, PlaywrightError)
                    ctx.check(url)
                    return page.content()
                finally:
                    browser.close()
        except PlaywrightTimeout as exc:
            raise FetchTimeout(url, f"Render timed out after {ctx.timeout:g}s") from exc
        except PlaywrightError as exc:
            raise NetworkError(url, f"Render failed: {exc}") from exc

    def _reveal(self, page, ctx: FetchContext, url: str, error_type: type) -> None:  # type: ignore[no-untyped-def]
        for selector in self.reveal_selectors:
            ctx.check(url)
            button = page.locator(selector).first
            if not button.count():
                continue
            try:
                button.click(timeout=self.click_timeout_ms)
                page.wait_for_timeout(self.settle_ms)
            except error_type as exc:
                logger.debug("Reveal click on %r failed: %s", selector, exc)


def get_fetcher(strategy: Optional[str] = None) -> Fetcher:
    """Return the fetcher configured by ``FETCH_STRATEGY`` (or *strategy*)."""
    name = (strategy or settings.fetch_strategy).strip().lower()
    if name == "static":
        return StaticFetcher()
    if name == "rendering":
        return RenderingFetcher()
    raise ValueError(f"Unknown fetch strategy: {name!r}. Use: static | rendering")
