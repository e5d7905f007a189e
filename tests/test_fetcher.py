"""Tests for the HTML fetchers.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``StaticFetcher`` tests.
- Playwright is *not* launched; the reveal-click loop of ``RenderingFetcher``
  is exercised against a fake page object.
- Deadline tests talk to a local socket server that trickles its headers.
"""

from __future__ import annotations

import socket
import threading
import time

import httpx
import pytest
import respx

from fusion_scraper.scraper.errors import (
    FetchCancelled,
    FetchTimeout,
    InvalidInput,
    NetworkError,
    UpstreamStatus,
)
from fusion_scraper.scraper.fetcher import (
    FetchContext,
    RenderingFetcher,
    StaticFetcher,
    ensure_http_url,
    get_fetcher,
)

_HTML = "<html><head><title>Hello</title></head><body><p>hi</p></body></html>"


# ---------------------------------------------------------------------------
# URL validation
# ---------------------------------------------------------------------------

class TestEnsureHttpUrl:
    def test_accepts_http_and_https(self) -> None:
        assert ensure_http_url("https://example.com/a") == "https://example.com/a"
        assert ensure_http_url("  HTTP://example.com ") == "HTTP://example.com"

    @pytest.mark.parametrize("url", [None, "", "example.com", "ftp://example.com", "https://"])
    def test_rejects_non_http(self, url) -> None:
        with pytest.raises(InvalidInput):
            ensure_http_url(url)


# ---------------------------------------------------------------------------
# FetchContext
# ---------------------------------------------------------------------------

class TestFetchContext:
    def test_policy_budget_comes_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr("fusion_scraper.config.settings.scrape_timeout", 7.0)
        ctx = FetchContext.for_policy("scrape")
        assert ctx.timeout == 7.0
        assert 0 < ctx.remaining() <= 7.0

    def test_unknown_policy_raises(self) -> None:
        with pytest.raises(ValueError):
            FetchContext.for_policy("forever")

    def test_expired_context_raises_timeout(self) -> None:
        with pytest.raises(FetchTimeout):
            FetchContext(0).check("https://example.com")

    def test_cancel(self) -> None:
        ctx = FetchContext(30)
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(FetchCancelled):
            ctx.check("https://example.com")


# ---------------------------------------------------------------------------
# StaticFetcher
# ---------------------------------------------------------------------------

class TestStaticFetcher:
    def test_successful_fetch_returns_markup(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/article").mock(
                return_value=httpx.Response(200, text=_HTML)
            )
            html = StaticFetcher().fetch("https://example.com/article")

        assert html == _HTML
        assert route.calls.last.request.headers["User-Agent"] == "FusionBrowserBot/1.0"

    def test_follows_redirects(self) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(301, headers={"Location": "https://example.com/new"})
            )
            respx.get("https://example.com/new").mock(return_value=httpx.Response(200, text=_HTML))
            assert StaticFetcher().fetch("https://example.com/old") == _HTML

    def test_non_2xx_raises_upstream_status(self) -> None:
        with respx.mock:
            respx.get("https://example.com/missing").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with pytest.raises(UpstreamStatus) as info:
                StaticFetcher().fetch("https://example.com/missing")

        assert info.value.status_code == 404
        assert info.value.url == "https://example.com/missing"

    def test_httpx_timeout_maps_to_fetch_timeout(self) -> None:
        with respx.mock:
            respx.get("https://slow.example.com/").mock(side_effect=httpx.ReadTimeout("slow"))
            with pytest.raises(FetchTimeout):
                StaticFetcher().fetch("https://slow.example.com/")

    def test_connection_error_maps_to_network_error(self) -> None:
        with respx.mock:
            respx.get("https://down.example.com/").mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(NetworkError):
                StaticFetcher().fetch("https://down.example.com/")

    def test_invalid_url_is_rejected_before_any_request(self) -> None:
        with respx.mock(assert_all_called=False) as mock:
            with pytest.raises(InvalidInput):
                StaticFetcher().fetch("not-a-url")
            assert mock.calls.call_count == 0

    def test_expired_deadline_aborts_without_request(self) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get("https://example.com/").mock(return_value=httpx.Response(200, text=_HTML))
            with pytest.raises(FetchTimeout):
                StaticFetcher().fetch("https://example.com/", FetchContext(0))
        assert not route.called

    def test_cancelled_context_aborts(self) -> None:
        ctx = FetchContext(15)
        ctx.cancel()
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get("https://example.com/").mock(return_value=httpx.Response(200, text=_HTML))
            with pytest.raises(FetchCancelled):
                StaticFetcher().fetch("https://example.com/", ctx)
        assert not route.called

    def test_custom_user_agent(self) -> None:
        with respx.mock as mock:
            route = mock.get("https://example.com/").mock(return_value=httpx.Response(200, text=_HTML))
            StaticFetcher(user_agent="TestBot/2.0").fetch("https://example.com/")
        assert route.calls.last.request.headers["User-Agent"] == "TestBot/2.0"


class _TrickleServer:
    """Local HTTP server that sends its response headers one byte at a time."""

    def __init__(self, delay: float = 0.2) -> None:
        self.delay = delay
        self._stop = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self.url = f"http://127.0.0.1:{self._sock.getsockname()[1]}/"
        threading.Thread(target=self._serve, daemon=True).start()

    def _serve(self) -> None:
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return
        with conn:
            for byte in b"HTTP/1.1 200 OK\r\nX-Padding: " + b"x" * 100:
                if self._stop.is_set():
                    return
                try:
                    conn.sendall(bytes([byte]))
                except OSError:
                    return
                time.sleep(self.delay)

    def close(self) -> None:
        self._stop.set()
        self._sock.close()


@pytest.fixture()
def trickle_server():
    server = _TrickleServer()
    yield server
    server.close()


class TestStaticFetcherDeadline:
    def test_slow_headers_hit_the_total_deadline(self, trickle_server) -> None:
        start = time.monotonic()
        with pytest.raises(FetchTimeout):
            StaticFetcher().fetch(trickle_server.url, FetchContext(1.0))
        assert time.monotonic() - start < 2.0

    def test_cancel_aborts_an_in_flight_request(self, trickle_server) -> None:
        ctx = FetchContext(30)
        threading.Timer(0.5, ctx.cancel).start()
        start = time.monotonic()
        with pytest.raises(FetchCancelled):
            StaticFetcher().fetch(trickle_server.url, ctx)
        assert time.monotonic() - start < 2.0


# ---------------------------------------------------------------------------
# RenderingFetcher reveal loop
# ---------------------------------------------------------------------------

class _FakeClickError(Exception):
    pass


class _FakeLocator:
    def __init__(self, present: bool, fails: bool = False) -> None:
        self.present = present
        self.fails = fails
        self.clicks = 0

    @property
    def first(self) -> "_FakeLocator":
        return self

    def count(self) -> int:
        return 1 if self.present else 0

    def click(self, timeout: int) -> None:
        self.clicks += 1
        if self.fails:
            raise _FakeClickError("detached")


class _FakePage:
    def __init__(self, locators: dict) -> None:
        self.locators = locators
        self.waits: list[int] = []

    def locator(self, selector: str) -> _FakeLocator:
        return self.locators.get(selector, _FakeLocator(present=False))

    def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)


class TestRenderingFetcherReveal:
    def test_clicks_present_controls_and_tolerates_failures(self) -> None:
        ok = _FakeLocator(present=True)
        broken = _FakeLocator(present=True, fails=True)
        page = _FakePage({"button.a": ok, "button.b": broken})
        fetcher = RenderingFetcher(reveal_selectors=["button.a", "button.missing", "button.b"])

        fetcher._reveal(page, FetchContext(30), "https://www.kijiji.ca/v-x/1234567", _FakeClickError)

        assert ok.clicks == 1
        assert broken.clicks == 1
        assert page.waits == [800]

    def test_reveal_stops_when_cancelled(self) -> None:
        ctx = FetchContext(30)
        ctx.cancel()
        fetcher = RenderingFetcher(reveal_selectors=["button.a"])
        with pytest.raises(FetchCancelled):
            fetcher._reveal(_FakePage({}), ctx, "https://www.kijiji.ca/", _FakeClickError)


# ---------------------------------------------------------------------------
# Strategy selection
# ---------------------------------------------------------------------------

class TestGetFetcher:
    def test_static(self) -> None:
        assert isinstance(get_fetcher("static"), StaticFetcher)

    def test_rendering(self) -> None:
        fetcher = get_fetcher("rendering")
        assert isinstance(fetcher, RenderingFetcher)
        assert fetcher.policy == "render"

    def test_default_comes_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr("fusion_scraper.config.settings.fetch_strategy", "rendering")
        assert isinstance(get_fetcher(), RenderingFetcher)

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            get_fetcher("carrier-pigeon")
