"""Fusion scraper CLI — entry-point for all scraping operations.

Usage:
    python cli/main.py --help

Commands:
    scrape    → generic page extraction
    listing   → listing extraction (static or rendered)
    search    → multi-page listing crawl
    batch     → URL list through the HTTP API, one report row per URL
    serve     → run the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from fusion_scraper.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from cli.commands.batch import batch
from cli.rendering import to_json
from fusion_scraper.config import settings
from fusion_scraper.log import configure_logging
from fusion_scraper.scraper.errors import ScrapeError

app = typer.Typer(
    name="fusion-scraper",
    help="Fusion scraper CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# Scrape commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape."),
    strategy: Optional[str] = typer.Option(None, help="Fetch strategy: static | rendering."),
) -> None:
    """Scrape a page and print its title, description, headings and links."""
    from fusion_scraper.scraper import extract_page, get_fetcher
    from fusion_scraper.scraper.fetcher import FetchContext

    typer.echo(f"[scrape] Fetching {url!r} …", err=True)
    try:
        html = get_fetcher(strategy).fetch(url, FetchContext.for_policy("scrape"))
    except ScrapeError as exc:
        typer.echo(f"[scrape] Error: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(to_json(extract_page(html, url)))


@app.command("listing")
def listing(
    url: str = typer.Option(..., help="Listing URL on the target domain."),
    live: bool = typer.Option(False, "--live", help="Render in a headless browser and reveal the phone."),
) -> None:
    """Extract model, price, address and phone from a listing page."""
    from fusion_scraper.scraper import RenderingFetcher, StaticFetcher, extract_listing, is_target_url
    from fusion_scraper.scraper.fetcher import FetchContext
    from fusion_scraper.scraper.listing import REVEAL_PHONE_SELECTORS
    from fusion_scraper.scraper.live import scrape_listing_live

    if not is_target_url(url):
        typer.echo(f"[listing] Not a {settings.target_domain} URL: {url!r}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[listing] Fetching {url!r} {'(rendered) ' if live else ''}…", err=True)
    try:
        if live:
            renderer = RenderingFetcher(reveal_selectors=REVEAL_PHONE_SELECTORS)
            result = scrape_listing_live(url, renderer, StaticFetcher())
        else:
            html = StaticFetcher().fetch(url, FetchContext.for_policy("scrape"))
            result = extract_listing(html, url)
    except ScrapeError as exc:
        typer.echo(f"[listing] Error: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(to_json(result))


@app.command("search")
def search(
    url: str = typer.Option(..., help="Search-results URL (or a single listing URL)."),
    pages: int = typer.Option(1, help="Number of result pages to crawl (1-20)."),
    concurrency: Optional[int] = typer.Option(None, help="Parallel listing scrapes (default CRAWL_CONCURRENCY)."),
) -> None:
    """Crawl a paginated listing search and scrape every listing found."""
    from fusion_scraper.scraper import StaticFetcher, crawl_search, is_target_url

    if not is_target_url(url):
        typer.echo(f"[search] Not a {settings.target_domain} URL: {url!r}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[search] Crawling {url!r} ({pages} page(s)) …", err=True)
    try:
        result = crawl_search(url, pages, StaticFetcher(), concurrency=concurrency)
    except ScrapeError as exc:
        typer.echo(f"[search] Crawl aborted: {exc}", err=True)
        raise typer.Exit(1)
    typer.echo(f"[search] {result.total_links} link(s), {len(result.results)} scraped", err=True)
    typer.echo(to_json(result))


app.command("batch")(batch)


# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Auto-reload on code changes."),
) -> None:
    """Run the scrape API with uvicorn."""
    import uvicorn

    uvicorn.run("fusion_scraper.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
