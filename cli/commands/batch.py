"""Batch command: scrape a list of URLs through a running API server."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import httpx
import typer

from cli.batch import run_batch
from fusion_scraper.config import settings


def batch(
    source: str = typer.Argument("-", help="File with one URL per line ('-' reads stdin)."),
    api: str = typer.Option(settings.api_base_url, "--api", help="Base URL of the scrape API."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file."),
    timeout: float = typer.Option(60.0, help="Per-request timeout in seconds."),
) -> None:
    """Scrape each URL line and print ``url|phone|model-or-title|price|address`` rows."""
    if source == "-":
        text = sys.stdin.read()
    else:
        path = Path(source)
        if not path.exists():
            typer.echo(f"[batch] File not found: {source}")
            raise typer.Exit(code=1)
        text = path.read_text(encoding="utf-8")

    with httpx.Client(base_url=api, timeout=timeout) as client:
        rows = run_batch(text, client)

    if output is not None:
        output.write_text("\n".join(rows) + ("\n" if rows else ""), encoding="utf-8")
        typer.echo(f"[batch] Wrote {len(rows)} row(s) to {output}")
        return
    for row in rows:
        typer.echo(row)
