"""Logging setup shared by the API and the CLI."""

from __future__ import annotations

import logging

from fusion_scraper.config import settings

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once from ``LOG_LEVEL`` (or *level*)."""
    name = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=_FORMAT)
    # httpx logs every request at INFO; keep it quiet unless debugging.
    if name != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
