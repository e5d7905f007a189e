"""Centralised settings for the Fusion scraper backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


_DEFAULT_RENDER_UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/118 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", "FusionBrowserBot/1.0")
    )
    render_user_agent: str = field(
        default_factory=lambda: os.environ.get("RENDER_USER_AGENT", _DEFAULT_RENDER_UA)
    )
    fetch_strategy: str = field(
        default_factory=lambda: os.environ.get("FETCH_STRATEGY", "static")
    )

    # ------------------------------------------------------------------
    # Timeout policies (seconds), one per endpoint class
    # ------------------------------------------------------------------
    scrape_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_TIMEOUT", "15.0"))
    )
    crawl_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_TIMEOUT", "15.0"))
    )
    render_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RENDER_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Listing site / crawl
    # ------------------------------------------------------------------
    target_domain: str = field(
        default_factory=lambda: os.environ.get("TARGET_DOMAIN", "kijiji.ca")
    )
    max_search_pages: int = field(
        default_factory=lambda: int(os.environ.get("MAX_SEARCH_PAGES", "20"))
    )
    crawl_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_CONCURRENCY", "3"))
    )

    # ------------------------------------------------------------------
    # API / CLI
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    ping_message: str = field(
        default_factory=lambda: os.environ.get("PING_MESSAGE", "ping")
    )
    api_base_url: str = field(
        default_factory=lambda: os.environ.get("API_BASE_URL", "http://127.0.0.1:8000")
    )

    def timeout_for(self, policy: str) -> float:
        """Return the fetch budget for an endpoint class (scrape | crawl | render)."""
        budgets = {
            "scrape": self.scrape_timeout,
            "crawl": self.crawl_timeout,
            "render": self.render_timeout,
        }
        try:
            return budgets[policy]
        except KeyError:
            raise ValueError(f"Unknown timeout policy: {policy!r}") from None


# Module-level singleton; import this everywhere:
#   from fusion_scraper.config import settings
settings = Settings()
