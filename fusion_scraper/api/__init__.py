"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from fusion_scraper.api import app

    uvicorn fusion_scraper.api:app --reload
"""

from fusion_scraper.api.app import app

__all__ = ["app"]
