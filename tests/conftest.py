"""Shared test helpers: an in-memory fetcher and listing-page markup builders."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Union

from fusion_scraper.scraper.errors import UpstreamStatus
from fusion_scraper.scraper.fetcher import FetchContext, Fetcher


class DictFetcher(Fetcher):
    """Serves canned markup by URL; an ``Exception`` value is raised instead.

    Unknown URLs return *default* when given, otherwise fail with a 404.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, Union[str, Exception]]] = None,
        default: Optional[str] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.default = default
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, url: str, ctx: Optional[FetchContext] = None) -> str:
        with self._lock:
            self.calls.append(url)
        value = self.pages.get(url, self.default)
        if value is None:
            raise UpstreamStatus(url, 404)
        if isinstance(value, Exception):
            raise value
        return value


def listing_html(
    model: str = "2015 Honda Civic",
    price: str = "$12,500",
    address: str = "123 Queen St W, Toronto, ON",
    phone: str = "",
    description: str = "Runs great, winter tires included.",
    extra: str = "",
) -> str:
    """Markup shaped like a real listing page, matching the structural selectors."""
    return f"""\
<!DOCTYPE html>
<html>
<head><title>{model} | Cars | Toronto</title></head>
<body>
<div id="base-layout-main-wrapper">
  <div class="sc-81698752-0 bNPVmS">
    <div class="sc-81698752-2 ldPhHG">
      <div class="breadcrumbs">Home &gt; Cars</div>
      <div>
        <div class="sc-1f51e79f-0 QJUhf"><h1>  {model}  </h1></div>
        <div class="sc-1f51e79f-0 hVjQcj"><div><div><div><p>{price}</p></div></div></div></div>
        <div class="sc-1f51e79f-0 sc-31977afe-0 sc-ea528b23-1 dWsjGh kgrFRj kqdDwo">
          <div class="sc-69f589a8-0 fqzJRP">
            <div class="sc-ea528b23-0 bmKHcm"><div>{description}</div></div>
          </div>
        </div>
      </div>
      <section>
        <div class="sc-30b4d0e2-2 jFnPsI"><div><div>
          <div class="sc-eb45309b-0 bEMmoW"><div><div><button>{address}</button></div></div></div>
        </div></div></div>
        <div class="sc-30b4d0e2-3 iFFiBy"><div>
          <div class="sc-eb45309b-0 vAthl sc-30b4d0e2-6 iqmXm">{phone}</div>
        </div></div>
      </section>
    </div>
  </div>
</div>
{extra}
</body>
</html>
"""


def search_html(*hrefs: str) -> str:
    anchors = "\n".join(f'<a href="{h}">Listing</a>' for h in hrefs)
    return f"<html><body><main>{anchors}</main></body></html>"
