"""
Page loading helpers for the headless document.

This module turns the usual page sources into a HeadlessDocument:

- Raw HTML strings (tests, fixtures).
- HTML files on disk.
- URLs fetched over HTTP with `requests`.
- A live "web driver" object (Selenium / Playwright / custom), read
  through its `page_source` and `current_url`.

It does NOT import Selenium or Playwright. Any injected driver only has
to follow the small duck-typed protocol below.

Layout is not something a static page carries, so every loader accepts
an optional `{selector: Rect}` layout map; without it only elements
carrying `data-rect` attributes have a bounding box.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Tuple, Union

import requests

from common.models.geometry import Rect
from .headless_document import DEFAULT_VIEWPORT_SIZE, HeadlessDocument

LOG = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Driver protocol
# --------------------------------------------------------------------------- #


class WebDriverLike(Protocol):
    """
    Minimal protocol expected from a browser automation driver.

    Typical Selenium-like objects will satisfy this.
    """

    @property
    def page_source(self) -> str:
        """Return the current page HTML as a string."""
        ...

    @property
    def current_url(self) -> str:
        """Return the current page URL."""
        ...


# --------------------------------------------------------------------------- #
# Loader config
# --------------------------------------------------------------------------- #


@dataclass
class PageLoaderConfig:
    """
    Configuration for PageLoader.

    Attributes:
        viewport_size:
            (width, height) of the simulated window.
        timeout:
            HTTP timeout in seconds for `from_url`.
        headers:
            HTTP headers sent by `from_url`.
    """

    viewport_size: Tuple[float, float] = DEFAULT_VIEWPORT_SIZE
    timeout: float = 10.0
    headers: Dict[str, str] = field(
        default_factory=lambda: {"Accept": "text/html,application/xhtml+xml"}
    )


# --------------------------------------------------------------------------- #
# Loader
# --------------------------------------------------------------------------- #


@dataclass
class PageLoader:
    """
    Build HeadlessDocument instances from strings, files, URLs or drivers.

    Typical usage:

        loader = PageLoader()
        doc = loader.from_url("https://example.com/login")
    """

    config: PageLoaderConfig = field(default_factory=PageLoaderConfig)
    session: Optional[requests.Session] = None

    def from_html(
        self,
        html: str,
        *,
        url: str = "about:blank",
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> HeadlessDocument:
        return HeadlessDocument(
            html,
            url=url,
            viewport_size=self.config.viewport_size,
            layout=layout,
        )

    def from_file(
        self,
        path: Union[str, Path],
        *,
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> HeadlessDocument:
        p = Path(path)
        html = p.read_text(encoding="utf-8")
        return self.from_html(html, url=p.resolve().as_uri(), layout=layout)

    def from_url(
        self,
        url: str,
        *,
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> HeadlessDocument:
        """
        Fetch `url` and parse the response body.

        Raises:
            requests.RequestException: on transport errors or HTTP >= 400.
        """
        http = self.session or requests
        LOG.info("Fetching page url=%s", url)
        resp = http.get(url, headers=self.config.headers, timeout=self.config.timeout)
        resp.raise_for_status()
        # Redirects are followed; report the final location.
        return self.from_html(resp.text, url=resp.url or url, layout=layout)

    def from_driver(
        self,
        driver: WebDriverLike,
        *,
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> HeadlessDocument:
        """
        Snapshot the page currently shown by `driver`.

        Raises:
            RuntimeError: if the driver does not expose `page_source`.
        """
        html = getattr(driver, "page_source", None)
        if not html:
            raise RuntimeError("WebDriverLike object does not expose 'page_source'")
        url = getattr(driver, "current_url", None) or "about:blank"
        return self.from_html(html, url=url, layout=layout)

    def load(
        self,
        source: str,
        *,
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> HeadlessDocument:
        """Load from a URL when `source` looks like one, else from a file path."""
        if source.startswith(("http://", "https://")):
            return self.from_url(source, layout=layout)
        return self.from_file(source, layout=layout)


__all__ = [
    "WebDriverLike",
    "PageLoaderConfig",
    "PageLoader",
]
