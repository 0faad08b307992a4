from __future__ import annotations

from pathlib import Path

import pytest
import requests

from common.models.geometry import Rect
from scout.drivers.web.page_loader import PageLoader, PageLoaderConfig


class FakeResponse:
    def __init__(self, text: str, url: str, status_code: int = 200) -> None:
        self.text = text
        self.url = url
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


class FakeDriver:
    page_source = "<html><head><title>Driven</title></head><body><p id='x'>hi</p></body></html>"
    current_url = "https://app.example.com/home"


def test_from_html_uses_configured_viewport() -> None:
    loader = PageLoader(PageLoaderConfig(viewport_size=(800, 600)))
    doc = loader.from_html("<p>x</p>", url="https://a.example/")
    viewport = doc.viewport()
    assert (viewport.width, viewport.height) == (800, 600)
    assert doc.url == "https://a.example/"


def test_from_file_with_layout(tmp_path: Path) -> None:
    page = tmp_path / "page.html"
    page.write_text('<button id="b">B</button>', encoding="utf-8")

    doc = PageLoader().load(str(page), layout={"#b": Rect(1, 2, 3, 4)})

    assert doc.url == page.resolve().as_uri()
    assert doc.query_selector("#b").bounding_rect() == Rect(1, 2, 3, 4)


def test_from_url_reports_final_location() -> None:
    session = FakeSession(FakeResponse("<title>Shop</title><p>hi</p>", "https://shop.example.com/final"))
    loader = PageLoader(PageLoaderConfig(timeout=3.0), session=session)

    doc = loader.load("http://shop.example.com/start")

    assert doc.url == "https://shop.example.com/final"
    url, kwargs = session.calls[0]
    assert url == "http://shop.example.com/start"
    assert kwargs["timeout"] == 3.0
    assert "Accept" in kwargs["headers"]


def test_from_url_raises_on_http_errors() -> None:
    session = FakeSession(FakeResponse("nope", "https://shop.example.com/404", status_code=404))
    with pytest.raises(requests.HTTPError):
        PageLoader(session=session).from_url("https://shop.example.com/404")


def test_from_driver() -> None:
    doc = PageLoader().from_driver(FakeDriver())
    assert doc.title == "Driven"
    assert doc.url == "https://app.example.com/home"
    assert doc.query_selector("#x") is not None

    with pytest.raises(RuntimeError):
        PageLoader().from_driver(object())
