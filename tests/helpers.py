from __future__ import annotations

import asyncio
from typing import List, Optional

from scout.drivers.web.headless_document import HeadlessDocument


PAGE_URL = "https://shop.example.com/account/login"


def make_document(body: str, *, title: str = "Test page", **kwargs) -> HeadlessDocument:
    html = f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    kwargs.setdefault("url", PAGE_URL)
    return HeadlessDocument(html, **kwargs)


def dark_voir_nodes(doc: HeadlessDocument) -> list:
    return [
        el
        for el in doc.query_selector_all("*")
        if any(c.startswith("dark-voir") for c in el.class_list)
    ]


def message_texts(doc: HeadlessDocument) -> List[str]:
    return [el.text_content for el in doc.query_selector_all(".dark-voir-message")]


class RecordingSleep:
    """Fake sleep: records the requested seconds and yields once."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class GatedSleep:
    """
    Fake sleep that blocks until `gate` is set (create the gate inside the loop).

    With `only`, just sleeps of that length block; the rest yield once.
    """

    def __init__(self, only: Optional[float] = None) -> None:
        self.calls: List[float] = []
        self.gate: Optional[asyncio.Event] = None
        self.only = only

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.only is not None and seconds != self.only:
            await asyncio.sleep(0)
            return
        assert self.gate is not None
        await self.gate.wait()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
