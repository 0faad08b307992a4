from __future__ import annotations

from common.models.elements import Heading
from scout.core.page_structure import (
    PageStructureCache,
    accessibility_counters,
    build_page_context,
    detect_cart,
    detect_login,
)
from scout.core.relevance_engine import RelevanceEngine

from helpers import make_document


SHOP_PAGE = """
<nav><a href="/">Home</a><a href="/cart">Your cart</a></nav>
<h1>Welcome back</h1>
<h2> Sign in </h2>
<h4>Fine print</h4>
<form id="login-form">
  <label for="email">Email</label><input id="email" type="email">
  <input type="password">
  <input type="hidden" name="csrf">
  <input type="submit" value="Go">
  <button></button>
  <button aria-label="Close"></button>
  <button>Send</button>
</form>
<img src="a.png"><img src="b.png" alt="">
<div role="search"></div>
"""


def test_build_page_context_counts_and_flags() -> None:
    ctx = build_page_context(make_document(SHOP_PAGE, title="Shop"))

    assert ctx.url == "https://shop.example.com/account/login"
    assert ctx.title == "Shop"
    assert ctx.domain == "shop.example.com"
    assert (ctx.forms, ctx.links, ctx.buttons, ctx.inputs) == (1, 2, 3, 4)
    assert ctx.headings == [Heading("H1", "Welcome back"), Heading("H2", "Sign in")]
    assert ctx.has_login and ctx.has_search and ctx.has_cart and ctx.has_navigation


def test_accessibility_counters() -> None:
    counters = accessibility_counters(make_document(SHOP_PAGE))
    assert counters.images_without_alt == 1
    # Only the password field: email has a label, hidden/submit are exempt.
    assert counters.unlabeled_fields == 1
    assert counters.unnamed_buttons == 1
    assert counters.aria_labelled_elements == 1
    assert counters.to_dict()["imagesWithoutAlt"] == 1


def test_plain_page_has_no_flags() -> None:
    ctx = build_page_context(make_document("<p>Nothing here</p>"))
    assert not (ctx.has_login or ctx.has_search or ctx.has_cart or ctx.has_navigation)
    assert ctx.headings == []
    assert ctx.to_dict()["hasLogin"] is False


def test_login_and_cart_detected_from_ids_and_classes() -> None:
    assert detect_login(make_document('<div class="signin-panel"></div>'))
    assert detect_cart(make_document('<div id="mini-basket"></div>'))
    assert not detect_cart(make_document('<div class="basket"></div>'))


def test_cache_serves_within_ttl_and_recomputes_after(fake_clock) -> None:
    doc = make_document("<form></form>")
    cache = PageStructureCache(doc, ttl_s=5.0, clock=fake_clock)
    first = cache.get()
    assert first.forms == 1

    doc.append_to_body(doc.create_element("form"))
    fake_clock.advance(4.0)
    assert cache.get() is first

    fake_clock.advance(1.0)
    refreshed = cache.get()
    assert refreshed is not first
    assert refreshed.forms == 2


def test_engine_clear_cache_forces_recompute(fake_clock) -> None:
    doc = make_document("<form></form>")
    engine = RelevanceEngine(doc, clock=fake_clock)
    first = engine.get_page_structure()
    doc.append_to_body(doc.create_element("form"))

    assert engine.get_page_structure() is first
    engine.clear_cache()
    assert engine.get_page_structure().forms == 2


def test_analyze_bundles_page_context() -> None:
    engine = RelevanceEngine(make_document('<button data-rect="0,0,50,20">Checkout</button>'))
    analysis = engine.analyze("how do I checkout")
    payload = analysis.to_dict()

    assert payload["userQuery"] == "how do I checkout"
    assert payload["intent"] == "do_action"
    assert payload["keywords"] == ["checkout"]
    assert payload["elements"][0]["text"] == "Checkout"
    assert payload["pageContext"]["domain"] == "shop.example.com"
