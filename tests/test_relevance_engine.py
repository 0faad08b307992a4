from __future__ import annotations

import pytest

from common.config import RelevanceConfig
from common.errors import MetadataExtractionError
from common.models.intents import QueryIntent
from scout.core.relevance_engine import RelevanceEngine
from scout.core.selectors import css_escape, element_path, generate_selector, quote_attribute_value

from helpers import make_document


LOGIN_PAGE = """
<form id="signin">
  <div class="row wide extra">
    <button id="login-btn" data-rect="100,100,80,30">Login</button>
  </div>
</form>
<a href="/help" data-rect="10,10,50,20">Login help</a>
<button id="hidden-login" style="display: none" data-rect="0,0,10,10">Login</button>
<button id="far-login" data-rect="100,5000,80,30">Login</button>
<button id="disabled-login" disabled data-rect="100,200,80,30">Login</button>
<span id="login-note" data-rect="300,300,50,20">login</span>
<input name="login-email" placeholder="Email" data-rect="100,400,200,30">
<label for="nowhere" data-rect="100,500,80,20">Login email</label>
"""


def test_analyze_for_query_ranks_clickable_first_and_filters_hidden() -> None:
    engine = RelevanceEngine(make_document(LOGIN_PAGE))
    candidates = engine.analyze_for_query("where is the login")

    assert [c.selector for c in candidates] == [
        "#login-btn",
        "a",
        '[name="login-email"]',
        "label",
    ]
    assert [c.is_clickable for c in candidates] == [True, True, True, False]


def test_every_candidate_is_interactive_at_snapshot_time() -> None:
    engine = RelevanceEngine(make_document(LOGIN_PAGE))
    candidates = engine.analyze_for_query("login help email")
    assert candidates
    for cand in candidates:
        assert cand.is_visible
        assert engine.is_element_interactive(cand.element)


def test_candidate_snapshot_fields() -> None:
    doc = make_document(LOGIN_PAGE)
    engine = RelevanceEngine(doc)
    button = engine.analyze_for_query("login")[0]

    assert button.tag_name == "button"
    assert button.element_id == "login-btn"
    assert button.text == "Login"
    assert button.path == "form#signin > div.row > button#login-btn"
    assert button.rect == button.document_rect
    assert button.element is doc.query_selector("#login-btn")
    data = button.to_dict()
    assert data["position"] == {"left": 100, "top": 100, "width": 80, "height": 30}
    assert data["isClickable"] is True


def test_candidate_text_is_truncated() -> None:
    long_text = "Login " + "x" * 300
    engine = RelevanceEngine(make_document(f'<button data-rect="0,0,10,10">{long_text}</button>'))
    (cand,) = engine.analyze_for_query("login")
    assert len(cand.text) == 100


def test_results_are_capped() -> None:
    body = "".join(f'<button data-rect="0,{i * 40},80,30">Save {i}</button>' for i in range(15))
    engine = RelevanceEngine(make_document(body), RelevanceConfig(max_results=10))
    assert len(engine.analyze_for_query("save")) == 10


def test_dropped_snapshot_is_backfilled(monkeypatch: pytest.MonkeyPatch) -> None:
    body = "".join(f'<button data-rect="0,{i * 40},80,30">Save {i}</button>' for i in range(12))
    engine = RelevanceEngine(make_document(body), RelevanceConfig(max_results=10))
    real = engine.get_element_metadata

    def flaky(element):
        if element.text_content == "Save 3":
            raise MetadataExtractionError("detached")
        return real(element)

    monkeypatch.setattr(engine, "get_element_metadata", flaky)
    texts = [c.text for c in engine.analyze_for_query("save")]
    assert len(texts) == 10
    assert "Save 3" not in texts


@pytest.mark.parametrize("query", [None, "", "   ", 42, ["login"]])
def test_invalid_queries_return_empty_list(query) -> None:
    engine = RelevanceEngine(make_document(LOGIN_PAGE))
    assert engine.analyze_for_query(query) == []


def test_unexpected_errors_fail_soft(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = RelevanceEngine(make_document(LOGIN_PAGE))

    def boom(*_args, **_kwargs):
        raise RuntimeError("layout exploded")

    monkeypatch.setattr(engine, "find_relevant_elements", boom)
    assert engine.analyze_for_query("login") == []


def test_metadata_failure_drops_only_that_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    doc = make_document(LOGIN_PAGE)
    engine = RelevanceEngine(doc)
    link = doc.query_selector("a")

    def broken_rect():
        raise RuntimeError("detached")

    monkeypatch.setattr(link, "bounding_rect", broken_rect)
    with pytest.raises(MetadataExtractionError):
        engine.get_element_metadata(link)

    snapshots = engine._snapshot_all([doc.query_selector("#login-btn"), link])
    assert [s.element_id for s in snapshots] == ["login-btn"]


def test_literal_matcher_does_not_match_synonyms() -> None:
    engine = RelevanceEngine(
        make_document('<button aria-label="Sign in" data-rect="100,100,80,30"></button>')
    )
    assert engine.find_relevant_elements(["find", "login", "button"], QueryIntent.FIND_ELEMENT) == []
    assert engine.analyze_for_query("find login button") == []
    assert len(engine.analyze_for_query("sign")) == 1


def test_keyword_surfaces_include_attributes() -> None:
    doc = make_document(
        '<input id="q" title="Search catalog" data-rect="0,0,100,20">'
        '<div role="button" aria-describedby="promo-tip" data-rect="0,40,100,20">?</div>'
    )
    engine = RelevanceEngine(doc)
    assert [c.element_id for c in engine.analyze_for_query("catalog")] == ["q"]
    assert [c.role for c in engine.analyze_for_query("promo")] == ["button"]


@pytest.mark.parametrize("element_id", ["login-btn", "1st-item", "a.b:c", "with space", "-9lives"])
def test_id_selector_round_trips(element_id: str) -> None:
    doc = make_document('<div><span>filler</span><button>target</button></div>')
    button = doc.query_selector("button")
    button.set_attribute("id", element_id)

    selector = generate_selector(button)
    assert selector == "#" + css_escape(element_id)
    assert doc.query_selector(selector) is button


def test_selector_priority() -> None:
    doc = make_document(
        '<button data-testid="save" aria-label="Save" name="s">1</button>'
        '<button aria-label=\'Say "hi"\' name="s">2</button>'
        '<button name="submit">3</button>'
        '<button class="btn primary large">4</button>'
        "<button>5</button>"
    )
    buttons = doc.query_selector_all("button")
    selectors = [generate_selector(b) for b in buttons]
    assert selectors == [
        '[data-testid="save"]',
        '[aria-label="Say \\"hi\\""]',
        '[name="submit"]',
        "button.btn.primary",
        "button",
    ]
    for selector, button in zip(selectors[1:4], buttons[1:4]):
        assert doc.query_selector(selector) is button


@pytest.mark.parametrize("label", ["Sign\rin", "Tab\there", "Form\ffeed", "Line\nbreak", "Del\x7fete"])
def test_control_characters_in_attribute_values_round_trip(label: str) -> None:
    doc = make_document("<button>x</button>")
    button = doc.query_selector("button")
    button.set_attribute("aria-label", label)

    selector = generate_selector(button)
    assert selector.startswith("[aria-label=")
    assert doc.query_selector(selector) is button


def test_quote_attribute_value_escapes() -> None:
    assert quote_attribute_value("Sign\rin") == '"Sign\\d in"'
    assert quote_attribute_value('a\\b"c') == '"a\\\\b\\"c"'
    assert quote_attribute_value("nul\x00") == '"nul\ufffd"'


def test_element_path_stops_below_body() -> None:
    doc = make_document('<main class="content wide"><ul><li id="first"><a>x</a></li></ul></main>')
    assert element_path(doc.query_selector("a")) == "main.content > ul > li#first > a"


def test_find_element_strategies() -> None:
    doc = make_document(
        '<div><button id="save">Save</button></div>'
        '<input name="email"><span aria-label="Close dialog">x</span>'
    )
    engine = RelevanceEngine(doc)
    save = doc.query_selector("#save")
    assert engine.find_element({"selector": "#save"}) is save
    assert engine.find_element({"selector": "[[bad", "text": "Save"}) is save
    assert engine.find_element({"ariaLabel": "Close dialog"}) is doc.query_selector("span")
    assert engine.find_element({"id": "save"}) is save
    assert engine.find_element({"name": "email"}) is doc.query_selector("input")
    assert engine.find_element({"text": "Nope"}) is None


def test_form_fields_and_clickables() -> None:
    doc = make_document(
        '<input id="a" data-rect="0,0,10,10"><textarea id="b" data-rect="0,20,10,10"></textarea>'
        '<select id="c"></select>'
        '<div id="d" onclick="go()" data-rect="0,40,10,10">go</div>'
        '<a id="e" href="/" data-rect="0,60,10,10">home</a>'
    )
    engine = RelevanceEngine(doc)
    assert [c.element_id for c in engine.get_all_form_fields()] == ["a", "b"]
    assert [c.element_id for c in engine.get_all_clickable_elements()] == ["d", "e"]
