from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest


CLI_PATH = Path(__file__).resolve().parents[1] / "consumers" / "examples" / "cli-guide-example.py"

PAGE = """<html><head><title>Sign in</title></head><body>
<form id="signin">
  <input id="email" placeholder="Email" data-rect="100,100,200,30">
  <button id="login" data-rect="100,150,80,30">Login</button>
</form>
</body></html>
"""


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("cli_guide_example", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text(PAGE, encoding="utf-8")
    return path


def test_analysis_only(cli, page: Path, capsys: pytest.CaptureFixture) -> None:
    assert cli.main([str(page), "where is the login button"]) == 0
    out = capsys.readouterr().out
    assert "[intent] find_element" in out
    assert "[keywords] login, button" in out
    assert "#login" in out


def test_analysis_as_json(cli, page: Path, capsys: pytest.CaptureFixture) -> None:
    assert cli.main([str(page), "login", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["userQuery"] == "login"
    assert data["elements"][0]["selector"] == "#login"
    assert data["pageContext"]["title"] == "Sign in"


def test_walks_steps_file(cli, page: Path, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    steps = tmp_path / "steps.json"
    steps.write_text(
        json.dumps(
            {
                "success": True,
                "guide": [
                    {"selector": "#email", "message": "Enter your email"},
                    {"selector": "#missing", "message": "Gone", "action": "click"},
                    {"text": "login", "message": "Log in", "action": "click"},
                ],
            }
        ),
        encoding="utf-8",
    )

    assert cli.main([str(page), "how do I log in", "--steps", str(steps)]) == 0
    out = capsys.readouterr().out
    assert "[step 1/3] shown" in out
    assert "[step 2/3] skipped (target not found)" in out
    assert "[step 3/3] shown" in out
    assert "[guide] finished, 2/3 step(s) shown" in out


def test_layout_file_makes_plain_markup_visible(cli, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    plain = tmp_path / "plain.html"
    plain.write_text("<button id='buy'>Buy now</button>", encoding="utf-8")
    layout = tmp_path / "layout.json"
    layout.write_text(json.dumps({"#buy": [10, 10, 90, 30]}), encoding="utf-8")

    assert cli.main([str(plain), "buy", "--layout", str(layout)]) == 0
    assert "#buy" in capsys.readouterr().out


def test_bad_inputs(cli, page: Path, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    bad_config = tmp_path / "bad.yaml"
    bad_config.write_text("nothing: here\n", encoding="utf-8")
    assert cli.main([str(page), "login", "--config", str(bad_config)]) == 2
    assert cli.main([str(tmp_path / "missing.html"), "login"]) == 1

    bad_steps = tmp_path / "steps.json"
    bad_steps.write_text(json.dumps([{"message": "m", "action": "type"}]), encoding="utf-8")
    assert cli.main([str(page), "login", "--steps", str(bad_steps)]) == 1
    assert "[error]" in capsys.readouterr().err


def test_configured_viewport_margin_applies_to_the_guide(
    cli, tmp_path: Path, capsys: pytest.CaptureFixture
) -> None:
    below = tmp_path / "below.html"
    below.write_text('<button id="below" data-rect="0,800,80,30">Later</button>', encoding="utf-8")
    steps = tmp_path / "steps.json"
    steps.write_text(json.dumps([{"selector": "#below", "message": "Down here"}]), encoding="utf-8")
    config = tmp_path / "guide.yaml"
    config.write_text("guide:\n  relevance:\n    viewport_margin: 0\n", encoding="utf-8")

    assert cli.main([str(below), "later", "--steps", str(steps)]) == 0
    assert "[step 1/1] shown" in capsys.readouterr().out

    assert cli.main([str(below), "later", "--steps", str(steps), "--config", str(config)]) == 0
    assert "[step 1/1] skipped (target not found)" in capsys.readouterr().out
