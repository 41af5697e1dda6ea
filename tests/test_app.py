"""Tests covering the command line entry point."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from blockdraft import app
from blockdraft.editor.document_model import Block, DocumentState, InlineStyle, InlineStyleRange
from blockdraft.editor.serialization import load_document, save_document
from blockdraft.services.settings import Settings, SettingsStore


@pytest.fixture(autouse=True)
def _stub_logging(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def _configure(debug: bool = False, *, log_dir: str | None = None, force: bool = False) -> None:
        calls.append({"debug": debug, "log_dir": log_dir})

    monkeypatch.setattr(app, "configure_logging", _configure)
    return calls


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


@pytest.fixture
def document_path(tmp_path: Path) -> Path:
    state = DocumentState(
        blocks=(
            Block("b1", "Hello world", style_ranges=(InlineStyleRange(InlineStyle.BOLD, 0, 5),)),
            Block("b2", "Second"),
        )
    )
    return save_document(tmp_path / "doc.json", state)


def _run(*argv: str) -> tuple[int, str]:
    out = io.StringIO()
    code = app.main(list(argv), stdout=out)
    return code, out.getvalue()


def test_render_html(document_path: Path, settings_path: Path) -> None:
    code, output = _run("--settings", str(settings_path), "render", str(document_path))

    assert code == 0
    assert "<strong>Hello</strong> world" in output
    assert 'data-block-key="b2"' in output


def test_render_text_and_segments(document_path: Path, settings_path: Path) -> None:
    code, output = _run("--settings", str(settings_path), "render", str(document_path), "--format", "text")
    assert code == 0
    assert output == "Hello world\nSecond\n"

    code, output = _run("--settings", str(settings_path), "render", str(document_path), "--format", "segments")
    payload = json.loads(output)
    assert payload[0]["segments"][0] == {"text": "Hello", "offset": 0, "styles": ["BOLD"]}
    assert payload[1]["type"] == "paragraph"


def test_render_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        app.render(DocumentState(), "pdf")


def test_stats(document_path: Path, settings_path: Path) -> None:
    code, output = _run("--settings", str(settings_path), "stats", str(document_path))
    assert code == 0
    assert json.loads(output) == {"words": 3, "characters": 17, "blocks": 2}


def test_new_creates_document(tmp_path: Path, settings_path: Path) -> None:
    SettingsStore(settings_path).save(Settings(default_block_text="From settings"))
    target = tmp_path / "fresh.json"

    code, output = _run("--settings", str(settings_path), "new", str(target))

    assert code == 0
    assert output.strip() == str(target)
    assert load_document(target).blocks[0].text == "From settings"


def test_new_refuses_to_overwrite(document_path: Path, settings_path: Path, capsys) -> None:
    before = document_path.read_text(encoding="utf-8")

    code, _ = _run("--settings", str(settings_path), "new", str(document_path), "--text", "x")

    assert code == 1
    assert "already exists" in capsys.readouterr().err
    assert document_path.read_text(encoding="utf-8") == before


def test_missing_or_invalid_document_returns_error(tmp_path: Path, settings_path: Path, capsys) -> None:
    code, _ = _run("--settings", str(settings_path), "render", str(tmp_path / "absent.json"))
    assert code == 1

    broken = tmp_path / "broken.json"
    broken.write_text("{}", encoding="utf-8")
    code, _ = _run("--settings", str(settings_path), "stats", str(broken))
    assert code == 1
    assert "Invalid document" in capsys.readouterr().err


def test_dump_settings_reports_overrides(settings_path: Path) -> None:
    code, output = _run(
        "--settings",
        str(settings_path),
        "--set",
        "history_limit=25",
        "--set",
        "debug_logging=off",
        "--dump-settings",
    )

    payload = json.loads(output)
    assert code == 0
    assert payload["settings"]["history_limit"] == 25
    assert payload["settings"]["debug_logging"] is False
    assert payload["meta"]["path"] == str(settings_path)
    assert payload["meta"]["cli_overrides"] == ["debug_logging", "history_limit"]
    assert "BLOCKDRAFT_LOG_DIR" in payload["meta"]["environment_variables"]


def test_set_none_clears_optional_setting(settings_path: Path) -> None:
    SettingsStore(settings_path).save(Settings(history_limit=5))
    code, output = _run("--settings", str(settings_path), "--set", "history_limit=none", "--dump-settings")
    assert code == 0
    assert json.loads(output)["settings"]["history_limit"] is None


@pytest.mark.parametrize("override", ["history_limit", "unknown=1", "=3", "history_limit=many"])
def test_invalid_overrides_exit_with_usage_error(settings_path: Path, override: str) -> None:
    code, _ = _run("--settings", str(settings_path), "--set", override, "--dump-settings")
    assert code == 2


def test_debug_flag_reaches_logging(settings_path: Path, _stub_logging) -> None:
    _run("--settings", str(settings_path), "--debug")
    assert _stub_logging[-1]["debug"] is True


def test_no_command_prints_help(settings_path: Path) -> None:
    code, output = _run("--settings", str(settings_path))
    assert code == 0
    assert "usage: blockdraft" in output
