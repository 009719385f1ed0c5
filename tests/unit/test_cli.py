"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from squarefinder.cli import _settings_from_args, app
from squarefinder.engine import CaptureResult
from squarefinder.errors import InputNotFoundError

runner = CliRunner()


def test_settings_from_args_defaults() -> None:
    s = _settings_from_args()
    assert s.headless is True
    assert s.remote_endpoint is None
    assert s.debug_artifacts == "on_failure"


def test_settings_from_args_overrides() -> None:
    s = _settings_from_args(
        headed=True,
        debug_dir=Path("/tmp/sf"),
        remote_endpoint="wss://chrome.example.com?token=abc",
        always_save_artifacts=True,
    )
    assert s.headless is False
    assert s.debug_dir == Path("/tmp/sf")
    assert s.remote_endpoint is not None
    assert s.remote_endpoint.get_secret_value() == "wss://chrome.example.com?token=abc"
    assert s.browser_config().remote_endpoint == "wss://chrome.example.com?token=abc"
    assert s.debug_artifacts == "always"


def _patched_finder(result: CaptureResult | None = None, error: Exception | None = None) -> MagicMock:
    finder_cls = MagicMock()
    finder_cls.return_value.capture = AsyncMock(return_value=result, side_effect=error)
    return finder_cls


def test_find_prints_urls() -> None:
    result = CaptureResult(urls=["https://api.coveragemap.com/v1/square?id=42"], input_strategy="css:input")
    with patch("squarefinder.cli.SquareFinder", _patched_finder(result)):
        outcome = runner.invoke(app, ["find", "316 E Okanogan Ave"])
    assert outcome.exit_code == 0
    assert "square?id=42" in outcome.stdout
    assert "matches=1" in outcome.stdout


def test_find_json_output() -> None:
    result = CaptureResult(urls=["https://api.coveragemap.com/v1/square?id=42"])
    with patch("squarefinder.cli.SquareFinder", _patched_finder(result)):
        outcome = runner.invoke(app, ["find", "316 E Okanogan Ave", "--json"])
    assert outcome.exit_code == 0
    payload = json.loads(outcome.stdout)
    assert payload == {
        "address": "316 E Okanogan Ave",
        "xhrUrls": ["https://api.coveragemap.com/v1/square?id=42"],
        "count": 1,
    }


def test_find_engine_error_exits_nonzero() -> None:
    with patch("squarefinder.cli.SquareFinder", _patched_finder(error=InputNotFoundError("Search input not found"))):
        outcome = runner.invoke(app, ["find", "316 E Okanogan Ave"])
    assert outcome.exit_code == 1
    assert "InputNotFoundError" in outcome.stdout


def test_find_passes_headed_flag() -> None:
    finder_cls = _patched_finder(CaptureResult())
    with patch("squarefinder.cli.SquareFinder", finder_cls):
        outcome = runner.invoke(app, ["find", "Chelan", "--headed"])
    assert outcome.exit_code == 0
    settings = finder_cls.call_args.args[0]
    assert settings.headless is False


def test_config_masks_remote_endpoint(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("SQUAREFINDER_REMOTE_ENDPOINT", "wss://chrome.example.com/cdp?token=abc123")
    outcome = runner.invoke(app, ["config"])
    assert outcome.exit_code == 0
    assert "target_url" in outcome.stdout
    assert "abc123" not in outcome.stdout
