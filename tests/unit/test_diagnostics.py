"""Tests for result collection and debug bundles."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from squarefinder.capture.diagnostics import collect, debug_prefix, write_debug_bundle
from squarefinder.capture.observer import NetworkObserver
from tests.fakes import FakePage


def test_collect_is_deduplicated_list() -> None:
    observer = NetworkObserver()
    for url in ["https://x/square?id=2", "https://x/square?id=1", "https://x/square?id=2", "https://x/a"]:
        observer.record("request", url)
    assert collect(observer) == ["https://x/square?id=1", "https://x/square?id=2"]


def test_collect_empty() -> None:
    assert collect(NetworkObserver()) == []


def test_debug_prefix_is_timestamped(tmp_path: Path) -> None:
    prefix = debug_prefix(tmp_path, datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=UTC))
    assert prefix == tmp_path / "squarefinder_20240501T123045123456Z"


@pytest.mark.asyncio
async def test_bundle_writes_all_three_artifacts(tmp_path: Path) -> None:
    observer = NetworkObserver()
    for i in range(5):
        observer.record("request", f"https://x/tile/{i}", method="GET")

    bundle = await write_debug_bundle(FakePage(), observer, tmp_path / "run", "noinput", log_limit=3)

    assert bundle is not None
    assert bundle.html_snapshot == tmp_path / "run.noinput.html"
    assert bundle.screenshot == tmp_path / "run.noinput.png"
    assert bundle.request_log == tmp_path / "run.noinput.requests.json"
    assert all(path.exists() for path in bundle.paths())
    rows = json.loads(bundle.request_log.read_text())
    assert [row["url"] for row in rows] == ["https://x/tile/2", "https://x/tile/3", "https://x/tile/4"]
    assert "<html>" in bundle.html_snapshot.read_text()


@pytest.mark.asyncio
async def test_bundle_write_errors_are_swallowed(tmp_path: Path) -> None:
    class DeadPage(FakePage):
        async def content(self) -> str:
            raise RuntimeError("Target closed")

        async def screenshot(self, path: str, full_page: bool = False) -> bytes:
            raise RuntimeError("Target closed")

    bundle = await write_debug_bundle(DeadPage(), NetworkObserver(), tmp_path / "run", "error")

    assert bundle is not None
    assert bundle.html_snapshot is None
    assert bundle.screenshot is None
    assert bundle.request_log is not None


@pytest.mark.asyncio
async def test_bundle_returns_none_when_nothing_written(tmp_path: Path) -> None:
    class DeadPage(FakePage):
        async def content(self) -> str:
            raise RuntimeError("Target closed")

        async def screenshot(self, path: str, full_page: bool = False) -> bytes:
            raise RuntimeError("Target closed")

    assert await write_debug_bundle(DeadPage(), None, tmp_path / "run", "error") is None
