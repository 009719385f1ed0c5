"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from squarefinder.capture.sequencer import Timings
from squarefinder.settings import Settings


@pytest.fixture
def fast_timings() -> Timings:
    return Timings(
        settle_delay=0,
        type_delay_ms=0,
        suggestion_wait=0,
        nudge_wait=0,
        match_wait=0,
        map_click_wait=0,
        final_wait=0,
    )


@pytest.fixture
def debug_dir(tmp_path: Path) -> Path:
    return tmp_path / "debug"


@pytest.fixture
def fast_settings(debug_dir: Path) -> Settings:
    return Settings(
        debug_dir=debug_dir,
        settle_delay=0,
        type_delay_ms=0,
        suggestion_wait=0,
        nudge_wait=0,
        match_wait=0,
        map_click_wait=0,
        final_wait=0,
    )
