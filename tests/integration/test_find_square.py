"""End-to-end scenarios against a fake of the coverage map site."""

from __future__ import annotations

import pytest

from squarefinder.engine import SquareFinder
from squarefinder.errors import InputNotFoundError
from squarefinder.settings import Settings
from tests.fakes import FakeElement, FakeFrame, FakePage, FakeSessionProvider

ADDRESS = "316 E Okanogan Ave, Chelan Washington 98816"
SQUARE_URL = "https://api.coveragemap.com/v1/square?id=42"


def coverage_map_site() -> FakePage:
    """Autocomplete appears once typing happens; choosing it loads the coverage square."""

    page = FakePage(
        load_requests=[
            "https://map.coveragemap.com/assets/index.js",
            "https://tiles.coveragemap.com/10/163/357.pbf",
        ],
        reveal_suggestion_on="type",
    )
    page.selectors['input[placeholder*="Address"]'] = FakeElement(page, "search")
    page.selectors["#root input"] = FakeElement(page, "other")
    page.selectors["div.leaflet-container"] = FakeElement(
        page, "map", box={"x": 0, "y": 64, "width": 1280, "height": 736}
    )

    def _select() -> None:
        page.fire_request("https://api.coveragemap.com/v1/geocode?q=316")
        page.fire_request(SQUARE_URL)
        page.fire_request(SQUARE_URL)

    page.set_suggestion(on_click=_select)
    return page


@pytest.mark.asyncio
async def test_address_selection_returns_square_url(fast_settings: Settings) -> None:
    page = coverage_map_site()
    provider = FakeSessionProvider(page)

    result = await SquareFinder(fast_settings, provider).capture(ADDRESS)

    assert result.urls == [SQUARE_URL]
    assert result.input_strategy == 'css:input[placeholder*="Address"]'
    assert result.report is not None and result.report.suggestion_selected is True
    assert page.mouse.clicks == []
    assert provider.released == 1


@pytest.mark.asyncio
async def test_missing_input_everywhere_raises_with_bundle(fast_settings: Settings) -> None:
    page = FakePage(child_frames=[FakeFrame("https://consent.example.com/")])
    provider = FakeSessionProvider(page)

    with pytest.raises(InputNotFoundError, match="Search input not found"):
        await SquareFinder(fast_settings, provider).run(ADDRESS)

    written = sorted(fast_settings.debug_dir.glob("squarefinder_*.noinput.*"))
    assert [path.suffix for path in written] == [".html", ".png", ".json"]
    assert provider.released == 1


@pytest.mark.asyncio
async def test_map_click_fallback_finds_square(fast_settings: Settings) -> None:
    page = coverage_map_site()
    page.reveal_suggestion_on = None

    def _on_click(x: float, y: float) -> None:
        if (x, y) == (650, 432):
            page.fire_request("https://api.coveragemap.com/v1/square?id=1001")

    page.on_map_click = _on_click
    provider = FakeSessionProvider(page)

    result = await SquareFinder(fast_settings, provider).capture(ADDRESS)

    assert result.urls == ["https://api.coveragemap.com/v1/square?id=1001"]
    assert result.report is not None
    assert result.report.submitted is True
    assert page.mouse.clicks[-1] == (650, 432)
