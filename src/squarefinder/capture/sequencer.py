"""Drive the located search input until the page fires a matching request."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from squarefinder.errors import InteractionError

if TYPE_CHECKING:
    from squarefinder.capture.locator import LocatedInput
    from squarefinder.capture.observer import NetworkObserver
    from squarefinder.clients.browser import Session

SUGGESTION_SELECTOR = (
    '[role="listbox"] [role="option"], .suggestions li, .autocomplete li, .pac-container .pac-item'
)
MAP_SURFACE_SELECTORS = ("div.leaflet-container", ".mapboxgl-canvas", "canvas", "#root")
PROBE_OFFSETS: tuple[tuple[int, int], ...] = ((0, 0), (10, 0), (-10, 0), (0, 10), (0, -10), (20, 0), (-20, 0))
NUDGE_COUNTS = (1, 2)

_CLEAR_AND_FOCUS_JS = "(el) => { el.value = ''; el.focus(); }"
_DISPATCH_INPUT_JS = """
(el) => {
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""


@dataclass(slots=True)
class Timings:
    """Wait intervals in seconds (``type_delay_ms`` in milliseconds)."""

    settle_delay: float = 1.5
    type_delay_ms: float = 80.0
    suggestion_wait: float = 1.2
    nudge_wait: float = 0.8
    match_wait: float = 1.4
    map_click_wait: float = 2.0
    final_wait: float = 4.0


@dataclass(slots=True)
class InteractionReport:
    """Which triggering strategies ran; diagnostic only."""

    typed: bool = False
    nudges: int = 0
    suggestion_selected: bool = False
    submitted: bool = False
    map_clicks: int = 0
    matched: bool = False
    steps: list[str] = field(default_factory=list)


async def _attempt(label: str, action: Callable[[], Awaitable[Any]]) -> bool:
    try:
        await action()
    except Exception as exc:
        logger.debug("{} failed: {}", label, exc)
        return False
    return True


class InteractionSequencer:
    """Type, nudge, select or submit, then probe the map.

    Steps only move forward. Each individual action is best effort; the
    observer's match set, not DOM state, decides whether a step helped.
    """

    def __init__(
        self,
        session: Session,
        target: LocatedInput,
        observer: NetworkObserver,
        timings: Timings | None = None,
    ) -> None:
        self.page = session.page
        self.element = target.handle
        self.observer = observer
        self.timings = timings or Timings()
        self.report = InteractionReport()

    def _ensure_open(self) -> None:
        try:
            closed = self.page.is_closed()
        except Exception as exc:
            raise InteractionError(f"Page became unusable during interaction: {exc}") from exc
        if closed:
            raise InteractionError("Page was closed during interaction")

    async def run(self, address: str) -> InteractionReport:
        self._ensure_open()
        await self.clear_and_focus()
        self._ensure_open()
        await self.type_address(address)
        self._ensure_open()
        await asyncio.sleep(self.timings.suggestion_wait)
        suggestion = await self.find_suggestion()
        if suggestion is None:
            suggestion = await self.nudge(address)
        self._ensure_open()
        await self.select_or_submit(suggestion)
        if not await self.observer.wait_for_match(self.timings.match_wait):
            self._ensure_open()
            await self.probe_map()
        await asyncio.sleep(self.timings.final_wait)
        self.report.matched = self.observer.matched
        logger.info(
            "Interaction finished: suggestion={} submitted={} map_clicks={} matched={}",
            self.report.suggestion_selected,
            self.report.submitted,
            self.report.map_clicks,
            self.report.matched,
        )
        return self.report

    async def clear_and_focus(self) -> None:
        await _attempt("select-all click", lambda: self.element.click(click_count=3))
        await _attempt("clear value", lambda: self.element.evaluate(_CLEAR_AND_FOCUS_JS))
        await _attempt("focus", self.element.focus)
        self.report.steps.append("clear")

    async def type_address(self, address: str) -> None:
        delay = self.timings.type_delay_ms
        typed = await _attempt("element typing", lambda: self.element.type(address, delay=delay))
        if not typed:
            typed = await _attempt("keyboard typing", lambda: self.page.keyboard.type(address, delay=delay))
        self.report.typed = typed
        self.report.steps.append("type")

    async def find_suggestion(self) -> Any | None:
        try:
            return await self.page.query_selector(SUGGESTION_SELECTOR)
        except Exception as exc:
            logger.debug("Suggestion query failed: {}", exc)
            return None

    async def nudge(self, address: str) -> Any | None:
        """Delete and retype trailing characters, then fire input events, until suggestions show."""

        delay = self.timings.type_delay_ms
        for count in NUDGE_COUNTS:
            tail = address[-count:]
            for _ in range(count):
                await _attempt("backspace", lambda: self.element.press("Backspace"))
            await _attempt("retype tail", lambda: self.element.type(tail, delay=delay))
            await _attempt("cursor to end", lambda: self.element.press("End"))
            await _attempt("dispatch input", lambda: self.element.evaluate(_DISPATCH_INPUT_JS))
            self.report.nudges += 1
            self.report.steps.append(f"nudge:{count}")
            await asyncio.sleep(self.timings.nudge_wait)
            suggestion = await self.find_suggestion()
            if suggestion is not None:
                return suggestion
        return None

    async def select_or_submit(self, suggestion: Any | None) -> None:
        if suggestion is not None and await _attempt("suggestion click", suggestion.click):
            self.report.suggestion_selected = True
            self.report.steps.append("select")
            return
        submitted = await _attempt("enter on input", lambda: self.element.press("Enter"))
        if not submitted:
            submitted = await _attempt("enter on keyboard", lambda: self.page.keyboard.press("Enter"))
        self.report.submitted = submitted
        self.report.steps.append("submit")

    async def _map_surface(self) -> dict[str, float] | None:
        for selector in MAP_SURFACE_SELECTORS:
            try:
                element = await self.page.query_selector(selector)
                if element is None:
                    continue
                box = await element.bounding_box()
            except Exception as exc:
                logger.debug("Map surface {} failed: {}", selector, exc)
                continue
            if box:
                logger.debug("Map element {} bbox: {}", selector, box)
                return box
        return None

    async def probe_map(self) -> None:
        """Click around the map center until the observer reports a match."""

        box = await self._map_surface()
        if box is None:
            logger.info("No map element found to click")
            return
        cx = box["x"] + box["width"] / 2
        cy = box["y"] + box["height"] / 2
        for dx, dy in PROBE_OFFSETS:
            if await _attempt("map click", lambda: self.page.mouse.click(cx + dx, cy + dy)):
                self.report.map_clicks += 1
                logger.debug("Clicked map at offset {} {}", dx, dy)
            self.report.steps.append(f"map:{dx},{dy}")
            if await self.observer.wait_for_match(self.timings.map_click_wait):
                break


async def interact(
    session: Session,
    target: LocatedInput,
    address: str,
    observer: NetworkObserver,
    timings: Timings | None = None,
) -> InteractionReport:
    return await InteractionSequencer(session, target, observer, timings).run(address)
