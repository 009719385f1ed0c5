"""Search-input discovery across the main document, child frames and a visibility fallback."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from squarefinder.clients.browser import Session

# Placeholder hints outrank positional selectors; the bare "input" is the catch-all.
CANDIDATE_SELECTORS: tuple[str, ...] = (
    '//*[@id="root"]//input[contains(@placeholder,"address") or contains(@placeholder,"Address")'
    ' or contains(@placeholder,"location") or contains(@placeholder,"search")]',
    'input[placeholder*="address"]',
    'input[placeholder*="Address"]',
    'input[placeholder*="location"]',
    'input[placeholder*="search"]',
    'input[type="search"]',
    "#root input",
    "input",
)

MIN_VISIBLE_WIDTH = 20
MIN_VISIBLE_HEIGHT = 10

VISIBLE_INPUT_JS = f"""
() => {{
    const inputs = Array.from(document.querySelectorAll('input'));
    for (const input of inputs) {{
        const rect = input.getBoundingClientRect();
        const style = window.getComputedStyle(input);
        if (rect.width > {MIN_VISIBLE_WIDTH} && rect.height > {MIN_VISIBLE_HEIGHT}
            && style && style.visibility !== 'hidden' && style.display !== 'none') return input;
    }}
    return null;
}}
"""


@dataclass(slots=True)
class LocatedInput:
    """Element handle plus the label of the strategy that found it."""

    handle: Any
    strategy: str


def _selector_label(selector: str) -> str:
    kind = "xpath" if selector.startswith("//") else "css"
    return f"{kind}:{selector}"


def _query(selector: str) -> str:
    return f"xpath={selector}" if selector.startswith("//") else selector


async def probe_selectors(context: Any, selectors: Sequence[str]) -> LocatedInput | None:
    """Return the first selector match on a page or frame, in priority order."""

    for selector in selectors:
        try:
            handle = await context.query_selector(_query(selector))
        except Exception as exc:
            logger.debug("Selector {} failed: {}", selector, exc)
            continue
        if handle is not None:
            return LocatedInput(handle=handle, strategy=_selector_label(selector))
    return None


async def _in_main_document(page: Any, selectors: Sequence[str]) -> LocatedInput | None:
    return await probe_selectors(page, selectors)


async def _in_child_frames(page: Any, selectors: Sequence[str]) -> LocatedInput | None:
    main_frame = page.main_frame
    for frame in page.frames:
        if frame is main_frame:
            continue
        found = await probe_selectors(frame, selectors)
        if found is not None:
            return LocatedInput(handle=found.handle, strategy=f"frame({frame.url[:120]})::{found.strategy}")
    return None


async def _first_visible_input(page: Any, selectors: Sequence[str]) -> LocatedInput | None:
    handle = await page.evaluate_handle(VISIBLE_INPUT_JS)
    element = handle.as_element()
    if element is None:
        return None
    return LocatedInput(handle=element, strategy="fallback:visible-input")


Strategy = Callable[[Any, Sequence[str]], Awaitable[LocatedInput | None]]

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("main-document", _in_main_document),
    ("child-frames", _in_child_frames),
    ("visible-input", _first_visible_input),
)


async def locate(session: Session, selectors: Sequence[str] = CANDIDATE_SELECTORS) -> LocatedInput | None:
    """Find the search input; ``None`` when every strategy is exhausted."""

    for name, strategy in STRATEGIES:
        try:
            found = await strategy(session.page, selectors)
        except Exception as exc:
            logger.debug("Input discovery strategy {} failed: {}", name, exc)
            continue
        if found is not None:
            logger.info("Found search input via {}", found.strategy)
            return found
    logger.warning("Search input not found after {} strategies", len(STRATEGIES))
    return None
