"""Page loading, readiness settling and best-effort hardening."""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

if TYPE_CHECKING:
    from squarefinder.clients.browser import Session

STEALTH_SCRIPT = """
() => {
    try { Object.defineProperty(navigator, 'webdriver', { get: () => false }); } catch (e) {}
    try { window.chrome = window.chrome || { runtime: {} }; } catch (e) {}
    try {
        const originalQuery = navigator.permissions && navigator.permissions.query;
        if (originalQuery) {
            navigator.permissions.query = (parameters) =>
                parameters.name === 'notifications'
                    ? Promise.resolve({ state: Notification.permission })
                    : originalQuery(parameters);
        }
    } catch (e) {}
}
"""

OVERLAY_SELECTORS = (
    "svg.lucide-x",
    'button[aria-label="close"]',
    'button[aria-label="Close"]',
    ".cookie-consent button",
    ".cmp-close",
    ".close",
    ".dismiss",
)

_CLICK_IF_PRESENT_JS = """
(selector) => {
    const el = document.querySelector(selector);
    if (!el) return false;
    try { el.click(); } catch (e) { return false; }
    return true;
}
"""


class NavigationOutcome(StrEnum):
    OK = "ok"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


async def harden(page: Any, user_agent: str | None = None) -> None:
    """Spoof a realistic user agent and hide common automation markers. Never raises."""

    if user_agent:
        try:
            await page.set_extra_http_headers({"User-Agent": user_agent})
        except Exception as exc:
            logger.warning("Could not set user agent header: {}", exc)
    try:
        await page.add_init_script(f"({STEALTH_SCRIPT})()")
    except Exception as exc:
        logger.warning("Could not install stealth init script: {}", exc)


async def navigate(
    session: Session,
    target_url: str,
    timeout: float,
    *,
    settle_delay: float = 1.5,
) -> NavigationOutcome:
    """Load ``target_url`` waiting only for DOM content, then let client rendering start.

    The target keeps background connections open, so a network-idle criterion
    would never be met. A timeout is reported as ``TIMED_OUT`` and the caller
    carries on; any other load error is ``FAILED``.
    """

    session.navigation_started = True
    logger.info("Navigating to {}", target_url)
    try:
        await session.page.goto(target_url, wait_until="domcontentloaded", timeout=timeout * 1000)
        outcome = NavigationOutcome.OK
    except PlaywrightTimeoutError as exc:
        logger.warning("Navigation (domcontentloaded) timed out, continuing: {}", exc)
        outcome = NavigationOutcome.TIMED_OUT
    except PlaywrightError as exc:
        logger.error("Navigation failed: {}", exc)
        return NavigationOutcome.FAILED

    await asyncio.sleep(settle_delay)
    return outcome


async def dismiss_overlays(page: Any, selectors: tuple[str, ...] = OVERLAY_SELECTORS) -> int:
    """Click close buttons and cookie banners that could cover the search box."""

    dismissed = 0
    for selector in selectors:
        try:
            if await page.evaluate(_CLICK_IF_PRESENT_JS, selector):
                dismissed += 1
                logger.debug("Dismissed overlay via {}", selector)
        except Exception as exc:
            logger.debug("Overlay selector {} failed: {}", selector, exc)
    return dismissed


def log_frames(page: Any) -> None:
    try:
        frames = page.frames
    except Exception as exc:
        logger.debug("Could not enumerate frames: {}", exc)
        return
    logger.debug("Frames count: {}", len(frames))
    for index, frame in enumerate(frames):
        logger.debug(" frame[{}] url: {}", index, frame.url)
