"""Capture engine: one session, one sequential script, guaranteed cleanup."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from squarefinder.capture.diagnostics import (
    COMPLETION_LOG_LIMIT,
    collect,
    debug_prefix,
    write_debug_bundle,
)
from squarefinder.capture.locator import CANDIDATE_SELECTORS, locate
from squarefinder.capture.navigation import NavigationOutcome, dismiss_overlays, harden, log_frames, navigate
from squarefinder.capture.observer import attach
from squarefinder.capture.sequencer import InteractionReport, interact
from squarefinder.clients.browser import SessionProvider
from squarefinder.errors import InputNotFoundError, InteractionError, NavigationError, SquareFinderError
from squarefinder.settings import Settings

if TYPE_CHECKING:
    from pathlib import Path

    from squarefinder.capture.observer import NetworkObserver
    from squarefinder.clients.browser import Session


@dataclass(slots=True)
class CaptureResult:
    """Matched URLs plus what it took to get them."""

    urls: list[str] = field(default_factory=list)
    navigation: NavigationOutcome = NavigationOutcome.OK
    input_strategy: str | None = None
    report: InteractionReport | None = None


class SquareFinder:
    """Search an address on the map site and return the square?id= URLs it triggers.

    An empty list is a successful result: it means every triggering strategy
    ran without the site firing a matching request.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: SessionProvider | None = None,
        selectors: Sequence[str] = CANDIDATE_SELECTORS,
    ) -> None:
        self.settings = settings or Settings()
        self.provider = provider or SessionProvider()
        self.selectors = tuple(selectors)

    async def run(self, address: str) -> list[str]:
        result = await self.capture(address)
        return result.urls

    async def capture(self, address: str) -> CaptureResult:
        address = address.strip()
        if not address:
            raise ValueError("address argument is required")

        prefix = debug_prefix(self.settings.debug_dir)
        logger.info("Processing request for address: {}", address)

        async with self.provider.session(self.settings.browser_config()) as session:
            observer = attach(session, self.settings.match_pattern, cap=self.settings.event_log_cap)
            try:
                return await self._drive(session, observer, address, prefix)
            except InputNotFoundError:
                raise
            except SquareFinderError as exc:
                logger.error("Capture failed: {}", exc)
                await write_debug_bundle(session.page, observer, prefix, "error")
                raise
            except Exception as exc:
                logger.error("Unexpected capture failure: {}", exc)
                await write_debug_bundle(session.page, observer, prefix, "error")
                raise InteractionError(f"Unexpected failure while capturing requests: {exc}") from exc
            finally:
                observer.detach()

    async def _drive(
        self,
        session: Session,
        observer: NetworkObserver,
        address: str,
        prefix: Path,
    ) -> CaptureResult:
        settings = self.settings
        timings = settings.timings()
        page = session.page

        # camoufox ships its own consistent Firefox fingerprint
        user_agent = settings.user_agent if settings.browser_engine == "chromium" else None
        await harden(page, user_agent)
        outcome = await navigate(
            session,
            settings.target_url,
            settings.navigation_timeout,
            settle_delay=timings.settle_delay,
        )
        if outcome is NavigationOutcome.FAILED:
            raise NavigationError(f"Could not load {settings.target_url}")
        if outcome is NavigationOutcome.TIMED_OUT and settings.capture_on_navigation_timeout:
            await write_debug_bundle(page, observer, prefix, "navtimeout")

        log_frames(page)
        await dismiss_overlays(page)

        target = await locate(session, self.selectors)
        if target is None:
            bundle = await write_debug_bundle(page, observer, prefix, "noinput")
            raise InputNotFoundError("Search input not found on page", bundle=bundle)

        report = await interact(session, target, address, observer, timings)
        urls = collect(observer)
        if settings.debug_artifacts == "always":
            await write_debug_bundle(page, observer, prefix, "final", log_limit=COMPLETION_LOG_LIMIT)

        logger.info("Capture result count: {}", len(urls))
        return CaptureResult(urls=urls, navigation=outcome, input_strategy=target.strategy, report=report)


async def find_square(address: str, settings: Settings | None = None) -> list[str]:
    """Run the engine once with a fresh session."""

    return await SquareFinder(settings).run(address)
