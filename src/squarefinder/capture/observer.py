"""Network observer: records page traffic and collects URLs matching the square pattern."""

from __future__ import annotations

import asyncio
import re
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

from squarefinder.errors import ObserverOrderError

if TYPE_CHECKING:
    from squarefinder.clients.browser import Session

MATCH_PATTERN = re.compile(r"square\?id=\d+", re.IGNORECASE)
DEFAULT_LOG_CAP = 2000

_BLANK_URLS = {"", "about:blank"}


@dataclass(slots=True)
class NetworkEvent:
    """Single request or response seen on the page."""

    direction: Literal["request", "response"]
    url: str
    method: str | None = None
    status: int | None = None
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        row = asdict(self)
        row["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return row


def compile_pattern(pattern: str | re.Pattern[str] | None) -> re.Pattern[str]:
    if pattern is None:
        return MATCH_PATTERN
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.IGNORECASE)


class NetworkObserver:
    """Append-only bounded event log plus a monotonically growing match set."""

    def __init__(self, pattern: str | re.Pattern[str] | None = None, cap: int = DEFAULT_LOG_CAP) -> None:
        self.pattern = compile_pattern(pattern)
        self._events: deque[NetworkEvent] = deque(maxlen=cap)
        self._matches: set[str] = set()
        self._page: Any = None

    def record(
        self,
        direction: Literal["request", "response"],
        url: str,
        *,
        method: str | None = None,
        status: int | None = None,
    ) -> None:
        self._events.append(
            NetworkEvent(direction=direction, url=url, method=method, status=status, timestamp=datetime.now(UTC))
        )
        if url not in self._matches and self.pattern.search(url):
            self._matches.add(url)
            logger.info("[pattern-match] {} {}", direction, url)

    def matches(self) -> set[str]:
        return set(self._matches)

    def log(self) -> list[NetworkEvent]:
        return list(self._events)

    @property
    def matched(self) -> bool:
        return bool(self._matches)

    async def wait_for_match(self, timeout: float, poll: float = 0.1) -> bool:
        """Suspend until a match has been seen or ``timeout`` seconds pass."""

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not self._matches:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(poll, remaining))
        return self.matched

    def _on_request(self, request: Any) -> None:
        try:
            self.record("request", request.url, method=request.method)
        except Exception as exc:
            logger.debug("Dropped request event: {}", exc)

    def _on_response(self, response: Any) -> None:
        try:
            self.record("response", response.url, method=response.request.method, status=response.status)
        except Exception as exc:
            logger.debug("Dropped response event: {}", exc)

    def _on_console(self, message: Any) -> None:
        try:
            logger.debug("PAGE CONSOLE {} {}", message.type, message.text)
        except Exception as exc:
            logger.debug("Dropped console event: {}", exc)

    def _on_page_error(self, error: Any) -> None:
        logger.debug("PAGE ERROR: {}", error)

    def _handlers(self) -> list[tuple[str, Any]]:
        return [
            ("request", self._on_request),
            ("response", self._on_response),
            ("console", self._on_console),
            ("pageerror", self._on_page_error),
        ]

    def bind(self, page: Any) -> None:
        for event, handler in self._handlers():
            page.on(event, handler)
        self._page = page

    def detach(self) -> None:
        if self._page is None:
            return
        for event, handler in self._handlers():
            try:
                self._page.remove_listener(event, handler)
            except Exception as exc:
                logger.debug("Could not remove {} listener: {}", event, exc)
        self._page = None


def attach(
    session: Session,
    pattern: str | re.Pattern[str] | None = None,
    *,
    cap: int = DEFAULT_LOG_CAP,
) -> NetworkObserver:
    """Subscribe a new observer to the session's page.

    Requests fired during the initial page load are only visible to an observer
    bound before navigation, so attaching to a session that already navigated
    is refused.
    """

    if session.navigation_started or (session.page.url or "") not in _BLANK_URLS:
        raise ObserverOrderError("Network observer must be attached before navigation starts")
    observer = NetworkObserver(pattern, cap=cap)
    observer.bind(session.page)
    return observer
