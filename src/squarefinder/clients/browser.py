"""Browser session provisioning: local Playwright launch, remote CDP connection, or Camoufox."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal
from urllib.parse import urlsplit, urlunsplit

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from squarefinder.errors import ProvisioningError

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

_BASE_ARGS = (
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
)
_NO_SANDBOX_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
)


@dataclass(slots=True)
class Viewport:
    width: int = 1280
    height: int = 800


@dataclass(slots=True)
class BrowserConfig:
    """Explicit provisioning options; a set remote_endpoint selects connect over launch."""

    engine: Literal["chromium", "camoufox"] = "chromium"
    headless: bool = True
    sandbox_disabled: bool = True
    viewport: Viewport = field(default_factory=Viewport)
    executable_path: str | None = None
    remote_endpoint: str | None = None
    user_agent: str | None = None
    extra_args: tuple[str, ...] = ()
    navigation_timeout_ms: float = 60_000

    def launch_args(self) -> list[str]:
        args = list(_BASE_ARGS)
        if self.sandbox_disabled:
            args.extend(_NO_SANDBOX_ARGS)
        args.extend(self.extra_args)
        return args


@dataclass(slots=True)
class Session:
    """One browser + page pairing owned by a single engine invocation."""

    page: Page
    browser: Browser | None = None
    context: BrowserContext | None = None
    navigation_started: bool = False
    closed: bool = False
    _stack: contextlib.AsyncExitStack = field(default_factory=contextlib.AsyncExitStack, repr=False)


def redact_endpoint(endpoint: str) -> str:
    """Drop credentials and query string from an endpoint URL before logging it."""

    parts = urlsplit(endpoint)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


def _quietly(label: str, close: Callable[[], Awaitable[object]]) -> Callable[[], Awaitable[None]]:
    async def _run() -> None:
        try:
            await close()
        except Exception as exc:
            logger.debug("Ignoring error while closing {}: {}", label, exc)

    return _run


class SessionProvider:
    """Acquire and release browser sessions.

    Every resource acquired for a session is registered on the session's exit
    stack as it is obtained, so a partial failure releases exactly what was
    opened and ``release`` can tear down a session whose connection already died.
    """

    async def acquire(self, config: BrowserConfig) -> Session:
        stack = contextlib.AsyncExitStack()
        try:
            browser = await self._open_browser(config, stack)
            context_kwargs: dict[str, object] = {
                "viewport": {"width": config.viewport.width, "height": config.viewport.height},
            }
            if config.user_agent and config.engine == "chromium":
                context_kwargs["user_agent"] = config.user_agent
            context = await browser.new_context(**context_kwargs)
            stack.push_async_callback(_quietly("context", context.close))
            page = await context.new_page()
            page.set_default_navigation_timeout(config.navigation_timeout_ms)
            page.set_default_timeout(config.navigation_timeout_ms)
        except ProvisioningError:
            await stack.aclose()
            raise
        except (PlaywrightError, OSError) as exc:
            await stack.aclose()
            raise ProvisioningError(f"Could not open a browser page: {exc}") from exc
        except BaseException:
            # cancellation or an unexpected error still tears down what was opened
            await stack.aclose()
            raise

        logger.debug("Session acquired (engine={}, remote={})", config.engine, config.remote_endpoint is not None)
        return Session(page=page, browser=browser, context=context, _stack=stack)

    async def _open_browser(self, config: BrowserConfig, stack: contextlib.AsyncExitStack) -> Browser:
        if config.engine == "camoufox" and not config.remote_endpoint:
            return await self._launch_camoufox(config, stack)

        try:
            driver = await async_playwright().start()
        except (PlaywrightError, OSError) as exc:
            raise ProvisioningError(f"Playwright driver failed to start: {exc}") from exc
        stack.push_async_callback(_quietly("playwright driver", driver.stop))

        if config.remote_endpoint:
            endpoint = redact_endpoint(config.remote_endpoint)
            logger.info("Connecting to remote browser at {}", endpoint)
            try:
                browser = await driver.chromium.connect_over_cdp(config.remote_endpoint)
            except (PlaywrightError, OSError) as exc:
                raise ProvisioningError(f"Could not connect to remote browser at {endpoint}: {exc}") from exc
        else:
            logger.info("Launching local chromium (headless={})", config.headless)
            try:
                browser = await driver.chromium.launch(
                    headless=config.headless,
                    args=config.launch_args(),
                    executable_path=config.executable_path,
                )
            except (PlaywrightError, OSError) as exc:
                raise ProvisioningError(f"Could not launch local chromium: {exc}") from exc
        stack.push_async_callback(_quietly("browser", browser.close))
        return browser

    async def _launch_camoufox(self, config: BrowserConfig, stack: contextlib.AsyncExitStack) -> Browser:
        try:
            from camoufox.async_api import AsyncCamoufox
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise ProvisioningError("camoufox is not installed. Install extras: squarefinder[browser].") from exc

        logger.info("Launching camoufox (headless={})", config.headless)
        options: dict[str, object] = {"headless": config.headless}
        if config.executable_path:
            options["executable_path"] = config.executable_path
        manager = AsyncCamoufox(**options)
        try:
            browser = await manager.__aenter__()
        except Exception as exc:
            raise ProvisioningError(f"Could not launch camoufox: {exc}") from exc
        stack.push_async_callback(_quietly("camoufox", lambda: manager.__aexit__(None, None, None)))
        return browser

    async def release(self, session: Session) -> None:
        """Close everything the session owns. Safe to call twice or on a dead connection."""

        if session.closed:
            return
        session.closed = True
        try:
            await session._stack.aclose()
        except Exception as exc:
            logger.debug("Ignoring error during session release: {}", exc)
        logger.debug("Session released")

    @contextlib.asynccontextmanager
    async def session(self, config: BrowserConfig) -> AsyncIterator[Session]:
        """Scoped acquisition: the session is released on every exit path."""

        session = await self.acquire(config)
        try:
            yield session
        finally:
            await self.release(session)
