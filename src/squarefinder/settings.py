"""Runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from squarefinder.capture.sequencer import Timings
from squarefinder.clients.browser import BrowserConfig, Viewport

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/115.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="SQUAREFINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    target_url: str = "https://map.coveragemap.com/"
    match_pattern: str = r"square\?id=\d+"

    browser_engine: Literal["chromium", "camoufox"] = "chromium"
    headless: bool = True
    sandbox_disabled: bool = True
    viewport_width: int = Field(default=1280, ge=320, le=7680)
    viewport_height: int = Field(default=800, ge=240, le=4320)
    executable_path: Path | None = None
    remote_endpoint: SecretStr | None = None
    user_agent: str = DEFAULT_USER_AGENT

    navigation_timeout: float = Field(default=60.0, ge=1, le=600)
    request_timeout: float = Field(default=180.0, ge=1, le=1800)
    max_concurrent_sessions: int = Field(default=2, ge=1, le=32)
    event_log_cap: int = Field(default=2000, ge=10, le=100_000)

    debug_dir: Path = Path("/tmp")
    debug_artifacts: Literal["on_failure", "always"] = "on_failure"
    capture_on_navigation_timeout: bool = False

    settle_delay: float = Field(default=1.5, ge=0)
    type_delay_ms: float = Field(default=80.0, ge=0)
    suggestion_wait: float = Field(default=1.2, ge=0)
    nudge_wait: float = Field(default=0.8, ge=0)
    match_wait: float = Field(default=1.4, ge=0)
    map_click_wait: float = Field(default=2.0, ge=0)
    final_wait: float = Field(default=4.0, ge=0)

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    def browser_config(self) -> BrowserConfig:
        """Build the explicit provider configuration from these settings."""

        return BrowserConfig(
            engine=self.browser_engine,
            headless=self.headless,
            sandbox_disabled=self.sandbox_disabled,
            viewport=Viewport(width=self.viewport_width, height=self.viewport_height),
            executable_path=str(self.executable_path) if self.executable_path else None,
            remote_endpoint=self.remote_endpoint.get_secret_value() if self.remote_endpoint else None,
            user_agent=self.user_agent,
            navigation_timeout_ms=self.navigation_timeout * 1000,
        )

    def timings(self) -> Timings:
        return Timings(
            settle_delay=self.settle_delay,
            type_delay_ms=self.type_delay_ms,
            suggestion_wait=self.suggestion_wait,
            nudge_wait=self.nudge_wait,
            match_wait=self.match_wait,
            map_click_wait=self.map_click_wait,
            final_wait=self.final_wait,
        )
