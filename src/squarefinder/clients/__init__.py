"""Client abstractions."""

from .browser import BrowserConfig, Session, SessionProvider, Viewport

__all__ = ["BrowserConfig", "Session", "SessionProvider", "Viewport"]
