"""Engine error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from squarefinder.capture.diagnostics import DebugBundle


class SquareFinderError(Exception):
    """Base class for failures surfaced by the capture engine."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ProvisioningError(SquareFinderError):
    """Raised when neither a local launch nor a remote connection yields a browser."""


class NavigationError(SquareFinderError):
    """Raised when the target page fails to load outright (a soft timeout is not an error)."""


class InputNotFoundError(SquareFinderError):
    """Raised when every input discovery strategy is exhausted."""

    def __init__(self, message: str, bundle: DebugBundle | None = None) -> None:
        self.bundle = bundle
        super().__init__(message)


class InteractionError(SquareFinderError):
    """Raised when a failure during typing, selection or map probing could not be absorbed."""


class ObserverOrderError(SquareFinderError):
    """Raised when the network observer is attached after navigation has started."""
