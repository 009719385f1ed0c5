"""Interaction-and-capture engine components."""

from .diagnostics import DebugBundle, collect, write_debug_bundle
from .locator import CANDIDATE_SELECTORS, LocatedInput, locate
from .navigation import NavigationOutcome, harden, navigate
from .observer import MATCH_PATTERN, NetworkEvent, NetworkObserver, attach
from .sequencer import InteractionReport, InteractionSequencer, Timings, interact

__all__ = [
    "CANDIDATE_SELECTORS",
    "DebugBundle",
    "InteractionReport",
    "InteractionSequencer",
    "LocatedInput",
    "MATCH_PATTERN",
    "NavigationOutcome",
    "NetworkEvent",
    "NetworkObserver",
    "Timings",
    "attach",
    "collect",
    "harden",
    "interact",
    "locate",
    "navigate",
    "write_debug_bundle",
]
