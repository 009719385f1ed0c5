"""Result collection and forensic debug bundles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from squarefinder.storage.artifacts import write_json, write_text

if TYPE_CHECKING:
    from squarefinder.capture.observer import NetworkObserver

FAILURE_LOG_LIMIT = 1000
COMPLETION_LOG_LIMIT = 2000


@dataclass(slots=True)
class DebugBundle:
    """Paths of the artifacts that were actually written."""

    html_snapshot: Path | None = None
    screenshot: Path | None = None
    request_log: Path | None = None

    def paths(self) -> list[Path]:
        return [p for p in (self.html_snapshot, self.screenshot, self.request_log) if p is not None]


def collect(observer: NetworkObserver) -> list[str]:
    """Matched URLs, deduplicated and sorted for stable output."""

    return sorted(observer.matches())


def debug_prefix(debug_dir: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S%fZ")
    return debug_dir / f"squarefinder_{stamp}"


async def write_debug_bundle(
    page: Any,
    observer: NetworkObserver | None,
    prefix: Path,
    label: str,
    *,
    log_limit: int = FAILURE_LOG_LIMIT,
) -> DebugBundle | None:
    """Persist markup, a full-page screenshot and the tail of the request log.

    Each artifact is attempted independently and write errors are logged and
    swallowed, so this never masks the failure that triggered it.
    """

    bundle = DebugBundle()
    base = f"{prefix}.{label}"

    try:
        html = await page.content()
        html_path = Path(f"{base}.html")
        write_text(html_path, html)
        bundle.html_snapshot = html_path
    except Exception as exc:
        logger.warning("Could not save HTML snapshot: {}", exc)

    try:
        shot_path = Path(f"{base}.png")
        shot_path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(shot_path), full_page=True)
        bundle.screenshot = shot_path
    except Exception as exc:
        logger.warning("Could not save screenshot: {}", exc)

    if observer is not None:
        try:
            rows = [event.to_dict() for event in observer.log()[-log_limit:]]
            log_path = Path(f"{base}.requests.json")
            write_json(log_path, rows)
            bundle.request_log = log_path
        except Exception as exc:
            logger.warning("Could not save request log: {}", exc)

    if not bundle.paths():
        return None
    logger.info("Saved {} debug artifacts: {}", label, ", ".join(str(p) for p in bundle.paths()))
    return bundle
