"""HTTP service exposing the capture engine.

Run: squarefinder serve --port 3000
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Literal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from squarefinder import __version__
from squarefinder.engine import SquareFinder
from squarefinder.errors import (
    InputNotFoundError,
    InteractionError,
    NavigationError,
    ProvisioningError,
    SquareFinderError,
)
from squarefinder.settings import Settings
from squarefinder.utils.parsing import parse_search_body

MAX_BODY_BYTES = 200 * 1024
RAW_BODY_LOG_CHARS = 2000

ERROR_STATUS: dict[type[SquareFinderError], int] = {
    ProvisioningError: 503,
    NavigationError: 502,
    InputNotFoundError: 502,
    InteractionError: 500,
}


class ExtractResponse(BaseModel):
    status: Literal["success"] = "success"
    address: str
    xhr_urls: list[str] = Field(serialization_alias="xhrUrls")
    count: int
    timestamp: str


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    error: str


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def status_for(exc: SquareFinderError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


def create_app(settings: Settings | None = None, finder: SquareFinder | None = None) -> FastAPI:
    """Build the service around one engine; each request still gets its own browser session."""

    settings = settings or Settings()
    finder = finder or SquareFinder(settings)
    slots = asyncio.Semaphore(settings.max_concurrent_sessions)

    app = FastAPI(
        title="squarefinder",
        description="Search an address on the coverage map and return the square?id= requests it fires",
        version=__version__,
    )
    app.state.settings = settings
    app.state.finder = finder
    app.state.session_slots = slots

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/extract-xhr")
    async def extract_xhr(request: Request) -> JSONResponse:
        body = await request.body()
        if len(body) > MAX_BODY_BYTES:
            return _error(413, "Request body too large")
        logger.debug(
            "Raw request body (first {} chars): {}",
            RAW_BODY_LOG_CHARS,
            body[:RAW_BODY_LOG_CHARS].decode("utf-8", errors="replace"),
        )

        search = parse_search_body(body)
        if search is None:
            return _error(400, "Please provide an address or lat & lng (valid JSON).")

        search_text = search.text

        async def _run_in_slot() -> list[str]:
            async with slots:
                return await finder.run(search_text)

        try:
            urls = await asyncio.wait_for(_run_in_slot(), timeout=settings.request_timeout)
        except TimeoutError:
            logger.error("extract-xhr timed out after {}s for {}", settings.request_timeout, search_text)
            return _error(504, f"Timed out after {settings.request_timeout:g}s")
        except SquareFinderError as exc:
            logger.error("extract-xhr error: {}", exc)
            return _error(status_for(exc), exc.message)
        except Exception as exc:
            logger.exception("extract-xhr unexpected error")
            return _error(500, str(exc))

        payload = ExtractResponse(address=search_text, xhr_urls=urls, count=len(urls), timestamp=_utc_timestamp())
        return JSONResponse(content=payload.model_dump(by_alias=True))

    return app
