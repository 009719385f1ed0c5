"""Atomic artifact persistence."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        Path(tmp_path).replace(path)
    except BaseException:  # pragma: no cover
        Path(tmp_path).unlink(missing_ok=True)
        raise


def write_text(path: Path, text: str) -> None:
    """Write text atomically via tempfile + os.replace."""

    _write_atomic(path, text.encode("utf-8"))


def write_json(path: Path, payload: Any) -> None:
    """Write a JSON document atomically, pretty-printed."""

    _write_atomic(path, json.dumps(payload, indent=2, default=str).encode("utf-8"))


def read_json(path: Path) -> Any:
    if not path.exists():
        return None
    return json.loads(path.read_text())
