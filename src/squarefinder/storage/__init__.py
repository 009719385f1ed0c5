"""Storage helpers."""

from .artifacts import read_json, write_json, write_text

__all__ = [
    "read_json",
    "write_json",
    "write_text",
]
