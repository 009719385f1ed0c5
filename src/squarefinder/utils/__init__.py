"""Utility helpers."""

from .parsing import SearchInput, parse_search_body

__all__ = ["SearchInput", "parse_search_body"]
