"""Tolerant parsing of search request bodies."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any

_LAT_RE = re.compile(r"Lat\s*[:=]?\s*([+-]?\d+(?:\.\d+)?)", re.IGNORECASE)
_LNG_RE = re.compile(r"Lng\s*[:=]?\s*([+-]?\d+(?:\.\d+)?)", re.IGNORECASE)
_LABELLED_RE = re.compile(r"Lat\s*[:=].*Lng\s*[:=]", re.IGNORECASE | re.DOTALL)
_NUMBER_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")


@dataclass(slots=True)
class SearchInput:
    """Either an address or a coordinate pair."""

    address: str | None = None
    lat: float | None = None
    lng: float | None = None

    @property
    def text(self) -> str:
        """String typed into the site's search box."""

        if self.address:
            return self.address
        return f"Lat: {format_coordinate(self.lat)} Lng: {format_coordinate(self.lng)}"


def format_coordinate(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if value.is_integer() else repr(value)


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coordinates_from_text(text: str) -> tuple[float, float] | None:
    """Extract ``Lat: <n> Lng: <n>`` style coordinates from free text."""

    lat_match = _LAT_RE.search(text)
    lng_match = _LNG_RE.search(text)
    if not lat_match or not lng_match:
        return None
    return float(lat_match.group(1)), float(lng_match.group(1))


def _from_mapping(payload: dict[str, Any]) -> SearchInput | None:
    address = payload.get("address")
    if address:
        text = str(address).strip()
        return SearchInput(address=text) if text else None
    if "lat" in payload and "lng" in payload:
        lat = _to_float(payload["lat"])
        lng = _to_float(payload["lng"])
        if lat is not None and lng is not None:
            return SearchInput(lat=lat, lng=lng)
    return None


def _from_unquoted(text: str) -> SearchInput | None:
    if _LABELLED_RE.search(text):
        numbers = _NUMBER_RE.findall(text)
        if len(numbers) >= 2:
            return SearchInput(lat=float(numbers[0]), lng=float(numbers[1]))
        return None
    text = text.strip()
    return SearchInput(address=text) if text else None


def _from_text(text: str) -> SearchInput | None:
    text = text.strip()
    if not text:
        return None

    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        try:
            unquoted = json.loads(text)
        except json.JSONDecodeError:
            unquoted = None
        if isinstance(unquoted, str):
            found = _from_unquoted(unquoted)
            if found is not None:
                return found

    coords = coordinates_from_text(text)
    if coords is not None:
        return SearchInput(lat=coords[0], lng=coords[1])
    return SearchInput(address=text)


def parse_search_body(body: bytes | str) -> SearchInput | None:
    """Interpret a request body as ``{address}``, ``{lat, lng}`` or raw text.

    JSON objects must carry an address or both coordinates. Anything else is
    treated as text: a quoted JSON string is unwrapped, ``Lat: .. Lng: ..``
    becomes coordinates, and whatever remains is taken as the address.
    Returns ``None`` when nothing usable is found.
    """

    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            return _from_mapping(payload)
    return _from_text(stripped)
