"""Resolve free-form location names to grid zones and coordinates."""

from __future__ import annotations

import re
from dataclasses import dataclass

from carbon_edge.defaults import load_locations
from carbon_edge.geo import Coordinate
from carbon_edge.settings import CarbonEdgeSettings, get_settings

__all__ = [
    "ResolvedLocation",
    "default_user_coordinate",
    "resolve_location",
    "resolve_zone",
]

_ZONE_PATTERN = re.compile(r"^[A-Z]{2}(?:-[A-Z0-9]+)*$")


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """A location name with whatever could be resolved about it."""

    name: str
    zone: str | None
    coordinate: Coordinate | None


def resolve_zone(location: str) -> str | None:
    """Map a place name or grid zone code to a grid zone.

    Gazetteer names are matched case-insensitively (``"Berlin"`` -> ``DE``).
    Inputs already shaped like an upper-case zone code (``"US-CAL-CISO"``)
    are passed through unchanged.

    Returns:
        The grid zone, or ``None`` when the location is unknown.
    """

    cleaned = location.strip()
    entry = load_locations().get(cleaned.lower())
    if entry is not None:
        return entry.zone
    if _ZONE_PATTERN.match(cleaned):
        return cleaned
    return None


def resolve_location(location: str) -> ResolvedLocation:
    """Resolve a location name to its zone and, when known, its coordinate."""

    cleaned = location.strip()
    entry = load_locations().get(cleaned.lower())
    if entry is not None:
        return ResolvedLocation(
            name=cleaned,
            zone=entry.zone,
            coordinate=Coordinate(entry.latitude, entry.longitude),
        )
    return ResolvedLocation(name=cleaned, zone=resolve_zone(cleaned), coordinate=None)


def default_user_coordinate(settings: CarbonEdgeSettings | None = None) -> Coordinate:
    """Return the configured fallback user coordinate (Berlin by default)."""

    settings_obj = settings or get_settings()
    return Coordinate(
        settings_obj.default_user_latitude, settings_obj.default_user_longitude
    )
