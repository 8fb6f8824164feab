"""Default data loaders for dual-grid estimation.

The module centralises resource access for packaged defaults: per-zone
average carbon intensities (used by the static and fallback providers),
per-content-type energy use, and the location gazetteer. Callers receive
plain typed mappings cached for the lifetime of the process.
"""

from __future__ import annotations

import json
import logging
import pathlib
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

from carbon_edge.settings import get_settings

LOGGER = logging.getLogger(__name__)

_FALLBACK_GLOBAL_AVERAGE: Final[float] = 475.0

_FALLBACK_ENERGY_KWH_PER_HOUR: Final[dict[str, float]] = {
    "static": 0.010,
    "api": 0.025,
    "video": 0.120,
    "dynamic": 0.040,
    "database": 0.060,
    "ai": 0.300,
}


@dataclass(frozen=True, slots=True)
class LocationEntry:
    """Gazetteer entry mapping a place name to a grid zone and coordinate."""

    zone: str
    latitude: float
    longitude: float


@lru_cache(maxsize=1)
def _load_defaults_document() -> dict[str, object]:
    """Return the parsed defaults document.

    Raises:
        FileNotFoundError: Raised when ``CARBON_EDGE_DEFAULTS_FILE`` points to
            a missing file.
        RuntimeError: Raised when the override file is not valid JSON.
    """

    override_path = get_settings().defaults_file
    if override_path:
        path = pathlib.Path(override_path)
        if not path.exists():
            msg = f"CARBON_EDGE_DEFAULTS_FILE not found: {path}"
            raise FileNotFoundError(msg)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("Failed to parse defaults override JSON") from exc
        return data if isinstance(data, dict) else {}

    try:
        import importlib.resources as resources

        text = (
            resources.files("carbon_edge.data")
            .joinpath("defaults.json")
            .read_text(encoding="utf-8")
        )
        data = json.loads(text)
    except (OSError, ValueError) as exc:  # pragma: no cover - packaging error
        LOGGER.error("Failed to load packaged defaults: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def _float_mapping(raw: object, section: str) -> dict[str, float]:
    if not isinstance(raw, dict):
        if raw is not None:
            LOGGER.warning(
                "Unexpected %s payload type %s; ignoring", section, type(raw)
            )
        return {}
    parsed: dict[str, float] = {}
    for key, value in raw.items():
        try:
            parsed[str(key)] = float(value)
        except (TypeError, ValueError):
            LOGGER.warning("Skipping invalid %s entry for key %s", section, key)
    return parsed


@lru_cache(maxsize=1)
def load_zone_intensities() -> dict[str, float]:
    """Load typical carbon intensity per grid zone.

    Returns:
        Mapping of grid zone identifiers to gCO2/kWh averages.
    """

    return _float_mapping(
        _load_defaults_document().get("ZONE_INTENSITY"), "ZONE_INTENSITY"
    )


def global_average_intensity() -> float:
    """Return the intensity used for zones absent from the defaults table."""

    raw = _load_defaults_document().get("GLOBAL_AVERAGE_INTENSITY")
    try:
        return float(raw) if raw is not None else _FALLBACK_GLOBAL_AVERAGE
    except (TypeError, ValueError):
        return _FALLBACK_GLOBAL_AVERAGE


@lru_cache(maxsize=1)
def load_energy_kwh_per_hour() -> dict[str, float]:
    """Load per-content-type delivery energy in kWh per hour of service.

    Returns:
        Mapping of content types to kWh/h, falling back to built-in values.
    """

    parsed = _float_mapping(
        _load_defaults_document().get("ENERGY_KWH_PER_HOUR"), "ENERGY_KWH_PER_HOUR"
    )
    return parsed or dict(_FALLBACK_ENERGY_KWH_PER_HOUR)


@lru_cache(maxsize=1)
def load_locations() -> dict[str, LocationEntry]:
    """Load the lower-cased place-name gazetteer.

    Returns:
        Mapping of normalised place names to :class:`LocationEntry` values.
    """

    raw = _load_defaults_document().get("LOCATIONS")
    if not isinstance(raw, dict):
        return {}
    entries: dict[str, LocationEntry] = {}
    for name, item in raw.items():
        if not isinstance(item, dict):
            continue
        try:
            entries[str(name).strip().lower()] = LocationEntry(
                zone=str(item["zone"]),
                latitude=float(item["latitude"]),
                longitude=float(item["longitude"]),
            )
        except (KeyError, TypeError, ValueError):
            LOGGER.warning("Skipping invalid location entry %s", name)
    return entries


def clear_caches() -> None:
    """Drop cached defaults so the next call re-reads them."""

    _load_defaults_document.cache_clear()
    load_zone_intensities.cache_clear()
    load_energy_kwh_per_hour.cache_clear()
    load_locations.cache_clear()
