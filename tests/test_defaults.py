"""Tests for packaged defaults and location resolution."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from carbon_edge import defaults
from carbon_edge.geo import Coordinate
from carbon_edge.locations import (
    default_user_coordinate,
    resolve_location,
    resolve_zone,
)
from carbon_edge.settings import CarbonEdgeSettings


@pytest.fixture
def fresh_defaults() -> Iterator[None]:
    defaults.clear_caches()
    yield
    defaults.clear_caches()


def test_packaged_tables_load() -> None:
    zones = defaults.load_zone_intensities()
    energy = defaults.load_energy_kwh_per_hour()

    assert zones["FR"] == 60.0
    assert zones["DE"] == 380.0
    assert defaults.global_average_intensity() == 475.0
    assert set(energy) == {"static", "api", "video", "dynamic", "database", "ai"}


def test_override_file_replaces_packaged_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_defaults: None
) -> None:
    override = tmp_path / "defaults.json"
    override.write_text(
        json.dumps(
            {
                "GLOBAL_AVERAGE_INTENSITY": 500,
                "ZONE_INTENSITY": {"DE": 111, "XX": "bad"},
                "LOCATIONS": {
                    "Gotham": {"zone": "US-NY", "latitude": 40.7, "longitude": -74.0}
                },
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("CARBON_EDGE_DEFAULTS_FILE", str(override))

    assert defaults.load_zone_intensities() == {"DE": 111.0}
    assert defaults.global_average_intensity() == 500.0
    assert defaults.load_energy_kwh_per_hour()["ai"] == 0.300
    assert resolve_zone("gotham") == "US-NY"


def test_missing_override_file_is_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_defaults: None
) -> None:
    monkeypatch.setenv("CARBON_EDGE_DEFAULTS_FILE", str(tmp_path / "missing.json"))

    with pytest.raises(FileNotFoundError):
        defaults.load_zone_intensities()


def test_invalid_override_json_is_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_defaults: None
) -> None:
    override = tmp_path / "defaults.json"
    override.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("CARBON_EDGE_DEFAULTS_FILE", str(override))

    with pytest.raises(RuntimeError):
        defaults.load_zone_intensities()


@pytest.mark.parametrize(
    ("location", "zone"),
    [
        ("Berlin", "DE"),
        ("  frankfurt ", "DE"),
        ("Stockholm", "SE"),
        ("US-CAL-CISO", "US-CAL-CISO"),
        ("FR", "FR"),
        ("Atlantis", None),
        ("fr", None),
    ],
)
def test_resolve_zone(location: str, zone: str | None) -> None:
    assert resolve_zone(location) == zone


def test_resolve_location_includes_coordinate() -> None:
    resolved = resolve_location("Berlin")

    assert resolved.zone == "DE"
    assert resolved.coordinate == Coordinate(52.52, 13.405)
    assert resolve_location("DE").coordinate is None


def test_default_user_coordinate_is_configurable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    assert default_user_coordinate(CarbonEdgeSettings()) == Coordinate(52.52, 13.405)

    monkeypatch.setenv("CARBON_EDGE_DEFAULT_LATITUDE", "48.8566")
    monkeypatch.setenv("CARBON_EDGE_DEFAULT_LONGITUDE", "2.3522")

    assert default_user_coordinate() == Coordinate(48.8566, 2.3522)
