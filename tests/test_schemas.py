"""Tests for wire schemas."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from carbon_edge.schemas import CarbonSample, DualGridResult, Recommendation

NOW = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def _sample(location: str, intensity: float, source: str = "test") -> CarbonSample:
    return CarbonSample(
        location=location,
        carbon_intensity=intensity,
        renewable_percent=40.0,
        captured_at=NOW,
        source=source,
    )


def test_sample_serialises_with_camel_case_names() -> None:
    payload = _sample("Berlin", 120.0).model_dump_json_ready()

    assert payload["carbonIntensity"] == 120.0
    assert payload["renewablePercent"] == 40.0
    assert payload["capturedAt"] == "2024-01-01T12:00:00Z"


def test_sample_accepts_wire_names() -> None:
    sample = CarbonSample.model_validate(
        {
            "location": "Paris",
            "carbonIntensity": 60,
            "renewablePercent": 80,
            "capturedAt": "2024-01-01T12:00:00Z",
            "source": "fallback",
        }
    )

    assert sample.is_fallback


def test_sample_rejects_negative_intensity() -> None:
    with pytest.raises(ValidationError):
        _sample("Berlin", -1.0)


def test_models_are_frozen() -> None:
    sample = _sample("Berlin", 120.0)

    with pytest.raises(ValidationError):
        sample.carbon_intensity = 1.0  # type: ignore[misc]


def test_dual_grid_result_summary() -> None:
    result = DualGridResult(
        user_sample=_sample("Berlin", 120.0),
        edge_sample=_sample("Frankfurt", 95.0),
        weighted_intensity=115.0,
        transmission_weight=0.8,
        computation_weight=0.2,
        content_type="static",
        recommendation=Recommendation(action="proceed", reason="ok"),
        computed_at=NOW,
    )

    assert str(result) == (
        "Dual-Grid Carbon: User(Berlin: 120.0) <-> Edge(Frankfurt: 95.0) "
        "= Weighted: 115.0 g CO2/kWh"
    )
    payload = result.model_dump_json_ready()
    assert payload["distanceKm"] is None
    assert payload["notices"] == []
    assert payload["recommendation"]["estimatedSavingsGramsCO2"] is None
