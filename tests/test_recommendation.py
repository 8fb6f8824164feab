"""Tests for the recommendation thresholds, tips and savings."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carbon_edge.recommendation import classify, optimization_tips, recommend
from carbon_edge.schemas import EdgeAlternative, GreenWindow


def _alternative(intensity: float) -> EdgeAlternative:
    return EdgeAlternative(
        location="Stockholm",
        provider="CloudFlare",
        carbon_intensity=intensity,
        distance_km=800.0,
        estimated_latency_ms=50,
        availability_score=95.0,
        edge_id="stockholm",
    )


def _recommend(weighted: float, alternatives: list[EdgeAlternative], **kwargs):
    params = {
        "weighted_intensity": weighted,
        "content_type": "static",
        "user_intensity": weighted,
        "edge_intensity": weighted,
        "alternatives": alternatives,
    }
    params.update(kwargs)
    return recommend(**params)


@pytest.mark.parametrize(
    ("weighted", "has_alternatives", "action"),
    [
        (149.0, False, "proceed"),
        (150.0, False, "optimize"),
        (299.0, False, "optimize"),
        (299.0, True, "optimize"),
        (300.0, True, "relocate"),
        (300.0, False, "defer"),
    ],
)
def test_threshold_table(weighted: float, has_alternatives: bool, action: str) -> None:
    assert classify(weighted, has_alternatives) == action


def test_proceed_reason_mentions_low_intensity() -> None:
    rec = _recommend(149.0, [])

    assert rec.action == "proceed"
    assert "low carbon intensity" in rec.reason
    assert rec.estimated_savings_grams_co2 is None
    assert rec.time_based_strategy is None


@pytest.mark.parametrize(
    ("content_type", "fragment"),
    [
        ("video", "adaptive bitrate"),
        ("video", "AV1"),
        ("api", "caching"),
        ("api", "Batch"),
        ("static", "1 year+"),
        ("ai", "quantized"),
        ("database", "replicas"),
        ("dynamic", "query results"),
    ],
)
def test_optimize_tips_are_content_specific(content_type: str, fragment: str) -> None:
    tips = optimization_tips(content_type, 100.0, 200.0)

    assert any(fragment in tip for tip in tips)


def test_optimize_tips_depend_on_dirtier_grid() -> None:
    user_dirtier = optimization_tips("static", 400.0, 100.0)
    edge_dirtier = optimization_tips("static", 100.0, 400.0)

    assert any("locally" in tip for tip in user_dirtier)
    assert any("pre-computed" in tip for tip in edge_dirtier)


def test_relocate_estimates_savings_from_best_alternative() -> None:
    rec = _recommend(
        320.0,
        [_alternative(40.0), _alternative(100.0)],
        content_type="video",
        edge_intensity=400.0,
    )

    assert rec.action == "relocate"
    assert "90% lower" in rec.reason
    assert rec.estimated_savings_grams_co2 == pytest.approx((400.0 - 40.0) * 0.120)
    assert len(rec.alternatives) == 2
    assert rec.time_based_strategy is None


def test_defer_forwards_green_window() -> None:
    start = datetime(2024, 1, 1, 23, tzinfo=timezone.utc)
    window = GreenWindow(
        start=start,
        end=start.replace(hour=23, minute=59),
        carbon_intensity=180.0,
        confidence=70.0,
    )

    rec = _recommend(350.0, [], forecast=window)

    assert rec.action == "defer"
    assert rec.time_based_strategy is not None
    assert rec.time_based_strategy.next_optimal_window_start == start
    assert rec.time_based_strategy.confidence == 70.0


def test_defer_without_forecast_has_no_strategy() -> None:
    rec = _recommend(350.0, [])

    assert rec.action == "defer"
    assert rec.time_based_strategy is None


def test_forecast_is_ignored_unless_deferring() -> None:
    start = datetime(2024, 1, 1, 23, tzinfo=timezone.utc)
    window = GreenWindow(start=start, end=start, carbon_intensity=10.0)

    rec = _recommend(200.0, [], forecast=window)

    assert rec.time_based_strategy is None


def test_recommendation_serialises_with_wire_names() -> None:
    rec = _recommend(320.0, [_alternative(40.0)], edge_intensity=400.0)
    payload = rec.model_dump_json_ready()

    assert "estimatedSavingsGramsCO2" in payload
    assert "optimizationTips" in payload
    assert payload["alternatives"][0]["estimatedLatencyMs"] == 50
