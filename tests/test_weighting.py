"""Tests for content-type weight profiles and the dual-grid blend."""

from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from carbon_edge.errors import UnknownContentTypeError
from carbon_edge.weighting import (
    CONTENT_TYPE_WEIGHTS,
    ContentTypeWeightProfile,
    compute_weighted,
    get_weight_profile,
)

intensities = st.floats(
    min_value=0.0, max_value=2000.0, allow_nan=False, allow_infinity=False
)


def test_registered_content_types() -> None:
    assert set(CONTENT_TYPE_WEIGHTS) == {
        "static",
        "api",
        "video",
        "dynamic",
        "ai",
        "database",
    }


@pytest.mark.parametrize("content_type", sorted(CONTENT_TYPE_WEIGHTS))
def test_weights_sum_to_one(content_type: str) -> None:
    profile = get_weight_profile(content_type)
    assert abs(profile.transmission_weight + profile.computation_weight - 1.0) <= 1e-9


@given(
    user=intensities,
    edge=intensities,
    content_type=st.sampled_from(sorted(CONTENT_TYPE_WEIGHTS)),
)
def test_weighted_is_exact_linear_blend(
    user: float, edge: float, content_type: str
) -> None:
    profile = CONTENT_TYPE_WEIGHTS[content_type]
    result = compute_weighted(user, edge, content_type)

    assert result.weighted == (
        user * profile.transmission_weight + edge * profile.computation_weight
    )
    assert result.weighted >= 0.0
    assert result.transmission_weight == profile.transmission_weight
    assert result.computation_weight == profile.computation_weight


def test_static_scenario_weights_user_grid() -> None:
    result = compute_weighted(120.0, 95.0, "static")

    assert result.transmission_weight == 0.80
    assert result.computation_weight == 0.20
    assert result.weighted == pytest.approx(115.0)


def test_ai_scenario_weights_edge_grid() -> None:
    result = compute_weighted(120.0, 95.0, "ai")

    assert result.weighted == pytest.approx(100.0)


def test_unknown_content_type_is_rejected() -> None:
    with pytest.raises(UnknownContentTypeError, match="podcast"):
        compute_weighted(100.0, 100.0, "podcast")


def test_negative_intensity_is_rejected() -> None:
    with pytest.raises(ValueError):
        compute_weighted(-1.0, 100.0, "static")


def test_profile_rejects_weights_not_summing_to_one() -> None:
    with pytest.raises(ValueError):
        ContentTypeWeightProfile(0.5, 0.6)


def test_weight_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        CONTENT_TYPE_WEIGHTS["static"] = ContentTypeWeightProfile(  # type: ignore[index]
            0.5, 0.5
        )
