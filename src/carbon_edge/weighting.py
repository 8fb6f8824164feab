"""Dual-grid weighting of user-side and edge-side carbon intensity."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from carbon_edge.errors import UnknownContentTypeError

__all__ = [
    "CONTENT_TYPE_WEIGHTS",
    "DEFAULT_CONTENT_TYPE",
    "ContentTypeWeightProfile",
    "WeightedIntensity",
    "compute_weighted",
    "get_weight_profile",
]

DEFAULT_CONTENT_TYPE: Final[str] = "static"


@dataclass(frozen=True, slots=True)
class ContentTypeWeightProfile:
    """Share of a delivery's footprint attributed to each grid.

    Attributes:
        transmission_weight: Fraction attributed to the user's grid
            (receiving, decoding and displaying content).
        computation_weight: Fraction attributed to the edge's grid
            (processing and serving content).
    """

    transmission_weight: float
    computation_weight: float

    def __post_init__(self) -> None:
        total = self.transmission_weight + self.computation_weight
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Weight profile must sum to 1.0, got {total}")


@dataclass(frozen=True, slots=True)
class WeightedIntensity:
    """Result of blending two intensities with a content-type profile."""

    weighted: float
    transmission_weight: float
    computation_weight: float


CONTENT_TYPE_WEIGHTS: Final[Mapping[str, ContentTypeWeightProfile]] = (
    MappingProxyType(
        {
            "static": ContentTypeWeightProfile(0.80, 0.20),
            "video": ContentTypeWeightProfile(0.60, 0.40),
            "api": ContentTypeWeightProfile(0.40, 0.60),
            "dynamic": ContentTypeWeightProfile(0.30, 0.70),
            "database": ContentTypeWeightProfile(0.25, 0.75),
            "ai": ContentTypeWeightProfile(0.20, 0.80),
        }
    )
)


def get_weight_profile(content_type: str) -> ContentTypeWeightProfile:
    """Return the registered profile for ``content_type``.

    Raises:
        UnknownContentTypeError: If ``content_type`` is not registered.
    """

    try:
        return CONTENT_TYPE_WEIGHTS[content_type]
    except KeyError:
        raise UnknownContentTypeError(content_type) from None


def compute_weighted(
    user_intensity: float, edge_intensity: float, content_type: str
) -> WeightedIntensity:
    """Blend user and edge intensities for ``content_type``.

    Args:
        user_intensity: Carbon intensity of the user's grid (gCO2/kWh).
        edge_intensity: Carbon intensity of the edge's grid (gCO2/kWh).
        content_type: Registered content-type key.

    Returns:
        The weighted intensity ``user*tw + edge*cw`` with the weights used.

    Raises:
        UnknownContentTypeError: If ``content_type`` is not registered.
        ValueError: If either intensity is negative.
    """

    if user_intensity < 0 or edge_intensity < 0:
        raise ValueError("Carbon intensities must be non-negative")
    profile = get_weight_profile(content_type)
    weighted = (
        user_intensity * profile.transmission_weight
        + edge_intensity * profile.computation_weight
    )
    return WeightedIntensity(
        weighted=weighted,
        transmission_weight=profile.transmission_weight,
        computation_weight=profile.computation_weight,
    )
