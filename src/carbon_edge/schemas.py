"""Pydantic models describing the public carbon-edge wire schemas.

All models are immutable and serialise with camelCase field names. Units:
distances in km, latency in ms, intensity in gCO2/kWh, shares in percent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "FALLBACK_SOURCE",
    "Action",
    "CDNProviderSummary",
    "CarbonSample",
    "DualGridResult",
    "EdgeAlternative",
    "GreenWindow",
    "Recommendation",
    "TimeBasedStrategy",
]

FALLBACK_SOURCE = "fallback"

Action = Literal["proceed", "optimize", "defer", "relocate"]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def model_dump_json_ready(self) -> dict[str, object]:
        """Return a JSON-serialisable payload using wire field names."""

        return self.model_dump(mode="json", by_alias=True)


class CarbonSample(_WireModel):
    """Carbon intensity snapshot for one location, captured per fetch."""

    location: str = Field(..., min_length=1, description="Requested location name.")
    carbon_intensity: float = Field(
        ..., ge=0.0, description="Grid carbon intensity (gCO2/kWh)."
    )
    renewable_percent: float = Field(
        ..., ge=0.0, le=100.0, description="Share of renewable generation (%)."
    )
    captured_at: datetime = Field(..., description="Observation timestamp (UTC).")
    source: str = Field(
        ...,
        min_length=1,
        description="Data provenance; 'fallback' marks synthetic estimates.",
    )
    grid_zone: str | None = Field(default=None, description="Resolved grid zone.")
    fossil_fuel_percentage: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Share of fossil generation (%)."
    )

    @property
    def is_fallback(self) -> bool:
        """Whether this sample is a synthetic degraded-mode estimate."""

        return self.source == FALLBACK_SOURCE


class GreenWindow(_WireModel):
    """Forecast interval of expected low grid carbon intensity."""

    start: datetime
    end: datetime
    carbon_intensity: float = Field(..., ge=0.0)
    renewable_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    confidence: float = Field(default=0.0, ge=0.0, le=100.0)


class TimeBasedStrategy(_WireModel):
    """Deferral advice naming the next low-carbon window."""

    next_optimal_window_start: datetime
    next_optimal_window_end: datetime
    confidence: float = Field(..., ge=0.0, le=100.0)


class EdgeAlternative(_WireModel):
    """A candidate edge location with its carbon and network characteristics."""

    location: str = Field(..., description="City served by the edge.")
    provider: str = Field(..., description="Display name of the CDN provider.")
    carbon_intensity: float = Field(..., ge=0.0)
    distance_km: float = Field(..., ge=0.0)
    estimated_latency_ms: int = Field(..., ge=0)
    availability_score: float = Field(..., ge=0.0, le=100.0)
    edge_id: str | None = None
    grid_zone: str | None = None
    degraded: bool = Field(
        default=False,
        description="True when the intensity is a fallback estimate.",
    )


class Recommendation(_WireModel):
    """Action advice derived from a dual-grid result."""

    action: Action
    reason: str
    optimization_tips: list[str] = Field(default_factory=list)
    alternatives: list[EdgeAlternative] = Field(default_factory=list)
    estimated_savings_grams_co2: float | None = Field(
        default=None, alias="estimatedSavingsGramsCO2"
    )
    time_based_strategy: TimeBasedStrategy | None = None


class DualGridResult(_WireModel):
    """Composed dual-grid analysis for one request."""

    user_sample: CarbonSample
    edge_sample: CarbonSample
    weighted_intensity: float = Field(..., ge=0.0)
    transmission_weight: float = Field(..., ge=0.0, le=1.0)
    computation_weight: float = Field(..., ge=0.0, le=1.0)
    distance_km: float | None = Field(default=None, ge=0.0)
    network_hop_estimate: int | None = Field(default=None, ge=0)
    content_type: str
    recommendation: Recommendation
    computed_at: datetime
    degraded: bool = False
    notices: list[str] = Field(
        default_factory=list,
        description="Explicit substitutions applied while computing the result.",
    )

    def __str__(self) -> str:
        return (
            f"Dual-Grid Carbon: User({self.user_sample.location}: "
            f"{self.user_sample.carbon_intensity:.1f}) <-> "
            f"Edge({self.edge_sample.location}: "
            f"{self.edge_sample.carbon_intensity:.1f}) = Weighted: "
            f"{self.weighted_intensity:.1f} g CO2/kWh"
        )


class CDNProviderSummary(_WireModel):
    """Catalog summary for one CDN provider."""

    key: str
    name: str
    default_edge_selection_strategy: str
    carbon_aware_routing_supported: bool
    edge_count: int = Field(..., ge=0)
    renewable_edge_count: int = Field(..., ge=0)
