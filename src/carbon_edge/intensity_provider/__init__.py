"""Carbon intensity provider implementations and abstractions."""

from __future__ import annotations

from carbon_edge.intensity_provider.base import (
    CacheStats,
    CarbonIntensityProvider,
    estimate_fossil_percentage,
    project_green_window,
)
from carbon_edge.intensity_provider.electricitymaps import ElectricityMapsProvider
from carbon_edge.intensity_provider.fallback import FallbackIntensityProvider
from carbon_edge.intensity_provider.static import StaticIntensityProvider

__all__ = [
    "CacheStats",
    "CarbonIntensityProvider",
    "ElectricityMapsProvider",
    "FallbackIntensityProvider",
    "StaticIntensityProvider",
    "estimate_fossil_percentage",
    "project_green_window",
]
