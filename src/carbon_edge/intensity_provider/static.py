"""Static intensity provider implementations."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from carbon_edge.intensity_provider.base import (
    CarbonIntensityProvider,
    estimate_fossil_percentage,
    project_green_window,
)
from carbon_edge.locations import resolve_zone
from carbon_edge.schemas import CarbonSample, GreenWindow


class StaticIntensityProvider(CarbonIntensityProvider):
    """Return static per-zone intensity values from an in-memory mapping.

    Serves as the mock provider when no live API is configured and, with
    ``source="fallback"``, as the orchestrator's synthetic estimate in
    degraded mode.
    """

    def __init__(
        self,
        mapping: Mapping[str, float],
        default: float,
        ttl_seconds: int = 3600,
        *,
        source: str = "static",
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds)
        self._mapping = dict(mapping)
        self._default = float(default)
        self._source = source

    async def _fetch_uncached(self, location: str) -> CarbonSample | None:
        """Return a static intensity for the zone behind ``location``.

        Args:
            location: Place name or grid zone identifier.

        Returns:
            Sample built from the mapping, or the default for unknown zones.
        """

        zone = resolve_zone(location)
        value = self._mapping.get(zone, self._default) if zone else self._default
        fossil = estimate_fossil_percentage(value)
        return CarbonSample(
            location=location,
            carbon_intensity=float(value),
            renewable_percent=100.0 - fossil,
            fossil_fuel_percentage=fossil,
            captured_at=datetime.now(timezone.utc),
            source=self._source,
            grid_zone=zone,
        )

    async def get_green_window(
        self, location: str, hours: int = 24
    ) -> GreenWindow | None:
        """Project a green window from the static reading."""

        sample = await self.get_carbon_intensity(location)
        return project_green_window(sample, hours)
