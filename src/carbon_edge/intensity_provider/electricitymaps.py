"""Electricity Maps (CO2 Signal) API provider."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from carbon_edge.intensity_provider.base import (
    CarbonIntensityProvider,
    project_green_window,
)
from carbon_edge.locations import resolve_zone
from carbon_edge.schemas import CarbonSample, GreenWindow
from carbon_edge.settings import CarbonEdgeSettings, get_settings

LOGGER = logging.getLogger(__name__)


class ElectricityMapsProvider(CarbonIntensityProvider):
    """Fetch live carbon intensity from the Electricity Maps CO2 Signal API."""

    def __init__(
        self,
        base_url: str | None = None,
        ttl_seconds: int = 300,
        *,
        token: str | None = None,
        timeout_seconds: float | None = None,
        settings: CarbonEdgeSettings | None = None,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds)
        self._settings = settings or get_settings()
        self._base = (base_url or self._settings.electricity_maps_base_url).rstrip("/")
        self._explicit_token = token
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else self._settings.http_timeout_seconds
        )

    async def _fetch_uncached(self, location: str) -> CarbonSample | None:
        """Fetch the latest intensity for the zone behind ``location``.

        Args:
            location: Place name or grid zone identifier.

        Returns:
            A carbon sample when successful, otherwise ``None``.
        """

        token = self._resolve_token()
        if not token:
            LOGGER.warning(
                "Electricity Maps token not configured",
                extra={"provider": self.name, "location": location},
            )
            return None

        zone = resolve_zone(location)
        if zone is None:
            LOGGER.warning(
                "Unknown location; no grid zone mapping",
                extra={"provider": self.name, "location": location},
            )
            return None

        url = f"{self._base}/latest"
        headers = {"auth-token": token, "User-Agent": "carbon-edge/0.1"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    url, params={"countryCode": zone}, headers=headers
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "Electricity Maps HTTP error",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "status_code": exc.response.status_code,
                    "url": url,
                },
                exc_info=exc,
            )
            return None
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Electricity Maps transport error",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "url": url,
                },
                exc_info=exc,
            )
            return None
        except (ValueError, TypeError) as exc:
            LOGGER.warning(
                "Electricity Maps response parsing error",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "url": url,
                },
                exc_info=exc,
            )
            return None
        except Exception as exc:  # pragma: no cover
            LOGGER.warning(
                "Electricity Maps unexpected error",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "url": url,
                },
                exc_info=exc,
            )
            return None

        return self._parse_payload(payload, location, zone)

    def _parse_payload(
        self, payload: object, location: str, zone: str
    ) -> CarbonSample | None:
        status = payload.get("status") if isinstance(payload, dict) else None
        if not isinstance(payload, dict) or status != "ok":
            LOGGER.warning(
                "Electricity Maps returned error status",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "status": status,
                },
            )
            return None

        data = payload.get("data")
        if not isinstance(data, dict):
            LOGGER.warning(
                "Electricity Maps response missing data",
                extra={"provider": self.name, "location": location, "zone": zone},
            )
            return None

        try:
            intensity = float(data["carbonIntensity"])
            fossil = float(data.get("fossilFuelPercentage") or 0.0)
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.warning(
                "Electricity Maps returned non-numeric intensity",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "value": data.get("carbonIntensity"),
                },
                exc_info=exc,
            )
            return None

        if intensity < 0:
            LOGGER.warning(
                "Electricity Maps reported negative intensity",
                extra={
                    "provider": self.name,
                    "location": location,
                    "zone": zone,
                    "value": intensity,
                },
            )
            return None

        fossil = max(0.0, min(fossil, 100.0))
        return CarbonSample(
            location=location,
            carbon_intensity=intensity,
            renewable_percent=100.0 - fossil,
            fossil_fuel_percentage=fossil,
            captured_at=_parse_timestamp(data.get("datetime")),
            source="electricity_maps",
            grid_zone=str(payload.get("countryCode") or zone),
        )

    async def get_green_window(
        self, location: str, hours: int = 24
    ) -> GreenWindow | None:
        """Project the next green window from the current live reading.

        The basic CO2 Signal API has no forecast endpoint, so the window is
        projected from the current sample using daily grid patterns.
        """

        sample = await self.get_carbon_intensity(location)
        return project_green_window(sample, hours)

    def _resolve_token(self) -> str | None:
        if self._explicit_token:
            return self._explicit_token
        return self._settings.electricity_maps_api_key


def _parse_timestamp(value: object) -> datetime:
    """Parse an ISO-8601 timestamp, defaulting to now (UTC)."""

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    return datetime.now(timezone.utc)
