"""Fallback chaining provider for carbon intensity lookups."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from carbon_edge.errors import UpstreamFetchError
from carbon_edge.intensity_provider.base import CarbonIntensityProvider
from carbon_edge.schemas import CarbonSample, GreenWindow

LOGGER = logging.getLogger(__name__)


class FallbackIntensityProvider(CarbonIntensityProvider):
    """Try a sequence of providers until one succeeds."""

    def __init__(
        self, providers: Iterable[CarbonIntensityProvider], ttl_seconds: int = 300
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds)
        self._providers = tuple(providers)

    @property
    def providers(self) -> tuple[CarbonIntensityProvider, ...]:
        """Providers in the order they are consulted."""

        return self._providers

    async def _fetch_uncached(self, location: str) -> CarbonSample | None:
        """Return the first successful sample from the provider chain.

        Args:
            location: Place name or grid zone forwarded to providers.

        Returns:
            The first successful sample, otherwise ``None`` when all
            providers fail.
        """

        for provider in self._providers:
            try:
                return await provider.get_carbon_intensity(location)
            except (UpstreamFetchError, ValueError, httpx.HTTPError) as exc:
                LOGGER.warning(
                    "Fallback provider invocation failed",
                    extra={
                        "provider": provider.name,
                        "location": location,
                        "error_type": type(exc).__name__,
                    },
                    exc_info=exc,
                )
        return None

    async def get_green_window(
        self, location: str, hours: int = 24
    ) -> GreenWindow | None:
        """Return the first green window any provider in the chain offers."""

        for provider in self._providers:
            try:
                window = await provider.get_green_window(location, hours)
            except (UpstreamFetchError, ValueError, httpx.HTTPError) as exc:
                LOGGER.warning(
                    "Fallback green window lookup failed",
                    extra={
                        "provider": provider.name,
                        "location": location,
                        "error_type": type(exc).__name__,
                    },
                    exc_info=exc,
                )
                continue
            if window is not None:
                return window
        return None
