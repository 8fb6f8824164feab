"""Provider orchestration helpers for carbon intensity lookups."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from carbon_edge.defaults import global_average_intensity, load_zone_intensities
from carbon_edge.intensity_provider import (
    CarbonIntensityProvider,
    ElectricityMapsProvider,
    FallbackIntensityProvider,
    StaticIntensityProvider,
)
from carbon_edge.schemas import FALLBACK_SOURCE
from carbon_edge.settings import CarbonEdgeSettings, get_settings

LOGGER = logging.getLogger(__name__)

__all__ = ["build_fallback_provider", "build_provider_chain"]


def build_provider_chain(
    *,
    provider_keys: Iterable[str],
    ttl_seconds: int,
    settings: CarbonEdgeSettings | None = None,
) -> CarbonIntensityProvider | None:
    """Construct an intensity provider chain.

    Args:
        provider_keys: Ordered collection of provider identifiers
            (``electricitymaps``, ``static``).
        ttl_seconds: Cache time-to-live for the provider chain.
        settings: Settings forwarded to live providers.

    Returns:
        A configured :class:`CarbonIntensityProvider` instance or ``None``
        when no providers could be initialised.
    """
    settings_obj = settings or get_settings()
    providers: list[CarbonIntensityProvider] = []
    for raw_key in provider_keys:
        name = raw_key.strip().lower()
        try:
            provider = _build_single_provider(
                name=name, ttl_seconds=ttl_seconds, settings=settings_obj
            )
        except (ValueError, TypeError) as exc:
            LOGGER.warning(
                "Failed to initialise provider '%s' (ttl=%s): %s",
                name,
                ttl_seconds,
                exc,
            )
            continue
        if provider is not None:
            providers.append(provider)

    if not providers:
        return None
    if len(providers) == 1:
        return providers[0]
    return FallbackIntensityProvider(list(providers), ttl_seconds=ttl_seconds)


def build_fallback_provider() -> StaticIntensityProvider:
    """Return the provider producing flagged synthetic samples."""

    return StaticIntensityProvider(
        mapping=load_zone_intensities(),
        default=global_average_intensity(),
        source=FALLBACK_SOURCE,
    )


def _build_single_provider(
    *, name: str, ttl_seconds: int, settings: CarbonEdgeSettings
) -> CarbonIntensityProvider | None:
    """Build a single provider based on its identifier."""
    if name == "static":
        return StaticIntensityProvider(
            mapping=load_zone_intensities(),
            default=global_average_intensity(),
            ttl_seconds=max(ttl_seconds, 600),
        )
    if name == "electricitymaps":
        return ElectricityMapsProvider(ttl_seconds=ttl_seconds, settings=settings)
    LOGGER.warning("Unknown provider key '%s'; skipping", name)
    return None
