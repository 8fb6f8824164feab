"""Base types and caching logic for carbon intensity providers."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Final

from carbon_edge.errors import UpstreamFetchError
from carbon_edge.schemas import CarbonSample, GreenWindow

LOGGER = logging.getLogger(__name__)

# Lifecycle intensity of coal generation; used to estimate the fossil share of
# a grid when a source only reports gCO2/kWh.
COAL_INTENSITY_G_PER_KWH: Final[float] = 820.0

GREEN_WINDOW_THRESHOLD: Final[float] = 200.0
FORECAST_CONFIDENCE: Final[float] = 70.0

DEFAULT_MAX_CACHE_ENTRIES: Final[int] = 1024


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Expose cache hit/miss counters for providers."""

    hits: int
    misses: int

    def to_dict(self) -> dict[str, int]:
        """Return cache statistics as a dictionary."""

        return {"hits": self.hits, "misses": self.misses}


class CarbonIntensityProvider(ABC):
    """Abstract base class implementing TTL caching of provider responses.

    Subclasses implement :meth:`_fetch_uncached` and return ``None`` on any
    transport or parsing failure after logging it; the base class converts
    that, and any exception escaping :meth:`_fetch_uncached`, into
    :class:`~carbon_edge.errors.UpstreamFetchError`. Only successful samples
    are cached. Expired entries are pruned on every insert and the cache
    never holds more than ``max_cache_entries`` samples.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        *,
        max_cache_entries: int = DEFAULT_MAX_CACHE_ENTRIES,
    ) -> None:
        self._ttl_seconds: Final[int] = ttl_seconds
        self._max_cache_entries: Final[int] = max(1, max_cache_entries)
        self._cache: dict[str, tuple[float, CarbonSample]] = {}
        self._cache_hits = 0
        self._cache_misses = 0

    @property
    def name(self) -> str:
        """Human-readable provider name used in logs and errors."""

        return type(self).__name__

    @abstractmethod
    async def _fetch_uncached(self, location: str) -> CarbonSample | None:
        """Fetch a sample without consulting the cache."""

    async def get_carbon_intensity(self, location: str) -> CarbonSample:
        """Return a carbon sample for ``location`` using the TTL cache.

        Args:
            location: Place name or grid zone identifier.

        Returns:
            The most recent :class:`CarbonSample` for the location.

        Raises:
            UpstreamFetchError: If the provider could not produce a sample.
        """

        cache_key = location.strip().lower()
        now = time.monotonic()
        cached = self._cache.get(cache_key)
        if cached is not None:
            cached_at, sample = cached
            if now - cached_at <= self._ttl_seconds:
                self._cache_hits += 1
                LOGGER.debug(
                    "Intensity cache hit",
                    extra={
                        "provider": self.name,
                        "location": location,
                        "cache_event": "hit",
                    },
                )
                return sample
            self._cache.pop(cache_key, None)

        self._cache_misses += 1
        LOGGER.debug(
            "Intensity cache miss",
            extra={
                "provider": self.name,
                "location": location,
                "cache_event": "miss",
            },
        )
        try:
            sample = await self._fetch_uncached(location)
        except UpstreamFetchError:
            raise
        except Exception as exc:
            LOGGER.warning(
                "Intensity provider raised",
                extra={
                    "provider": self.name,
                    "location": location,
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
            raise UpstreamFetchError(self.name, location, str(exc)) from exc
        if sample is None:
            raise UpstreamFetchError(self.name, location, "no reading available")
        self._store(cache_key, now, sample)
        return sample

    def _store(self, cache_key: str, now: float, sample: CarbonSample) -> None:
        expired = [
            key
            for key, (cached_at, _) in self._cache.items()
            if now - cached_at > self._ttl_seconds
        ]
        for key in expired:
            del self._cache[key]
        self._cache.pop(cache_key, None)
        while len(self._cache) >= self._max_cache_entries:
            # Insertion order is age order.
            del self._cache[next(iter(self._cache))]
        self._cache[cache_key] = (now, sample)

    @property
    def cache_size(self) -> int:
        """Number of samples currently held in the cache."""

        return len(self._cache)

    async def get_green_window(
        self, location: str, hours: int = 24
    ) -> GreenWindow | None:
        """Return the next forecast low-carbon window, if supported.

        Providers without a forecast capability return ``None``.
        """

        _ = (location, hours)
        return None

    def get_cache_stats(self) -> CacheStats:
        """Return cache hit/miss counters.

        Returns:
            Dataclass containing cache hit and miss counters.
        """

        return CacheStats(hits=self._cache_hits, misses=self._cache_misses)


def estimate_fossil_percentage(intensity: float) -> float:
    """Approximate the fossil share of a grid from its carbon intensity."""

    return max(0.0, min(100.0, intensity / COAL_INTENSITY_G_PER_KWH * 100.0))


def project_green_window(
    sample: CarbonSample, hours: int = 24, *, now: datetime | None = None
) -> GreenWindow | None:
    """Project the next low-carbon window from a current reading.

    The projection applies typical daily grid patterns to the current
    intensity: night hours (22:00-06:59 UTC) at 0.7x with more wind, midday
    (10:00-16:59 UTC) at 0.8x with solar, remaining peak hours at 1.2x.
    Hours projected below :data:`GREEN_WINDOW_THRESHOLD` qualify, and the
    first run of consecutive qualifying hours becomes the window.

    Args:
        sample: Current reading for the location.
        hours: Forecast horizon in hours.
        now: Reference time, defaulting to the current UTC time.

    Returns:
        The earliest qualifying window, or ``None`` when no hour qualifies.
    """

    reference = now or datetime.now(timezone.utc)
    reference = reference.replace(minute=0, second=0, microsecond=0)
    window: GreenWindow | None = None
    for offset in range(1, max(hours, 0) + 1):
        start = reference + timedelta(hours=offset)
        hour = start.hour
        if hour >= 22 or hour <= 6:
            intensity = sample.carbon_intensity * 0.7
            renewable = sample.renewable_percent * 1.3
        elif 10 <= hour <= 16:
            intensity = sample.carbon_intensity * 0.8
            renewable = sample.renewable_percent * 1.2
        else:
            intensity = sample.carbon_intensity * 1.2
            renewable = sample.renewable_percent * 0.9

        if intensity >= GREEN_WINDOW_THRESHOLD:
            if window is not None:
                break
            continue

        if window is None:
            window = GreenWindow(
                start=start,
                end=start + timedelta(hours=1),
                carbon_intensity=intensity,
                renewable_percent=min(renewable, 100.0),
                confidence=FORECAST_CONFIDENCE,
            )
        else:
            window = window.model_copy(
                update={
                    "end": start + timedelta(hours=1),
                    "carbon_intensity": min(window.carbon_intensity, intensity),
                }
            )
    return window
