"""High-level dual-grid orchestration.

:class:`DualGridOrchestrator` ties the provider capability, the edge catalog,
the weighting table, the selector and the recommendation engine together.
Every request computes one absolute deadline and applies it to each outbound
fetch. Upstream failures and expired fetches are replaced by flagged
synthetic samples, so callers always receive a complete result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from carbon_edge import catalog
from carbon_edge.catalog import CDNProvider, EdgeLocation
from carbon_edge.defaults import global_average_intensity, load_zone_intensities
from carbon_edge.errors import UpstreamFetchError
from carbon_edge.geo import Coordinate, distance_km, estimate_network_hops
from carbon_edge.intensity_provider import (
    CarbonIntensityProvider,
    StaticIntensityProvider,
)
from carbon_edge.locations import default_user_coordinate, resolve_location
from carbon_edge.providers import build_fallback_provider, build_provider_chain
from carbon_edge.recommendation import classify, recommend
from carbon_edge.schemas import (
    CarbonSample,
    CDNProviderSummary,
    DualGridResult,
    EdgeAlternative,
    GreenWindow,
)
from carbon_edge.selection import (
    DEFAULT_MAX_RESULTS,
    build_candidates,
    gather_zone_samples,
    select_alternatives,
    select_optimal_edge,
    to_alternative,
)
from carbon_edge.settings import CarbonEdgeSettings, get_settings
from carbon_edge.weighting import (
    CONTENT_TYPE_WEIGHTS,
    DEFAULT_CONTENT_TYPE,
    compute_weighted,
    get_weight_profile,
)

LOGGER = logging.getLogger(__name__)

__all__ = ["DualGridOrchestrator"]


class DualGridOrchestrator:
    """Compute dual-grid results, optimal edges and alternatives.

    Args:
        provider: Carbon intensity provider used for live lookups.
        fallback: Provider producing synthetic samples in degraded mode.
            Defaults to the packaged per-zone averages flagged as
            ``source="fallback"``.
        settings: Settings supplying deadlines, worker caps and the default
            user coordinate.
    """

    def __init__(
        self,
        provider: CarbonIntensityProvider,
        *,
        fallback: CarbonIntensityProvider | None = None,
        settings: CarbonEdgeSettings | None = None,
    ) -> None:
        self._provider = provider
        self._fallback = fallback or build_fallback_provider()
        self._settings = settings or get_settings()

    @classmethod
    def from_settings(
        cls, settings: CarbonEdgeSettings | None = None
    ) -> DualGridOrchestrator:
        """Build an orchestrator whose provider chain follows ``settings``."""

        settings_obj = settings or get_settings()
        provider = build_provider_chain(
            provider_keys=settings_obj.provider_keys,
            ttl_seconds=settings_obj.cache_ttl_seconds,
            settings=settings_obj,
        )
        if provider is None:
            LOGGER.warning(
                "No intensity provider configured; using packaged averages",
                extra={"providers": list(settings_obj.provider_keys)},
            )
            provider = StaticIntensityProvider(
                mapping=load_zone_intensities(),
                default=global_average_intensity(),
            )
        return cls(provider, settings=settings_obj)

    @property
    def provider(self) -> CarbonIntensityProvider:
        return self._provider

    async def compute_dual_grid(
        self,
        user_location: str,
        edge_location: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        cdn_provider: str | None = None,
        *,
        deadline_seconds: float | None = None,
        user_coordinate: Coordinate | None = None,
    ) -> DualGridResult:
        """Compute the weighted dual-grid intensity and a recommendation.

        Args:
            user_location: Place name or grid zone of the requesting user.
            edge_location: Place name, grid zone or edge id of the serving
                edge.
            content_type: Content type selecting the weight profile. Unknown
                values are replaced by ``static`` and recorded in
                ``notices``.
            cdn_provider: Optional CDN provider key; enables alternatives.
            deadline_seconds: Overall request deadline. Defaults to
                ``CARBON_EDGE_REQUEST_DEADLINE``.
            user_coordinate: Explicit user position; otherwise resolved from
                ``user_location`` or the configured default.

        Returns:
            A schema-complete :class:`DualGridResult`.

        Raises:
            UnknownCDNProviderError: If ``cdn_provider`` is not registered.
        """

        notices: list[str] = []
        if content_type not in CONTENT_TYPE_WEIGHTS:
            notices.append(
                f"Unknown content type {content_type!r}; "
                f"using {DEFAULT_CONTENT_TYPE!r} weights"
            )
            LOGGER.info(
                "Substituted default content type",
                extra={"content_type": content_type},
            )
            content_type = DEFAULT_CONTENT_TYPE

        cdn = catalog.require_provider(cdn_provider) if cdn_provider else None
        current_edge = catalog.find_edge(cdn, edge_location) if cdn else None
        edge_key = current_edge.grid_zone if current_edge else edge_location
        deadline = self._deadline(deadline_seconds)

        async with asyncio.TaskGroup() as group:
            user_task = group.create_task(self._fetch(user_location, deadline))
            edge_task = group.create_task(self._fetch(edge_key, deadline))
        user_sample = user_task.result()
        edge_sample = edge_task.result()
        for side, sample in (("user", user_sample), ("edge", edge_sample)):
            if sample.is_fallback:
                notices.append(
                    f"Carbon data unavailable for {side} location "
                    f"{sample.location!r}; using fallback estimate"
                )
        degraded = user_sample.is_fallback or edge_sample.is_fallback

        weighted = compute_weighted(
            user_sample.carbon_intensity, edge_sample.carbon_intensity, content_type
        )

        user_coord = self._resolve_user_coordinate(
            user_location, user_coordinate, notices
        )
        edge_coord = (
            current_edge.coordinate
            if current_edge is not None
            else resolve_location(edge_location).coordinate
        )
        distance: float | None = None
        hops: int | None = None
        if edge_coord is None:
            notices.append(
                f"Unknown coordinates for edge location {edge_location!r}; "
                "distance not computed"
            )
        else:
            distance = distance_km(user_coord, edge_coord)
            hops = estimate_network_hops(distance)

        alternatives: list[EdgeAlternative] = []
        if cdn is not None:
            alternatives = await self._rank_alternatives(
                cdn,
                user_coord,
                current_ref=current_edge.id if current_edge else edge_location,
                current_intensity=edge_sample.carbon_intensity,
                max_results=DEFAULT_MAX_RESULTS,
                deadline=deadline,
            )

        forecast: GreenWindow | None = None
        if classify(weighted.weighted, bool(alternatives)) == "defer":
            forecast = await self._earliest_green_window(
                (user_location, edge_key), deadline
            )

        recommendation = recommend(
            weighted_intensity=weighted.weighted,
            content_type=content_type,
            user_intensity=user_sample.carbon_intensity,
            edge_intensity=edge_sample.carbon_intensity,
            alternatives=alternatives,
            forecast=forecast,
        )

        result = DualGridResult(
            user_sample=user_sample,
            edge_sample=edge_sample,
            weighted_intensity=weighted.weighted,
            transmission_weight=weighted.transmission_weight,
            computation_weight=weighted.computation_weight,
            distance_km=distance,
            network_hop_estimate=hops,
            content_type=content_type,
            recommendation=recommendation,
            computed_at=datetime.now(timezone.utc),
            degraded=degraded,
            notices=notices,
        )
        LOGGER.info(
            "Dual-grid result computed",
            extra={
                "user_location": user_location,
                "edge_location": edge_location,
                "content_type": content_type,
                "weighted_intensity": result.weighted_intensity,
                "action": recommendation.action,
                "degraded": degraded,
            },
        )
        return result

    async def optimal_edge(
        self,
        user_location: str,
        cdn_provider: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        *,
        deadline_seconds: float | None = None,
        user_coordinate: Coordinate | None = None,
    ) -> EdgeAlternative:
        """Return the best-scoring edge of ``cdn_provider`` for a user.

        Raises:
            UnknownCDNProviderError: If the provider is not registered.
            UnknownContentTypeError: If the content type is not registered.
            NoSuitableEdgeError: If the provider has no edges.
        """

        get_weight_profile(content_type)
        cdn = catalog.require_provider(cdn_provider)
        deadline = self._deadline(deadline_seconds)
        user_coord = self._resolve_user_coordinate(user_location, user_coordinate)
        edges = catalog.list_edges(cdn)
        samples = await gather_zone_samples(
            edges,
            lambda zone: self._fetch(zone, deadline),
            max_workers=self._settings.max_edge_workers,
        )
        best = select_optimal_edge(build_candidates(edges, user_coord, samples))
        return to_alternative(best, cdn)

    async def alternatives(
        self,
        user_location: str,
        current_edge: str,
        cdn_provider: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        max_results: int | None = DEFAULT_MAX_RESULTS,
        *,
        deadline_seconds: float | None = None,
        user_coordinate: Coordinate | None = None,
    ) -> list[EdgeAlternative]:
        """Return edges improving on ``current_edge`` by at least 20%.

        Args:
            user_location: Place name of the requesting user.
            current_edge: Edge id, city or grid zone currently serving.
            cdn_provider: CDN provider key.
            content_type: Registered content type.
            max_results: Requested number of results, clamped into [1, 20].
            deadline_seconds: Overall request deadline.
            user_coordinate: Explicit user position.

        Raises:
            UnknownCDNProviderError: If the provider is not registered.
            UnknownContentTypeError: If the content type is not registered.
        """

        get_weight_profile(content_type)
        cdn = catalog.require_provider(cdn_provider)
        deadline = self._deadline(deadline_seconds)
        user_coord = self._resolve_user_coordinate(user_location, user_coordinate)
        edge = catalog.find_edge(cdn, current_edge)
        current_sample = await self._fetch(
            edge.grid_zone if edge is not None else current_edge, deadline
        )
        return await self._rank_alternatives(
            cdn,
            user_coord,
            current_ref=edge.id if edge is not None else current_edge,
            current_intensity=current_sample.carbon_intensity,
            max_results=max_results,
            deadline=deadline,
        )

    def list_providers(self) -> list[CDNProviderSummary]:
        """Summarise every registered CDN provider, ordered by key."""

        return [
            CDNProviderSummary(
                key=provider.key,
                name=provider.name,
                default_edge_selection_strategy=provider.default_edge_selection,
                carbon_aware_routing_supported=provider.carbon_aware_routing,
                edge_count=len(provider.edges),
                renewable_edge_count=len(catalog.renewable_edges(provider)),
            )
            for provider in catalog.list_providers()
        ]

    def _deadline(self, deadline_seconds: float | None) -> float:
        budget = (
            deadline_seconds
            if deadline_seconds is not None
            else self._settings.request_deadline_seconds
        )
        return asyncio.get_running_loop().time() + max(budget, 0.0)

    async def _fetch(self, location: str, deadline: float) -> CarbonSample:
        """Fetch a sample, substituting a fallback estimate on failure."""

        try:
            async with asyncio.timeout_at(deadline):
                return await self._provider.get_carbon_intensity(location)
        except UpstreamFetchError as exc:
            LOGGER.warning(
                "Carbon intensity fetch failed; using fallback",
                extra={
                    "provider": exc.provider,
                    "location": location,
                    "error_type": type(exc).__name__,
                },
            )
        except TimeoutError:
            LOGGER.warning(
                "Carbon intensity fetch exceeded deadline; using fallback",
                extra={
                    "provider": self._provider.name,
                    "location": location,
                    "error_type": "TimeoutError",
                },
            )
        except Exception as exc:
            LOGGER.warning(
                "Carbon intensity provider raised; using fallback",
                extra={
                    "provider": self._provider.name,
                    "location": location,
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
        return await self._fallback.get_carbon_intensity(location)

    async def _green_window(
        self, location: str, deadline: float
    ) -> GreenWindow | None:
        try:
            async with asyncio.timeout_at(deadline):
                return await self._provider.get_green_window(location)
        except (UpstreamFetchError, TimeoutError) as exc:
            LOGGER.warning(
                "Green window lookup failed",
                extra={
                    "provider": self._provider.name,
                    "location": location,
                    "error_type": type(exc).__name__,
                },
            )
        except Exception as exc:
            LOGGER.warning(
                "Green window provider raised",
                extra={
                    "provider": self._provider.name,
                    "location": location,
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
        return None

    async def _earliest_green_window(
        self, locations: Sequence[str], deadline: float
    ) -> GreenWindow | None:
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(self._green_window(location, deadline))
                for location in locations
            ]
        results = [task.result() for task in tasks]
        windows = [window for window in results if window is not None]
        if not windows:
            return None
        return min(windows, key=lambda w: w.start)

    async def _rank_alternatives(
        self,
        cdn: CDNProvider,
        user_coord: Coordinate,
        *,
        current_ref: str,
        current_intensity: float,
        max_results: int | None,
        deadline: float,
    ) -> list[EdgeAlternative]:
        edges: list[EdgeLocation] = catalog.list_edges(cdn)
        samples = await gather_zone_samples(
            edges,
            lambda zone: self._fetch(zone, deadline),
            max_workers=self._settings.max_edge_workers,
        )
        return select_alternatives(
            build_candidates(edges, user_coord, samples),
            cdn,
            current_ref=current_ref,
            current_intensity=current_intensity,
            max_results=max_results,
        )

    def _resolve_user_coordinate(
        self,
        user_location: str,
        explicit: Coordinate | None,
        notices: list[str] | None = None,
    ) -> Coordinate:
        if explicit is not None:
            return explicit
        resolved = resolve_location(user_location).coordinate
        if resolved is not None:
            return resolved
        fallback = default_user_coordinate(self._settings)
        if notices is not None:
            notices.append(
                f"Unknown coordinates for user location {user_location!r}; "
                f"using default ({fallback.latitude}, {fallback.longitude})"
            )
        LOGGER.info(
            "Using default user coordinate",
            extra={"user_location": user_location},
        )
        return fallback
