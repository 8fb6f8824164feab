"""Edge scoring, optimal-edge selection and alternative ranking.

Scores and rankings are pure functions over fully collected candidate sets;
per-edge intensity lookups happen beforehand in
:func:`gather_zone_samples`, so the final ordering never depends on the
order in which concurrent fetches complete.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Final

from carbon_edge.catalog import CDNProvider, EdgeLocation
from carbon_edge.errors import NoSuitableEdgeError
from carbon_edge.geo import Coordinate, distance_km, estimate_latency_ms
from carbon_edge.schemas import CarbonSample, EdgeAlternative

LOGGER = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MAX_RESULTS",
    "IMPROVEMENT_THRESHOLD",
    "EdgeCandidate",
    "availability_score",
    "build_candidates",
    "clamp_max_results",
    "gather_zone_samples",
    "score_edge",
    "select_alternatives",
    "select_optimal_edge",
    "to_alternative",
]

INTENSITY_WEIGHT: Final[float] = 0.7
DISTANCE_WEIGHT: Final[float] = 0.3
MAX_DISTANCE_FACTOR: Final[float] = 2.0
TIER_PENALTY: Final[float] = 0.05
RENEWABLE_BONUS: Final[float] = 0.90

# Alternatives must beat the current edge by 20%.
IMPROVEMENT_THRESHOLD: Final[float] = 0.8

DEFAULT_MAX_RESULTS: Final[int] = 5
MIN_RESULTS: Final[int] = 1
MAX_RESULTS: Final[int] = 20
DEFAULT_MAX_WORKERS: Final[int] = 8


@dataclass(frozen=True, slots=True)
class EdgeCandidate:
    """An edge paired with its current intensity and distance to the user."""

    edge: EdgeLocation
    carbon_intensity: float
    distance_km: float
    degraded: bool = False


def score_edge(candidate: EdgeCandidate) -> float:
    """Return the selection score for a candidate; lower is better.

    The score blends carbon intensity (70%) with a distance factor (30%)
    capped at 2000 km, penalises lower tiers by 5% per tier and discounts
    edges with a renewable commitment by 10%.
    """

    distance_factor = min(candidate.distance_km / 1000.0, MAX_DISTANCE_FACTOR) * 100.0
    score = (
        candidate.carbon_intensity * INTENSITY_WEIGHT
        + distance_factor * DISTANCE_WEIGHT
    )
    score *= 1.0 + TIER_PENALTY * (candidate.edge.tier - 1)
    if candidate.edge.renewable_commitment:
        score *= RENEWABLE_BONUS
    return score


def select_optimal_edge(candidates: Iterable[EdgeCandidate]) -> EdgeCandidate:
    """Return the lowest-scoring candidate.

    Ties are broken by lower tier, then shorter distance, then smaller id.

    Raises:
        NoSuitableEdgeError: If ``candidates`` is empty.
    """

    ranked = sorted(
        candidates,
        key=lambda c: (score_edge(c), c.edge.tier, c.distance_km, c.edge.id),
    )
    if not ranked:
        raise NoSuitableEdgeError("No candidate edges available for selection")
    return ranked[0]


def clamp_max_results(max_results: int | None) -> int:
    """Clamp a requested result count into ``[1, 20]``.

    ``None`` selects the default of five results.
    """

    if max_results is None:
        return DEFAULT_MAX_RESULTS
    return max(MIN_RESULTS, min(MAX_RESULTS, int(max_results)))


def availability_score(tier: int) -> float:
    return 100.0 - tier * 5.0


def to_alternative(candidate: EdgeCandidate, provider: CDNProvider) -> EdgeAlternative:
    """Convert a scored candidate into its wire representation."""

    edge = candidate.edge
    return EdgeAlternative(
        location=edge.city,
        provider=provider.name,
        carbon_intensity=candidate.carbon_intensity,
        distance_km=candidate.distance_km,
        estimated_latency_ms=estimate_latency_ms(candidate.distance_km),
        availability_score=availability_score(edge.tier),
        edge_id=edge.id,
        grid_zone=edge.grid_zone,
        degraded=candidate.degraded,
    )


def _is_current(edge: EdgeLocation, current_ref: str | None) -> bool:
    if not current_ref:
        return False
    needle = current_ref.strip().lower()
    return edge.id.lower() == needle or edge.city.lower() == needle


def select_alternatives(
    candidates: Iterable[EdgeCandidate],
    provider: CDNProvider,
    *,
    current_ref: str | None,
    current_intensity: float,
    max_results: int | None = None,
) -> list[EdgeAlternative]:
    """Rank edges that improve on the current edge by at least 20%.

    Args:
        candidates: Fully collected candidate set.
        provider: Provider the candidates belong to.
        current_ref: Id or city of the current edge, excluded from results.
        current_intensity: Carbon intensity of the current edge.
        max_results: Requested result count, clamped into ``[1, 20]``.

    Returns:
        Alternatives sorted ascending by intensity, then distance, then id.
    """

    limit = clamp_max_results(max_results)
    cutoff = current_intensity * IMPROVEMENT_THRESHOLD
    eligible = [
        candidate
        for candidate in candidates
        if not _is_current(candidate.edge, current_ref)
        and candidate.carbon_intensity < cutoff
    ]
    eligible.sort(key=lambda c: (c.carbon_intensity, c.distance_km, c.edge.id))
    return [to_alternative(candidate, provider) for candidate in eligible[:limit]]


async def gather_zone_samples(
    edges: Sequence[EdgeLocation],
    fetch: Callable[[str], Awaitable[CarbonSample]],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, CarbonSample]:
    """Fetch one sample per distinct grid zone with bounded concurrency.

    Args:
        edges: Edges whose grid zones should be looked up.
        fetch: Coroutine returning a sample for a grid zone. It is expected
            to absorb upstream failures itself.
        max_workers: Upper bound on in-flight fetches.

    Returns:
        Mapping of grid zone to sample.
    """

    zones = sorted({edge.grid_zone for edge in edges})
    if not zones:
        return {}
    semaphore = asyncio.Semaphore(max(1, min(len(zones), max_workers)))

    async def _bounded(zone: str) -> tuple[str, CarbonSample]:
        async with semaphore:
            return zone, await fetch(zone)

    async with asyncio.TaskGroup() as group:
        tasks = [group.create_task(_bounded(zone)) for zone in zones]
    LOGGER.debug(
        "Collected edge zone samples",
        extra={"zones": len(zones), "workers": min(len(zones), max_workers)},
    )
    return dict(task.result() for task in tasks)


def build_candidates(
    edges: Iterable[EdgeLocation],
    user_coordinate: Coordinate,
    samples: Mapping[str, CarbonSample],
) -> list[EdgeCandidate]:
    """Pair every edge with its zone sample and distance to the user."""

    candidates: list[EdgeCandidate] = []
    for edge in edges:
        sample = samples.get(edge.grid_zone)
        if sample is None:
            continue
        candidates.append(
            EdgeCandidate(
                edge=edge,
                carbon_intensity=sample.carbon_intensity,
                distance_km=distance_km(user_coordinate, edge.coordinate),
                degraded=sample.is_fallback,
            )
        )
    return candidates
