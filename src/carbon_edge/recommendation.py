"""Classify dual-grid results into delivery recommendations."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Final

from carbon_edge.defaults import load_energy_kwh_per_hour
from carbon_edge.schemas import (
    Action,
    EdgeAlternative,
    GreenWindow,
    Recommendation,
    TimeBasedStrategy,
)

__all__ = [
    "OPTIMIZE_THRESHOLD",
    "RELOCATE_THRESHOLD",
    "classify",
    "estimate_savings",
    "optimization_tips",
    "recommend",
]

# Business constants: below 150 g proceed, from 300 g relocate or defer.
# Relocation takes precedence over deferral whenever alternatives exist.
OPTIMIZE_THRESHOLD: Final[float] = 150.0
RELOCATE_THRESHOLD: Final[float] = 300.0

_REASONS: Final[Mapping[str, str]] = {
    "proceed": "Both user and edge locations have low carbon intensity",
    "optimize": "Moderate carbon intensity detected",
    "defer": "High carbon intensity at one or both locations",
}

_CONTENT_TIPS: Final[Mapping[str, tuple[str, ...]]] = {
    "video": (
        "Use adaptive bitrate streaming to reduce bandwidth",
        "Encode with the AV1 codec to cut transferred bytes",
    ),
    "api": (
        "Implement response caching with appropriate TTLs",
        "Batch API requests to reduce overhead",
    ),
    "static": (
        "Use CDN caching aggressively with long (1 year+) TTLs",
        "Implement service workers for offline capability",
    ),
    "ai": (
        "Cache model inference results for repeated prompts",
        "Serve quantized models to reduce computation",
    ),
    "database": (
        "Route reads to replicas close to the user",
        "Cache frequently accessed data at the edge",
    ),
    "dynamic": (
        "Cache database query results",
        "Render at the edge to avoid origin round trips",
    ),
}

_USER_GRID_TIPS: Final[tuple[str, ...]] = (
    "Consider caching content locally to reduce repeated transmissions",
    "Enable aggressive browser caching for static assets",
)
_EDGE_GRID_TIPS: Final[tuple[str, ...]] = (
    "Consider using pre-computed/cached responses",
    "Optimize server-side processing to reduce computation time",
)
_PROCEED_TIPS: Final[tuple[str, ...]] = (
    "Current conditions are optimal for content delivery",
)
_DEFER_TIPS: Final[tuple[str, ...]] = (
    "Defer non-essential operations to off-peak hours",
    "Consider scheduling batch operations during green windows",
)


def classify(weighted_intensity: float, has_alternatives: bool) -> Action:
    """Map a weighted intensity to an action.

    Args:
        weighted_intensity: Dual-grid weighted intensity in gCO2/kWh.
        has_alternatives: Whether any qualifying alternative edge exists.

    Returns:
        ``proceed`` below 150, ``optimize`` below 300, otherwise
        ``relocate`` when alternatives exist and ``defer`` when not.
    """

    if weighted_intensity < OPTIMIZE_THRESHOLD:
        return "proceed"
    if weighted_intensity < RELOCATE_THRESHOLD:
        return "optimize"
    return "relocate" if has_alternatives else "defer"


def optimization_tips(
    content_type: str, user_intensity: float, edge_intensity: float
) -> list[str]:
    """Return content-specific tips followed by the location-aware ones."""

    tips = list(_CONTENT_TIPS.get(content_type, ()))
    if user_intensity > edge_intensity:
        tips.extend(_USER_GRID_TIPS)
    else:
        tips.extend(_EDGE_GRID_TIPS)
    return tips


def estimate_savings(
    current_edge_intensity: float,
    alternatives: Sequence[EdgeAlternative],
    content_type: str,
) -> float | None:
    """Estimate grams of CO2 saved per hour by moving to the best alternative.

    Returns:
        ``None`` when there are no alternatives.
    """

    if not alternatives:
        return None
    best = min(alternative.carbon_intensity for alternative in alternatives)
    energy = load_energy_kwh_per_hour().get(content_type, 0.0)
    return max(current_edge_intensity - best, 0.0) * energy


def recommend(
    *,
    weighted_intensity: float,
    content_type: str,
    user_intensity: float,
    edge_intensity: float,
    alternatives: Sequence[EdgeAlternative],
    forecast: GreenWindow | None = None,
) -> Recommendation:
    """Build the recommendation for a dual-grid result.

    Args:
        weighted_intensity: Dual-grid weighted intensity in gCO2/kWh.
        content_type: Registered content type of the request.
        user_intensity: Intensity of the user's grid.
        edge_intensity: Intensity of the current edge's grid.
        alternatives: Qualifying alternatives, best first.
        forecast: Provider-supplied green window, consulted only when the
            action is ``defer``.

    Returns:
        The populated :class:`Recommendation`.
    """

    action = classify(weighted_intensity, bool(alternatives))
    strategy: TimeBasedStrategy | None = None
    if action == "proceed":
        tips = list(_PROCEED_TIPS)
    elif action == "optimize":
        tips = optimization_tips(content_type, user_intensity, edge_intensity)
    else:
        tips = list(_DEFER_TIPS)

    if action == "relocate":
        best = alternatives[0]
        reduction = (
            (1.0 - best.carbon_intensity / edge_intensity) * 100.0
            if edge_intensity > 0
            else 0.0
        )
        reason = (
            f"Alternative edge location has {reduction:.0f}% lower carbon intensity"
        )
    else:
        reason = _REASONS[action]

    if action == "defer" and forecast is not None:
        strategy = TimeBasedStrategy(
            next_optimal_window_start=forecast.start,
            next_optimal_window_end=forecast.end,
            confidence=forecast.confidence,
        )

    return Recommendation(
        action=action,
        reason=reason,
        optimization_tips=tips,
        alternatives=list(alternatives),
        estimated_savings_grams_co2=estimate_savings(
            edge_intensity, alternatives, content_type
        ),
        time_based_strategy=strategy,
    )
