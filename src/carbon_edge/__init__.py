"""Carbon Edge - dual-grid carbon weighting and CDN edge selection."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CarbonSample",
    "DualGridOrchestrator",
    "DualGridResult",
    "EdgeAlternative",
    "Recommendation",
    "compute_weighted",
    "distance_km",
]

if TYPE_CHECKING:
    from .geo import distance_km
    from .orchestrator import DualGridOrchestrator
    from .schemas import CarbonSample, DualGridResult, EdgeAlternative, Recommendation
    from .weighting import compute_weighted


def __getattr__(name: str) -> Any:
    """Lazily import modules to avoid loading httpx for pure computations."""

    module_map = {
        "CarbonSample": "schemas",
        "DualGridOrchestrator": "orchestrator",
        "DualGridResult": "schemas",
        "EdgeAlternative": "schemas",
        "Recommendation": "schemas",
        "compute_weighted": "weighting",
        "distance_km": "geo",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
