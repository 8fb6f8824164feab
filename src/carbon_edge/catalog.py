"""Read-only registry of CDN providers and their edge locations.

The registry is built once from the packaged ``cdn_providers.json`` resource
and cached for the lifetime of the process. Provider and edge mappings are
exposed through :class:`types.MappingProxyType`, so there is no mutation API
after start-up and the catalog is safe to share between concurrent requests.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType

from carbon_edge.errors import UnknownCDNProviderError
from carbon_edge.geo import Coordinate, distance_km

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CDNProvider",
    "EdgeLocation",
    "find_edge",
    "get_provider",
    "list_edges",
    "list_providers",
    "load_catalog",
    "nearest_edge",
    "renewable_edges",
    "require_provider",
]

_VALID_TIERS = frozenset({1, 2, 3})


@dataclass(frozen=True, slots=True)
class EdgeLocation:
    """A CDN point-of-presence.

    Attributes:
        id: Provider-scoped identifier (for example ``"eu-central-1"``).
        city: City served by the edge.
        country: Country of the edge.
        grid_zone: Electricity grid zone powering the edge.
        coordinate: Geographic position of the edge.
        tier: Role of the edge within the provider network (1 = primary).
        capacity_class: Relative capacity label (``high``/``medium``/``low``).
        renewable_commitment: Whether the site has a renewable energy
            commitment.
    """

    id: str
    city: str
    country: str
    grid_zone: str
    coordinate: Coordinate
    tier: int = 1
    capacity_class: str = "high"
    renewable_commitment: bool = False

    def __post_init__(self) -> None:
        if self.tier not in _VALID_TIERS:
            raise ValueError(f"Edge {self.id!r} has invalid tier {self.tier}")


@dataclass(frozen=True, slots=True)
class CDNProvider:
    """Static configuration of a CDN provider's edge network."""

    key: str
    name: str
    default_edge_selection: str
    carbon_aware_routing: bool
    edges: Mapping[str, EdgeLocation]


def _parse_edge(edge_id: str, raw: Mapping[str, object]) -> EdgeLocation:
    return EdgeLocation(
        id=edge_id,
        city=str(raw["city"]),
        country=str(raw["country"]),
        grid_zone=str(raw["grid_zone"]),
        coordinate=Coordinate(
            float(raw["latitude"]),  # type: ignore[arg-type]
            float(raw["longitude"]),  # type: ignore[arg-type]
        ),
        tier=int(raw.get("tier", 1)),  # type: ignore[call-overload]
        capacity_class=str(raw.get("capacity", "high")),
        renewable_commitment=bool(raw.get("renewable_commitment", False)),
    )


def _parse_provider(key: str, raw: Mapping[str, object]) -> CDNProvider:
    raw_edges = raw.get("edges")
    if not isinstance(raw_edges, dict):
        raise ValueError(f"Provider {key!r} has no edge table")
    edges = {
        edge_id: _parse_edge(edge_id, edge_raw)
        for edge_id, edge_raw in sorted(raw_edges.items())
    }
    return CDNProvider(
        key=key,
        name=str(raw.get("name", key)),
        default_edge_selection=str(raw.get("default_edge_selection", "geo_nearest")),
        carbon_aware_routing=bool(raw.get("carbon_aware_routing", False)),
        edges=MappingProxyType(edges),
    )


@lru_cache(maxsize=1)
def load_catalog() -> Mapping[str, CDNProvider]:
    """Load the packaged provider catalog.

    Returns:
        Read-only mapping of lower-cased provider keys to providers.

    Raises:
        ValueError: If the packaged table is malformed.
    """

    import importlib.resources as resources

    text = (
        resources.files("carbon_edge.data")
        .joinpath("cdn_providers.json")
        .read_text(encoding="utf-8")
    )
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("CDN provider table must be a JSON object")
    providers = {
        str(key).lower(): _parse_provider(str(key).lower(), raw)
        for key, raw in sorted(data.items())
    }
    LOGGER.debug(
        "Loaded CDN catalog",
        extra={
            "providers": len(providers),
            "edges": sum(len(p.edges) for p in providers.values()),
        },
    )
    return MappingProxyType(providers)


def get_provider(name: str) -> CDNProvider | None:
    """Return the provider registered under ``name`` (case-insensitive)."""

    return load_catalog().get(name.strip().lower())


def require_provider(name: str) -> CDNProvider:
    """Return the provider registered under ``name``.

    Raises:
        UnknownCDNProviderError: If no such provider exists.
    """

    provider = get_provider(name)
    if provider is None:
        raise UnknownCDNProviderError(name)
    return provider


def list_providers() -> list[CDNProvider]:
    """Return all providers ordered by key."""

    return list(load_catalog().values())


def list_edges(provider: CDNProvider) -> list[EdgeLocation]:
    """Return the provider's edges ordered by id."""

    return list(provider.edges.values())


def find_edge(provider: CDNProvider, ref: str) -> EdgeLocation | None:
    """Resolve an edge by id, falling back to a case-insensitive city match.

    Args:
        provider: Provider whose edges are searched.
        ref: Edge id (``"frankfurt"``, ``"eu-central-1"``) or city name.

    Returns:
        The matching edge, or ``None``. City matches return the
        lexicographically first edge id when several edges share a city.
    """

    edge = provider.edges.get(ref)
    if edge is not None:
        return edge
    needle = ref.strip().lower()
    for candidate in provider.edges.values():
        if candidate.id.lower() == needle or candidate.city.lower() == needle:
            return candidate
    return None


def nearest_edge(
    provider: CDNProvider, coordinate: Coordinate
) -> tuple[EdgeLocation, float] | None:
    """Return the geographically nearest edge and its distance in km."""

    best: tuple[EdgeLocation, float] | None = None
    for edge in provider.edges.values():
        km = distance_km(coordinate, edge.coordinate)
        if best is None or km < best[1]:
            best = (edge, km)
    return best


def renewable_edges(provider: CDNProvider) -> list[EdgeLocation]:
    """Return edges with a renewable energy commitment, ordered by id."""

    return [edge for edge in provider.edges.values() if edge.renewable_commitment]
