"""Exception taxonomy for dual-grid computations.

Client-class errors (bad coordinates, unknown keys) propagate to callers.
:class:`UpstreamFetchError` is raised by intensity providers and absorbed by
the orchestrator's degradation policy; it never reaches API consumers.
"""

from __future__ import annotations

__all__ = [
    "CarbonEdgeError",
    "InvalidCoordinateError",
    "NoSuitableEdgeError",
    "UnknownCDNProviderError",
    "UnknownContentTypeError",
    "UpstreamFetchError",
]


class CarbonEdgeError(Exception):
    """Base class for all errors raised by :mod:`carbon_edge`."""

    status_code: int = 500


class InvalidCoordinateError(CarbonEdgeError, ValueError):
    """Raised when a latitude/longitude pair is outside the valid range."""

    status_code = 400

    def __init__(self, latitude: float, longitude: float) -> None:
        super().__init__(
            f"Invalid coordinate ({latitude}, {longitude}): latitude must be "
            "within [-90, 90] and longitude within [-180, 180]"
        )
        self.latitude = latitude
        self.longitude = longitude


class UnknownContentTypeError(CarbonEdgeError, ValueError):
    """Raised when no weight profile is registered for a content type."""

    status_code = 400

    def __init__(self, content_type: str) -> None:
        super().__init__(f"Unknown content type: {content_type!r}")
        self.content_type = content_type


class UnknownCDNProviderError(CarbonEdgeError, ValueError):
    """Raised when a CDN provider key is not present in the catalog."""

    status_code = 404

    def __init__(self, provider: str) -> None:
        super().__init__(f"CDN provider {provider!r} not supported")
        self.provider = provider


class NoSuitableEdgeError(CarbonEdgeError):
    """Raised when edge selection has no candidates to rank."""

    status_code = 500


class UpstreamFetchError(CarbonEdgeError):
    """Raised when a carbon-data provider fails or times out."""

    status_code = 502

    def __init__(self, provider: str, location: str, reason: str) -> None:
        super().__init__(f"{provider} failed for {location!r}: {reason}")
        self.provider = provider
        self.location = location
        self.reason = reason
