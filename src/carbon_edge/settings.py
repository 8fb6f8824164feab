"""Environment-backed settings primitives for :mod:`carbon_edge`."""

from __future__ import annotations

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["CarbonEdgeSettings", "get_settings"]

_DEFAULTS: dict[str, float] = {
    "cache_ttl_seconds": 300,
    "http_timeout_seconds": 10.0,
    "request_deadline_seconds": 15.0,
    "max_edge_workers": 8,
    "default_user_latitude": 52.5200,
    "default_user_longitude": 13.4050,
}


class CarbonEdgeSettings(BaseSettings):
    """Expose environment-derived configuration knobs for carbon-edge.

    All environment access goes through this class. Malformed numeric values
    are ignored in favour of the documented defaults rather than failing
    process start-up.

    Attributes:
        electricity_maps_api_key: API token for the Electricity Maps / CO2
            Signal API. When unset the static provider is used.
        electricity_maps_base_url: Base URL of the CO2 Signal API.
        providers: Comma-separated, ordered provider chain. ``None`` selects
            ``electricitymaps`` when a token is configured and ``static``
            otherwise.
        cache_ttl_seconds: TTL applied to provider responses.
        http_timeout_seconds: Per-request HTTP timeout for live providers.
        request_deadline_seconds: Default overall deadline for one
            orchestrated request; propagated to every outbound fetch.
        max_edge_workers: Upper bound on concurrent per-edge lookups.
        default_user_latitude: Latitude used when a user location cannot be
            resolved (Berlin).
        default_user_longitude: Longitude used when a user location cannot be
            resolved (Berlin).
        defaults_file: Optional path overriding the packaged ``defaults.json``.
    """

    electricity_maps_api_key: str | None = Field(
        default=None, alias="ELECTRICITY_MAPS_API_KEY"
    )
    electricity_maps_base_url: str = Field(
        default="https://api.co2signal.com/v1",
        alias="CARBON_EDGE_ELECTRICITY_MAPS_URL",
    )
    providers: str | None = Field(default=None, alias="CARBON_EDGE_PROVIDERS")
    cache_ttl_seconds: int = Field(default=300, alias="CARBON_EDGE_CACHE_TTL")
    http_timeout_seconds: float = Field(
        default=10.0, alias="CARBON_EDGE_HTTP_TIMEOUT"
    )
    request_deadline_seconds: float = Field(
        default=15.0, alias="CARBON_EDGE_REQUEST_DEADLINE"
    )
    max_edge_workers: int = Field(default=8, alias="CARBON_EDGE_MAX_EDGE_WORKERS")
    default_user_latitude: float = Field(
        default=52.5200, alias="CARBON_EDGE_DEFAULT_LATITUDE"
    )
    default_user_longitude: float = Field(
        default=13.4050, alias="CARBON_EDGE_DEFAULT_LONGITUDE"
    )
    defaults_file: str | None = Field(default=None, alias="CARBON_EDGE_DEFAULTS_FILE")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator(
        "http_timeout_seconds",
        "request_deadline_seconds",
        "default_user_latitude",
        "default_user_longitude",
        mode="before",
    )
    @classmethod
    def _parse_float(cls, value: object, info: ValidationInfo) -> float:
        """Parse float fields, falling back to the default on bad input.

        Args:
            value: Raw environment value.
            info: Validation context carrying the field name.

        Returns:
            Parsed float, or the field default when conversion fails.
        """

        default = _DEFAULTS[str(info.field_name)]
        if isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return default
        return default

    @field_validator("cache_ttl_seconds", "max_edge_workers", mode="before")
    @classmethod
    def _parse_positive_int(cls, value: object, info: ValidationInfo) -> int:
        """Parse positive integer fields, falling back to the default."""

        default = int(_DEFAULTS[str(info.field_name)])
        parsed: int | None = None
        if isinstance(value, bool):
            parsed = None
        elif isinstance(value, int):
            parsed = value
        elif isinstance(value, float) and value.is_integer():
            parsed = int(value)
        elif isinstance(value, str):
            try:
                parsed = int(value.strip())
            except ValueError:
                parsed = None
        if parsed is None or parsed < 1:
            return default
        return parsed

    @property
    def provider_keys(self) -> tuple[str, ...]:
        """Return the ordered provider chain.

        Returns:
            Lower-cased provider identifiers, never empty.
        """

        if self.providers:
            keys = tuple(
                key.strip().lower() for key in self.providers.split(",") if key.strip()
            )
            if keys:
                return keys
        if self.electricity_maps_api_key:
            return ("electricitymaps",)
        return ("static",)


def get_settings() -> CarbonEdgeSettings:
    """Return a :class:`CarbonEdgeSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return CarbonEdgeSettings()
