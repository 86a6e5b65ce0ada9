"""Mapping provider adapters and the registry that orders them."""

from food_nearby.providers.base import (
    GEOCODING,
    IP_LOCATION,
    RADIUS_SEARCH,
    REGION_SEARCH,
    PoiProvider,
    ProviderMetadata,
)

__all__ = [
    "GEOCODING",
    "IP_LOCATION",
    "RADIUS_SEARCH",
    "REGION_SEARCH",
    "PoiProvider",
    "ProviderMetadata",
]
