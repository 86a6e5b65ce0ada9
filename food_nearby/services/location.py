"""
Location resolution.

Turns the raw location of a search into coordinates:
1. "lat,lng" literals are parsed directly
2. the "current location" sentinel is resolved by IP location
3. anything else is geocoded, trying providers in priority order

A failed resolution raises ResolutionError. Returning a placeholder
coordinate instead is only done when the caller passes an enabled
DegradedModePolicy.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from food_nearby.errors import ProviderError, ResolutionError
from food_nearby.models import Coordinates
from food_nearby.providers.base import GEOCODING, IP_LOCATION, PoiProvider
from food_nearby.services.strategy import is_coordinate_format, is_current_location

logger = logging.getLogger(__name__)

_LEADING_FLOAT = re.compile(r"\s*([+-]?\d+\.?\d*)")


def _leading_float(text: str) -> float:
    m = _LEADING_FLOAT.match(text)
    return float(m.group(1)) if m else 0.0


def parse_coordinate(location: str) -> Coordinates:
    """Parse "lat,lng"; missing or unparsable parts become 0."""
    parts = (location or "").split(",")
    lat = _leading_float(parts[0]) if len(parts) > 0 else 0.0
    lng = _leading_float(parts[1]) if len(parts) > 1 else 0.0
    return Coordinates(lat=lat, lng=lng)


@dataclass(frozen=True)
class DegradedModePolicy:
    """Caller-chosen fallback for failed resolutions. Disabled by default."""

    fallback: Optional[Coordinates] = None

    @property
    def enabled(self) -> bool:
        return self.fallback is not None


class LocationResolver:
    """Resolves location strings against an ordered list of providers."""

    def __init__(
        self,
        providers: Sequence[PoiProvider],
        degraded_mode: Optional[DegradedModePolicy] = None,
    ):
        self.providers = list(providers)
        self.degraded_mode = degraded_mode or DegradedModePolicy()

    async def resolve(self, location: str) -> Coordinates:
        """Resolve a location string to coordinates.

        Args:
            location: "lat,lng", the current-location sentinel, or free text

        Returns:
            Coordinates

        Raises:
            ResolutionError: If no provider could resolve it and degraded mode is off
        """
        if is_coordinate_format(location):
            coords = parse_coordinate(location)
            if not coords.is_valid:
                return self._fail(f"Coordinates out of range: {coords}", location, [])
            return coords
        if is_current_location(location):
            return await self.locate_current()
        return await self.geocode(location)

    async def locate_current(self) -> Coordinates:
        """Coarse current location from the first provider with IP location."""
        candidates = [p for p in self.providers if p.supports(IP_LOCATION)]
        if not candidates:
            return self._fail("No configured provider supports IP location", "current location", [])
        provider = candidates[0]
        try:
            coords = await provider.ip_locate()
        except ProviderError as e:
            logger.warning(f"IP location via {provider.name} failed: {e}")
            return self._fail(f"Could not determine current location: {e}", "current location", [e])
        logger.info(f"Current location resolved via {provider.name}: {coords}")
        return coords

    async def geocode(self, address: str) -> Coordinates:
        """Geocode with each provider in priority order; first success wins."""
        errors: List[ProviderError] = []
        for provider in self.providers:
            if not provider.supports(GEOCODING):
                continue
            try:
                coords = await provider.geocode(address)
            except ProviderError as e:
                logger.warning(f"Geocoding {address!r} via {provider.name} failed, trying next provider: {e}")
                errors.append(e)
                continue
            logger.info(f"Geocoded {address!r} via {provider.name}: {coords}")
            return coords
        if not errors:
            return self._fail("No configured provider supports geocoding", address, errors)
        return self._fail(f"Could not geocode {address!r} with any provider", address, errors)

    def _fail(self, message: str, location: str, errors: list) -> Coordinates:
        if self.degraded_mode.enabled:
            logger.warning(f"{message}; degraded mode returns {self.degraded_mode.fallback}")
            return self.degraded_mode.fallback
        raise ResolutionError(message, location=location, errors=errors)
