"""
Provider base interface.

This module defines the contract every mapping provider implements so the
resolver and the aggregation engine never branch on provider identity:
- Capability flags instead of isinstance checks
- One normalizer per provider producing CanonicalPOI records
- ProviderError for every failed call
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

import aiohttp

from food_nearby.errors import ProviderError
from food_nearby.models import CanonicalPOI, Coordinates, ProviderId

GEOCODING = "geocoding"
IP_LOCATION = "ip_location"
RADIUS_SEARCH = "radius_search"
REGION_SEARCH = "region_search"


@dataclass
class ProviderMetadata:
    """Metadata about a provider."""
    name: str
    version: str
    description: str
    capabilities: List[str]


class PoiProvider(ABC):
    """Base mapping provider.

    Subclasses declare ``provider_id`` and ``capabilities`` and override the
    operations they support. Unsupported operations raise ProviderError.
    """

    provider_id: ProviderId
    capabilities: FrozenSet[str] = frozenset()

    def __init__(
        self,
        api_key: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 8.0,
        page_size: int = 20,
    ):
        """Initialize the provider.

        Args:
            api_key: Static API key for the provider
            session: Optional shared aiohttp session
            timeout: HTTP timeout in seconds
            page_size: Number of places requested per search
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.api_key = api_key
        self.session = session
        self.timeout = timeout
        self.page_size = page_size

    @property
    def name(self) -> str:
        return self.provider_id.value

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    @abstractmethod
    def get_metadata(self) -> ProviderMetadata:
        """Get provider metadata."""

    @abstractmethod
    def normalize(self, raw: Dict[str, Any], center: Optional[Coordinates] = None) -> CanonicalPOI:
        """Turn one raw provider place into a CanonicalPOI.

        Args:
            raw: Place object exactly as the provider returned it
            center: Search center; when given, distance_meters is computed from it

        Returns:
            Normalized record
        """

    async def geocode(self, address: str) -> Coordinates:
        """Convert an address or region name to coordinates.

        Raises:
            ProviderError: On a non-success status or zero results
        """
        raise self._unsupported(GEOCODING)

    async def ip_locate(self) -> Coordinates:
        """Coarse location of the caller's network origin.

        Raises:
            ProviderError: If no usable bounding region is returned
        """
        raise self._unsupported(IP_LOCATION)

    async def search_by_radius(
        self,
        center: Coordinates,
        radius_meters: int,
        keyword: str,
        poi_type_code: Optional[str] = None,
    ) -> List[CanonicalPOI]:
        """Search places within radius_meters of center."""
        raise self._unsupported(RADIUS_SEARCH)

    async def search_by_region_text(
        self,
        region: str,
        keyword: str,
        poi_type_code: Optional[str] = None,
        city_limit: bool = False,
    ) -> List[CanonicalPOI]:
        """Search places inside a named region, without a fixed center."""
        raise self._unsupported(REGION_SEARCH)

    def _unsupported(self, capability: str) -> ProviderError:
        return ProviderError(f"{capability} is not supported", provider_name=self.name, code="unsupported")

    def _normalize_all(self, raws: List[Dict[str, Any]], center: Optional[Coordinates] = None) -> List[CanonicalPOI]:
        """Normalize a result list, skipping places that cannot be normalized."""
        out = []
        for raw in raws or []:
            try:
                out.append(self.normalize(raw, center))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping malformed {self.name} place {raw.get('name') if isinstance(raw, dict) else raw!r}: {e}")
        return out

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} capabilities={sorted(self.capabilities)}>"
