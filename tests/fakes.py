"""Hand-written stand-ins for aiohttp sessions and map providers."""
import asyncio

import aiohttp

from food_nearby.errors import ProviderError
from food_nearby.models import CanonicalPOI, Coordinates, ProviderId
from food_nearby.providers.base import (
    GEOCODING,
    IP_LOCATION,
    RADIUS_SEARCH,
    REGION_SEARCH,
    PoiProvider,
    ProviderMetadata,
)


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status}")

    async def json(self, content_type=None):
        if isinstance(self.payload, ValueError):
            raise self.payload
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Answers GETs from a url -> payload map and records every call."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params))
        payload = self.responses[url]
        if isinstance(payload, aiohttp.ClientError):
            raise payload
        return FakeResponse(payload)


def make_poi(name="Old Town Noodles", lat=39.9, lng=116.4, provider=ProviderId.BAIDU, **kwargs):
    return CanonicalPOI(
        id=kwargs.pop("id", f"{provider.value}_{name}_{lat}_{lng}"),
        name=name,
        location=Coordinates(lat, lng),
        source_providers=(provider,),
        **kwargs,
    )


class FakeProvider(PoiProvider):
    """Provider returning canned results.

    ``errors`` maps an operation name (geocode, ip_locate, radius, region)
    to the exception that operation raises.
    """

    def __init__(
        self,
        provider_id,
        capabilities=(GEOCODING, RADIUS_SEARCH, REGION_SEARCH),
        radius_results=None,
        region_results=None,
        geocode_result=None,
        ip_result=None,
        errors=None,
        delay=0.0,
    ):
        super().__init__(api_key="test-key")
        self.provider_id = provider_id
        self.capabilities = frozenset(capabilities)
        self.radius_results = radius_results
        self.region_results = region_results
        self.geocode_result = geocode_result
        self.ip_result = ip_result
        self.errors = errors or {}
        self.delay = delay
        self.calls = []

    def get_metadata(self):
        return ProviderMetadata(
            name=self.name,
            version="test",
            description="fake provider",
            capabilities=sorted(self.capabilities),
        )

    def normalize(self, raw, center=None):
        return raw

    async def _answer(self, operation, capability, result, *args):
        if not self.supports(capability):
            raise self._unsupported(capability)
        self.calls.append((operation,) + args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if operation in self.errors:
            raise self.errors[operation]
        if result is None:
            raise ProviderError(f"no canned {operation} result", provider_name=self.name, code="no_results")
        return result

    async def geocode(self, address):
        return await self._answer("geocode", GEOCODING, self.geocode_result, address)

    async def ip_locate(self):
        return await self._answer("ip_locate", IP_LOCATION, self.ip_result)

    async def search_by_radius(self, center, radius_meters, keyword, poi_type_code=None):
        return await self._answer("radius", RADIUS_SEARCH, self.radius_results, center, radius_meters, keyword)

    async def search_by_region_text(self, region, keyword, poi_type_code=None, city_limit=False):
        return await self._answer("region", REGION_SEARCH, self.region_results, region, keyword)
