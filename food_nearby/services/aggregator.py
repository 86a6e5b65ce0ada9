"""
Multi-provider POI aggregation.

The engine classifies the request, queries every eligible provider
concurrently, then merges duplicates, ranks and filters the union. A provider
that fails or times out contributes nothing; the search only fails when every
eligible provider did.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

import aiohttp

from food_nearby.config import MergePolicy
from food_nearby.errors import (
    AggregationError,
    ConfigurationError,
    ProviderError,
    ProviderTimeoutError,
)
from food_nearby.models import CanonicalPOI, PriceBucket, SearchRequest, SearchStrategy, unique
from food_nearby.providers.base import RADIUS_SEARCH, REGION_SEARCH, PoiProvider
from food_nearby.providers.container import ProviderContainer
from food_nearby.providers.normalize import canonical_cuisine
from food_nearby.services.location import DegradedModePolicy, LocationResolver
from food_nearby.services.strategy import classify

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_TOLERANCE = 0.001

ProviderCall = Callable[[PoiProvider], Awaitable[List[CanonicalPOI]]]


def same_place(a: CanonicalPOI, b: CanonicalPOI, tolerance: float = DEFAULT_DEDUP_TOLERANCE) -> bool:
    """Identical name and both coordinate deltas under tolerance (~100 m at 0.001)."""
    return (
        a.name == b.name
        and abs(a.location.lat - b.location.lat) < tolerance
        and abs(a.location.lng - b.location.lng) < tolerance
    )


def merge_pois(
    pois: Iterable[CanonicalPOI],
    tolerance: float = DEFAULT_DEDUP_TOLERANCE,
    policy: MergePolicy = MergePolicy.HIGHER_RATING,
) -> List[CanonicalPOI]:
    """Collapse records that describe the same place.

    The kept record collects the providers of every duplicate. Under
    HIGHER_RATING a duplicate with a strictly greater rating replaces the
    kept record's other fields wholesale; ties keep the first-seen record.

    Args:
        pois: Records in arrival order
        tolerance: Max |dlat| and |dlng| in degrees for two records to match
        policy: Merge policy

    Returns:
        Deduplicated records in first-seen order
    """
    merged: List[CanonicalPOI] = []
    for poi in pois:
        idx = next((i for i, kept in enumerate(merged) if same_place(kept, poi, tolerance)), None)
        if idx is None:
            merged.append(poi)
            continue
        kept = merged[idx]
        providers = unique(kept.source_providers + poi.source_providers)
        winner = poi if policy is MergePolicy.HIGHER_RATING and poi.rating > kept.rating else kept
        merged[idx] = replace(winner, source_providers=providers)
    return merged


def sort_pois(pois: Iterable[CanonicalPOI]) -> List[CanonicalPOI]:
    """Rating descending, then distance ascending. Missing distance counts as 0."""
    return sorted(pois, key=lambda p: (-p.rating, p.distance_meters or 0))


def filter_by_cuisine(pois: Iterable[CanonicalPOI], cuisine: Optional[str]) -> List[CanonicalPOI]:
    """Keep places whose cuisine label matches, or whose tags contain the raw text.

    Chinese names and any casing of a label are accepted ("川菜", "sichuan").
    """
    if not cuisine:
        return list(pois)
    label = canonical_cuisine(cuisine)
    return [
        p for p in pois
        if p.cuisine_type == label or any(cuisine in tag for tag in p.tags)
    ]


def filter_by_price_bucket(pois: Iterable[CanonicalPOI], bucket: Optional[PriceBucket]) -> List[CanonicalPOI]:
    if bucket is None:
        return list(pois)
    return [p for p in pois if p.price_bucket == bucket]


def filter_by_max_distance(pois: Iterable[CanonicalPOI], max_meters: Optional[float]) -> List[CanonicalPOI]:
    if not max_meters:
        return list(pois)
    return [p for p in pois if (p.distance_meters or 0) <= max_meters]


def apply_filters(
    pois: Iterable[CanonicalPOI],
    cuisine: Optional[str] = None,
    price_bucket: Optional[PriceBucket] = None,
    max_meters: Optional[float] = None,
) -> List[CanonicalPOI]:
    pois = filter_by_cuisine(pois, cuisine)
    pois = filter_by_price_bucket(pois, price_bucket)
    return filter_by_max_distance(pois, max_meters)


class AggregationEngine:
    """Orchestrates strategy selection, resolution and provider fan-out."""

    def __init__(
        self,
        providers: Sequence[PoiProvider],
        resolver: Optional[LocationResolver] = None,
        provider_timeout: float = 10.0,
        dedup_tolerance_degrees: float = DEFAULT_DEDUP_TOLERANCE,
        merge_policy: MergePolicy = MergePolicy.HIGHER_RATING,
    ):
        """Initialize the engine.

        Args:
            providers: Configured providers in priority order (may be empty)
            resolver: Location resolver; defaults to one over the same providers
            provider_timeout: Seconds allowed for each provider call
            dedup_tolerance_degrees: Coordinate tolerance for merging duplicates
            merge_policy: How duplicates are merged
        """
        self.providers = list(providers)
        self.resolver = resolver or LocationResolver(self.providers)
        self.provider_timeout = provider_timeout
        self.dedup_tolerance_degrees = dedup_tolerance_degrees
        self.merge_policy = merge_policy

    async def search(self, request: SearchRequest) -> List[CanonicalPOI]:
        """Run a search and return merged, ranked, filtered places.

        Raises:
            ConfigurationError: No provider is configured at all
            ResolutionError: The coordinate path could not resolve the location
            AggregationError: Every eligible provider failed or none is eligible
        """
        if not self.providers:
            raise ConfigurationError(
                "No map provider is configured; set BAIDU_MAP_API_KEY and/or AMAP_API_KEY"
            )
        selected = self._select_providers(request)
        strategy = classify(request.location)
        logger.info(
            f"Searching {request.location!r} with strategy={strategy.value} "
            f"providers={[p.name for p in selected]}"
        )

        if strategy is SearchStrategy.REGION:
            pois = await self.search_region(request, selected)
        elif strategy is SearchStrategy.COORDINATE:
            pois = await self.search_coordinate(request, selected)
        else:
            try:
                pois = await self.search_region(request, selected)
            except AggregationError as e:
                logger.info(f"Region search for {request.location!r} failed, treating as empty: {e}")
                pois = []
            if not pois:
                logger.info(f"No region results for {request.location!r}; falling back to coordinate search")
                pois = await self.search_coordinate(request, selected)

        return apply_filters(pois, cuisine=request.cuisine_filter, price_bucket=request.price_filter)

    async def search_region(self, request: SearchRequest, providers: Sequence[PoiProvider]) -> List[CanonicalPOI]:
        """Region-text search on every provider that supports it."""
        eligible = [p for p in providers if p.supports(REGION_SEARCH)]

        async def call(provider: PoiProvider) -> List[CanonicalPOI]:
            return await provider.search_by_region_text(
                request.location,
                request.keyword,
                poi_type_code=request.poi_type_code,
                city_limit=request.city_limit,
            )

        return await self._fan_out("region search", eligible, call)

    async def search_coordinate(self, request: SearchRequest, providers: Sequence[PoiProvider]) -> List[CanonicalPOI]:
        """Resolve the location, then radius search on every provider that supports it."""
        eligible = [p for p in providers if p.supports(RADIUS_SEARCH)]
        if not eligible:
            raise AggregationError("No selected provider supports radius search")
        center = await self.resolver.resolve(request.location)

        async def call(provider: PoiProvider) -> List[CanonicalPOI]:
            return await provider.search_by_radius(
                center,
                request.radius_meters,
                request.keyword,
                poi_type_code=request.poi_type_code,
            )

        return await self._fan_out("radius search", eligible, call)

    def _select_providers(self, request: SearchRequest) -> List[PoiProvider]:
        if not request.providers:
            return list(self.providers)
        selected = [p for p in self.providers if p.provider_id in request.providers]
        if not selected:
            wanted = ", ".join(p.value for p in request.providers)
            raise AggregationError(f"None of the requested providers is configured: {wanted}")
        return selected

    async def _fan_out(self, label: str, providers: Sequence[PoiProvider], call: ProviderCall) -> List[CanonicalPOI]:
        if not providers:
            raise AggregationError(f"No selected provider supports {label}")

        results = await asyncio.gather(
            *(self._call_provider(p, call) for p in providers),
            return_exceptions=True,
        )

        pois: List[CanonicalPOI] = []
        errors: List[Exception] = []
        for provider, res in zip(providers, results):
            if isinstance(res, Exception):
                if not isinstance(res, ProviderError):
                    logger.error(f"Provider {provider.name} raised unexpectedly during {label}", exc_info=res)
                errors.append(res)
                continue
            if isinstance(res, BaseException):
                raise res
            pois.extend(res)

        if len(errors) == len(providers):
            details = "; ".join(str(e) for e in errors)
            raise AggregationError(f"All providers failed for {label}: {details}", errors=errors)

        return sort_pois(merge_pois(pois, self.dedup_tolerance_degrees, self.merge_policy))

    async def _call_provider(self, provider: PoiProvider, call: ProviderCall) -> List[CanonicalPOI]:
        start = time.time()
        res: List[CanonicalPOI] = []
        try:
            res = await asyncio.wait_for(call(provider), timeout=self.provider_timeout)
            return res
        except asyncio.TimeoutError:
            logger.warning(f"Provider {provider.name} timed out after {self.provider_timeout}s")
            raise ProviderTimeoutError(
                f"timed out after {self.provider_timeout}s",
                provider_name=provider.name,
                code="timeout",
            )
        except ProviderError as e:
            logger.warning(f"Provider {provider.name} failed: {e}")
            raise
        finally:
            dur = time.time() - start
            logger.info(f"Provider timing: {provider.name} took {dur:.2f}s and returned {len(res)} items")


def build_engine(config, session: Optional[aiohttp.ClientSession] = None) -> AggregationEngine:
    """Wire providers, resolver and engine from configuration.

    Args:
        config: Config instance
        session: Optional aiohttp session shared by every provider

    Returns:
        Ready engine (with no providers if no key is configured)
    """
    container = ProviderContainer.from_config(config, session=session)
    providers = container.configured()
    resolver = LocationResolver(
        providers,
        degraded_mode=DegradedModePolicy(fallback=config.degraded_mode.fallback),
    )
    return AggregationEngine(
        providers,
        resolver=resolver,
        provider_timeout=config.get_timeout("provider"),
        dedup_tolerance_degrees=config.search_config.dedup_tolerance_degrees,
        merge_policy=config.search_config.merge_policy,
    )
