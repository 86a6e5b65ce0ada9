"""AMap (Gaode) provider.

Uses the AMap Web Service API v3:
- geocode/geo for addresses
- ip for a coarse "current location" (centre of the city rectangle)
- place/around for radius search, place/text for region search

AMap accepts POI type codes (e.g. 050000 food service, 050100 Chinese
restaurant, 050101 hot pot) alongside or instead of keywords.

Get an API key at: https://lbs.amap.com/
"""

from typing import Any, Dict, List, Optional

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
from food_nearby.providers.normalize import (
    extract_cuisine_type,
    first_of,
    parse_price_bucket,
    parse_rating,
    parse_review_count,
    split_tags,
    text_field,
)
from food_nearby.providers.utils import http_get
from food_nearby.utils.geo import blended_distance

AMAP_BASE = "https://restapi.amap.com/v3"
AMAP_GEOCODE_URL = f"{AMAP_BASE}/geocode/geo"
AMAP_IP_URL = f"{AMAP_BASE}/ip"
AMAP_AROUND_URL = f"{AMAP_BASE}/place/around"
AMAP_TEXT_URL = f"{AMAP_BASE}/place/text"

AMAP_OK = "1"
FOOD_SERVICE_TYPE = "050000"


def parse_lng_lat(value: str) -> Coordinates:
    """Parse AMap's "lng,lat" string."""
    lng, lat = text_field(value).split(",")[:2]
    return Coordinates(lat=float(lat), lng=float(lng))


def rectangle_center(rectangle: str) -> Coordinates:
    """Centre of "lng1,lat1;lng2,lat2" (bottom-left;top-right)."""
    corners = [c for c in text_field(rectangle).split(";") if c]
    if len(corners) < 2:
        raise ValueError(f"not a rectangle: {rectangle!r}")
    bottom_left = parse_lng_lat(corners[0])
    top_right = parse_lng_lat(corners[1])
    return Coordinates(
        lat=(bottom_left.lat + top_right.lat) / 2,
        lng=(bottom_left.lng + top_right.lng) / 2,
    )


class AmapProvider(PoiProvider):
    """AMap (Gaode) adapter."""

    provider_id = ProviderId.AMAP
    capabilities = frozenset({GEOCODING, IP_LOCATION, RADIUS_SEARCH, REGION_SEARCH})

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            name=self.name,
            version="v3",
            description="AMap (Gaode) web service: geocoding, IP location, place search",
            capabilities=sorted(self.capabilities),
        )

    async def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(params, key=self.api_key, output="json")
        data, error = await http_get(url, params=params, timeout=self.timeout, session=self.session)
        if error:
            raise ProviderError(f"request failed: {error}", provider_name=self.name, code="http")
        if not isinstance(data, dict):
            raise ProviderError("unexpected response shape", provider_name=self.name, code="response")
        if str(data.get("status")) != AMAP_OK:
            raise ProviderError(
                text_field(data.get("info")) or "request rejected",
                provider_name=self.name,
                code=data.get("infocode") or data.get("status"),
            )
        return data

    async def geocode(self, address: str) -> Coordinates:
        data = await self._get(AMAP_GEOCODE_URL, {"address": address})
        geocodes = data.get("geocodes") or []
        if not geocodes:
            raise ProviderError(f"no geocoding result for {address!r}", provider_name=self.name, code="no_results")
        try:
            return parse_lng_lat(geocodes[0].get("location"))
        except (AttributeError, ValueError) as e:
            raise ProviderError(f"unusable geocoding location: {e}", provider_name=self.name, code="response")

    async def ip_locate(self) -> Coordinates:
        data = await self._get(AMAP_IP_URL, {})
        try:
            return rectangle_center(data.get("rectangle"))
        except ValueError:
            # LAN and foreign addresses come back with an empty rectangle
            raise ProviderError(
                f"IP location returned no usable rectangle: {text_field(data.get('info'))}",
                provider_name=self.name,
                code="no_rectangle",
            )

    def _keyword_params(self, keyword: str, poi_type_code: Optional[str]) -> Dict[str, Any]:
        # keywords and types: at least one is required
        params: Dict[str, Any] = {}
        if keyword:
            params["keywords"] = keyword
        if poi_type_code:
            params["types"] = poi_type_code
        if not params:
            params["types"] = FOOD_SERVICE_TYPE
        return params

    async def search_by_radius(
        self,
        center: Coordinates,
        radius_meters: int,
        keyword: str,
        poi_type_code: Optional[str] = None,
    ) -> List[CanonicalPOI]:
        params = {
            "location": f"{center.lng},{center.lat}",
            "radius": int(radius_meters),
            "extensions": "all",
            "offset": self.page_size,
            "page": 1,
            **self._keyword_params(keyword, poi_type_code),
        }
        data = await self._get(AMAP_AROUND_URL, params)
        return self._normalize_all(data.get("pois") or [], center)

    async def search_by_region_text(
        self,
        region: str,
        keyword: str,
        poi_type_code: Optional[str] = None,
        city_limit: bool = False,
    ) -> List[CanonicalPOI]:
        params = {
            "city": region,
            "citylimit": city_limit,
            "extensions": "all",
            "offset": self.page_size,
            "page": 1,
            **self._keyword_params(keyword, poi_type_code),
        }
        data = await self._get(AMAP_TEXT_URL, params)
        return self._normalize_all(data.get("pois") or [])

    def normalize(self, raw: Dict[str, Any], center: Optional[Coordinates] = None) -> CanonicalPOI:
        biz = raw.get("biz_ext") or {}
        if not isinstance(biz, dict):
            biz = {}
        location = parse_lng_lat(raw["location"])
        name = text_field(raw.get("name"))
        poi_type = text_field(raw.get("type"))
        tag = text_field(raw.get("tag"))
        photos = raw.get("photos") or []
        return CanonicalPOI(
            id=f"amap_{raw['id']}",
            name=name,
            address=text_field(raw.get("address")),
            location=location,
            rating=parse_rating(first_of([biz.get("rating"), raw.get("rating")])),
            review_count=parse_review_count(text_field(raw.get("comment_num"))),
            phone=text_field(raw.get("tel")),
            opening_hours=first_of([biz.get("open_time"), raw.get("opening_time")]),
            price_bucket=parse_price_bucket(first_of([biz.get("cost"), raw.get("cost")])),
            cuisine_type=extract_cuisine_type(f"{name} {poi_type} {tag}"),
            distance_meters=blended_distance(center, location) if center else None,
            image_url=text_field(photos[0].get("url")) if photos else "",
            source_providers=(self.provider_id,),
            tags=split_tags(poi_type, tag),
        )
