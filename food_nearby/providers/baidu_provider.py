"""Baidu Maps provider.

Uses the Baidu Place API v2 for radius and region search and the Geocoding
API v3 for addresses. Requests and responses use GCJ-02 coordinates, the
same datum AMap uses, so places from both providers line up. Baidu has no
usable IP location for this engine, so the adapter does not declare that
capability.

Get an API key (ak) at: https://lbsyun.baidu.com/
"""

from typing import Any, Dict, List, Optional

from food_nearby.errors import ProviderError
from food_nearby.models import CanonicalPOI, Coordinates, ProviderId
from food_nearby.providers.base import (
    GEOCODING,
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

BAIDU_GEOCODE_URL = "https://api.map.baidu.com/geocoding/v3/"
BAIDU_PLACE_SEARCH_URL = "https://api.map.baidu.com/place/v2/search"

BAIDU_OK = 0

# Work in GCJ-02 like AMap: coord_type 2 is gcj02ll input
GCJ02_COORD_TYPE = 2
GCJ02_RET_COORDTYPE = "gcj02ll"


class BaiduProvider(PoiProvider):
    """Baidu Maps adapter."""

    provider_id = ProviderId.BAIDU
    capabilities = frozenset({GEOCODING, RADIUS_SEARCH, REGION_SEARCH})

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            name=self.name,
            version="v2",
            description="Baidu Maps place search and geocoding",
            capabilities=sorted(self.capabilities),
        )

    async def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(params, ak=self.api_key, output="json")
        data, error = await http_get(url, params=params, timeout=self.timeout, session=self.session)
        if error:
            raise ProviderError(f"request failed: {error}", provider_name=self.name, code="http")
        if not isinstance(data, dict):
            raise ProviderError("unexpected response shape", provider_name=self.name, code="response")
        status = data.get("status")
        if status != BAIDU_OK:
            raise ProviderError(
                data.get("message") or data.get("msg") or "request rejected",
                provider_name=self.name,
                code=status,
            )
        return data

    async def geocode(self, address: str) -> Coordinates:
        data = await self._get(BAIDU_GEOCODE_URL, {"address": address, "ret_coordtype": GCJ02_RET_COORDTYPE})
        result = data.get("result")
        location = result.get("location") if isinstance(result, dict) else None
        if not location:
            raise ProviderError(f"no geocoding result for {address!r}", provider_name=self.name, code="no_results")
        try:
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"unusable geocoding location: {e!r}", provider_name=self.name, code="response")

    async def search_by_radius(
        self,
        center: Coordinates,
        radius_meters: int,
        keyword: str,
        poi_type_code: Optional[str] = None,
    ) -> List[CanonicalPOI]:
        params = {
            "query": keyword,
            "location": f"{center.lat},{center.lng}",
            "radius": int(radius_meters),
            "radius_limit": True,
            "scope": 2,  # detailed results
            "page_size": self.page_size,
            "page_num": 0,
            "coord_type": GCJ02_COORD_TYPE,
            "ret_coordtype": GCJ02_RET_COORDTYPE,
        }
        data = await self._get(BAIDU_PLACE_SEARCH_URL, params)
        return self._normalize_all(data.get("results") or [], center)

    async def search_by_region_text(
        self,
        region: str,
        keyword: str,
        poi_type_code: Optional[str] = None,
        city_limit: bool = False,
    ) -> List[CanonicalPOI]:
        # poi_type_code is an AMap concept; Baidu filters by keyword only
        params = {
            "query": keyword,
            "region": region,
            "city_limit": city_limit,
            "scope": 2,
            "page_size": self.page_size,
            "page_num": 0,
            "coord_type": GCJ02_COORD_TYPE,
            "ret_coordtype": GCJ02_RET_COORDTYPE,
        }
        data = await self._get(BAIDU_PLACE_SEARCH_URL, params)
        return self._normalize_all(data.get("results") or [])

    def normalize(self, raw: Dict[str, Any], center: Optional[Coordinates] = None) -> CanonicalPOI:
        detail = raw.get("detail_info") or {}
        loc = raw["location"]
        location = Coordinates(lat=float(loc["lat"]), lng=float(loc["lng"]))
        name = text_field(raw.get("name"))
        tag = text_field(detail.get("tag"))
        photos = (detail.get("photo") or {}).get("photo") or []
        return CanonicalPOI(
            id=f"baidu_{raw['uid']}",
            name=name,
            address=text_field(raw.get("address")),
            location=location,
            rating=parse_rating(detail.get("overall_rating")),
            review_count=parse_review_count(detail.get("comment_num")),
            phone=first_of([raw.get("telephone"), detail.get("phone")]),
            opening_hours=first_of([detail.get("shop_hours"), detail.get("opening_time")]),
            price_bucket=parse_price_bucket(detail.get("price")),
            cuisine_type=extract_cuisine_type(f"{name} {tag}"),
            distance_meters=blended_distance(center, location) if center else None,
            image_url=text_field(photos[0].get("photo_url")) if photos else "",
            source_providers=(self.provider_id,),
            tags=split_tags(tag),
        )
