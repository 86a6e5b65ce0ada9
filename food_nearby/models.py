"""
Value types shared by providers, the resolver and the aggregation engine.

All of them are request-scoped: built when a search starts and thrown away
once the result has been rendered.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple

# "food": the generic keyword both providers understand
DEFAULT_KEYWORD = "美食"
DEFAULT_RADIUS_METERS = 1000


class ProviderId(str, Enum):
    """Mapping providers the engine knows how to talk to."""
    BAIDU = "baidu"
    AMAP = "amap"


class PriceBucket(str, Enum):
    """Coarse per-person price classes."""
    CHEAP = "Cheap"
    MEDIUM = "Medium"
    EXPENSIVE = "Expensive"
    UNKNOWN = "Unknown"


class SearchStrategy(Enum):
    """How a location string is searched."""
    REGION = "region"
    COORDINATE = "coordinate"
    MIXED = "mixed"


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees.

    The range is not enforced on construction; ``is_valid`` reports it.
    """

    lat: float
    lng: float

    @property
    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0

    def __str__(self) -> str:
        return f"{self.lat},{self.lng}"


def unique(items: Iterable) -> tuple:
    """Drop duplicates while keeping first-seen order."""
    seen = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return tuple(out)


@dataclass(frozen=True)
class CanonicalPOI:
    """A food establishment normalized from any provider response."""

    id: str
    name: str
    location: Coordinates
    source_providers: Tuple[ProviderId, ...]
    address: str = ""
    rating: float = 0.0
    review_count: int = 0
    phone: str = ""
    opening_hours: str = ""
    price_bucket: PriceBucket = PriceBucket.UNKNOWN
    cuisine_type: str = "Other"
    distance_meters: Optional[float] = None
    image_url: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.source_providers:
            raise ValueError("CanonicalPOI requires at least one source provider")
        object.__setattr__(self, "rating", min(5.0, max(0.0, float(self.rating))))
        object.__setattr__(self, "review_count", max(0, int(self.review_count)))
        if self.distance_meters is not None:
            object.__setattr__(self, "distance_meters", max(0.0, float(self.distance_meters)))
        object.__setattr__(self, "source_providers", unique(self.source_providers))
        object.__setattr__(self, "tags", unique(self.tags))


@dataclass
class SearchRequest:
    """A fully parsed search, as handed to the engine by the dispatcher."""

    location: str
    radius_meters: int = DEFAULT_RADIUS_METERS
    keyword: str = DEFAULT_KEYWORD
    cuisine_filter: Optional[str] = None
    price_filter: Optional[PriceBucket] = None
    # empty means every configured provider
    providers: Tuple[ProviderId, ...] = ()
    poi_type_code: Optional[str] = None
    city_limit: bool = False
