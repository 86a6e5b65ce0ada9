"""
Search strategy selection.

A location string is searched one of three ways:
- COORDINATE: it is already a "lat,lng" pair or the "current location" sentinel
- REGION: it names an administrative unit (city, district, ...)
- MIXED: anything else; region search first, coordinate search if that is empty
"""

import re

from food_nearby.models import SearchStrategy

COORDINATE_PATTERN = re.compile(r"^[+-]?\d+\.?\d*,\s*[+-]?\d+\.?\d*$")

CURRENT_LOCATION_TOKENS = ("current location", "当前位置")

# 市 city, 县 county, 区 district, 省 province
REGION_SUFFIXES = ("市", "县", "区", "省", "自治区", "特别行政区")
REGION_WORDS = re.compile(
    r"\b(city|county|district|province|autonomous region|special administrative region)\b",
    re.IGNORECASE,
)


def is_coordinate_format(location: str) -> bool:
    return bool(location) and COORDINATE_PATTERN.match(location.strip()) is not None


def is_current_location(location: str) -> bool:
    if not location:
        return False
    return location.strip().lower() in CURRENT_LOCATION_TOKENS


def is_region_search(location: str) -> bool:
    if not location:
        return False
    return any(s in location for s in REGION_SUFFIXES) or REGION_WORDS.search(location) is not None


def classify(location: str) -> SearchStrategy:
    """Pick the search strategy for a raw location string.

    Coordinate and sentinel checks run before the region check.
    """
    if is_coordinate_format(location) or is_current_location(location):
        return SearchStrategy.COORDINATE
    if is_region_search(location):
        return SearchStrategy.REGION
    return SearchStrategy.MIXED
