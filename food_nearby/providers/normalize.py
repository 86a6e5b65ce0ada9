"""
Field parsers shared by the provider normalizers.

Every function here is pure: same raw value in, same canonical value out.
"""

import re
from typing import Any, Iterable, Optional, Tuple

from food_nearby.models import PriceBucket, unique

CHEAP_BELOW = 30.0
EXPENSIVE_ABOVE = 100.0

# Ordered: the first entry whose keywords appear in the text wins.
CUISINE_VOCABULARY: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Sichuan", ("川菜", "sichuan")),
    ("Cantonese", ("粤菜", "cantonese")),
    ("Hunan", ("湘菜", "hunan")),
    ("Shandong", ("鲁菜", "shandong")),
    ("Jiangsu", ("苏菜", "jiangsu")),
    ("Zhejiang", ("浙菜", "zhejiang")),
    ("Fujian", ("闽菜", "fujian")),
    ("Anhui", ("徽菜", "anhui")),
    ("Japanese", ("日料", "日本料理", "japanese", "sushi")),
    ("Korean", ("韩料", "韩国料理", "korean")),
    ("Western", ("西餐", "western", "steak")),
    ("Fast Food", ("快餐", "fast food")),
    ("Hot Pot", ("火锅", "hot pot", "hotpot")),
    ("Barbecue", ("烧烤", "barbecue", "bbq")),
    ("Dessert", ("甜品", "dessert")),
    ("Coffee", ("咖啡", "coffee", "cafe")),
    ("Tea", ("茶饮", "tea")),
    ("Bakery", ("面包", "bakery")),
    ("Cake", ("蛋糕", "cake")),
    ("Snacks", ("小吃", "snack")),
    ("Noodles", ("面食", "noodle")),
    ("Rice", ("米饭", "rice")),
    ("Soup", ("汤品", "soup")),
)
OTHER_CUISINE = "Other"

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+))")


def parse_number(value: Any) -> Optional[float]:
    """Parse the leading number of a value, or None.

    "4.5" -> 4.5, "120元" -> 120.0, "" -> None, [] -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    m = _LEADING_NUMBER.match(value)
    if not m:
        return None
    return float(m.group(1))


def parse_rating(value: Any) -> float:
    """Rating clamped into [0, 5]; anything unparsable is 0."""
    num = parse_number(value)
    if num is None:
        return 0.0
    return min(5.0, max(0.0, num))


def parse_review_count(value: Any) -> int:
    num = parse_number(value)
    if num is None or num < 0:
        return 0
    return int(num)


def parse_price_bucket(value: Any) -> PriceBucket:
    """Bucket a per-person price: <30 cheap, 30-100 medium, >100 expensive."""
    num = parse_number(value)
    if num is None:
        return PriceBucket.UNKNOWN
    if num < CHEAP_BELOW:
        return PriceBucket.CHEAP
    if num > EXPENSIVE_ABOVE:
        return PriceBucket.EXPENSIVE
    return PriceBucket.MEDIUM


def extract_cuisine_type(text: str) -> str:
    if not text:
        return OTHER_CUISINE
    lowered = text.lower()
    for label, keywords in CUISINE_VOCABULARY:
        if any(k in lowered for k in keywords):
            return label
    return OTHER_CUISINE


def canonical_cuisine(text: str) -> str:
    """Map a cuisine name in any accepted form to its label.

    "川菜", "sichuan" and "Sichuan" all give "Sichuan". Unknown names are
    returned stripped but otherwise unchanged.
    """
    cleaned = (text or "").strip()
    lowered = cleaned.lower()
    for label, keywords in CUISINE_VOCABULARY:
        if lowered == label.lower() or lowered in keywords:
            return label
    return cleaned


def split_tags(*values: Any) -> Tuple[str, ...]:
    """Split provider tag strings on ',' and ';' into an ordered, unique tuple."""
    parts = []
    for value in values:
        if not value or not isinstance(value, str):
            continue
        parts.extend(p.strip() for p in re.split(r"[,;]", value))
    return unique(p for p in parts if p)


def text_field(value: Any) -> str:
    """Coerce a provider string field; AMap sends [] for empty strings."""
    if value is None or isinstance(value, (list, dict)):
        return ""
    return str(value).strip()


def first_of(values: Iterable[Any]) -> str:
    for v in values:
        s = text_field(v)
        if s:
            return s
    return ""
