"""Plain-text rendering of search results for the tool response."""

from typing import List, Sequence

from food_nearby.models import CanonicalPOI, SearchRequest


def format_poi(poi: CanonicalPOI, index: int) -> str:
    """Render one place as a numbered, multi-line entry."""
    lines = [
        f"{index}. {poi.name}",
        f"   📍 {poi.address or 'Address unknown'}",
        f"   ⭐ {poi.rating:.1f}/5.0 ({poi.review_count} reviews)",
        f"   📞 {poi.phone or 'Phone unknown'}",
        f"   🕒 {poi.opening_hours or 'Opening hours unknown'}",
        f"   💰 {poi.price_bucket.value}",
        f"   🍽️ {poi.cuisine_type}",
    ]
    if poi.distance_meters is not None:
        lines.append(f"   📏 Distance: {round(poi.distance_meters)}m")
    lines.append(f"   🗺️ Sources: {', '.join(p.value for p in poi.source_providers)}")
    return "\n".join(lines)


def format_summary(request: SearchRequest) -> str:
    providers = ", ".join(p.value for p in request.providers) or "all"
    filters: List[str] = []
    if request.cuisine_filter:
        filters.append(f"cuisine={request.cuisine_filter}")
    if request.price_filter is not None:
        filters.append(f"price={request.price_filter.value}")
    if request.poi_type_code:
        filters.append(f"poi_type={request.poi_type_code}")
    if request.city_limit:
        filters.append("city_limit=true")
    return "\n".join([
        "📊 Search summary:",
        f"- Location: {request.location}",
        f"- Radius: {request.radius_meters}m",
        f"- Keyword: {request.keyword}",
        f"- Providers: {providers}",
        f"- Filters: {' '.join(filters) or 'none'}",
    ])


def format_results(pois: Sequence[CanonicalPOI], request: SearchRequest) -> str:
    """Render the full tool response text.

    An empty result renders a "no results" message with suggestions instead
    of an empty list.
    """
    if not pois:
        return (
            f"🗺️ No food places found near {request.location}.\n\n"
            "Possible reasons:\n"
            "1. Few food places in this area\n"
            "2. The keyword is too specific\n"
            "3. The search radius is too small\n"
            "4. A map API key is missing or invalid\n\n"
            "Suggestions:\n"
            "- Increase the search radius\n"
            "- Use a broader keyword (e.g. \"restaurant\" or \"美食\")\n"
            "- Check the map API configuration"
        )
    entries = "\n\n".join(format_poi(poi, i) for i, poi in enumerate(pois, start=1))
    return (
        f"🗺️ Map POI search results ({len(pois)} food places):\n\n"
        f"{entries}\n\n"
        f"{format_summary(request)}"
    )
