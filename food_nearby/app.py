"""MCP-like HTTP surface for the food POI search tool (Quart)."""
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

import aiohttp
from quart import Quart, jsonify, request

from food_nearby import __version__
from food_nearby.config import Config, get_config, setup_logging
from food_nearby.errors import FoodNearbyError
from food_nearby.formatting import format_results
from food_nearby.models import PriceBucket, ProviderId, SearchRequest
from food_nearby.services.aggregator import AggregationEngine, build_engine

logger = logging.getLogger(__name__)

app = Quart(__name__)

aiohttp_session: Optional[aiohttp.ClientSession] = None
engine: Optional[AggregationEngine] = None

SEARCH_TOOL_ID = 'search_map_poi'

PRICE_ALIASES = {
    'cheap': PriceBucket.CHEAP,
    '便宜': PriceBucket.CHEAP,
    'medium': PriceBucket.MEDIUM,
    '中等': PriceBucket.MEDIUM,
    'expensive': PriceBucket.EXPENSIVE,
    '昂贵': PriceBucket.EXPENSIVE,
}

TOOLS = [
    {
        'id': SEARCH_TOOL_ID,
        'title': 'Search food POIs',
        'description': 'Search nearby restaurants and food places through the Baidu and AMap POI APIs',
        'inputSchema': {
            'type': 'object',
            'properties': {
                'location': {
                    'type': 'string',
                    'description': 'An address, "lat,lng", "current location"/"当前位置" or a region name such as 北京市',
                },
                'radius': {'type': 'number', 'description': 'Search radius in meters', 'default': 1000},
                'keyword': {'type': 'string', 'description': 'Food keyword such as 美食, 火锅, 川菜', 'default': '美食'},
                'cuisine_type': {'type': 'string', 'description': 'Cuisine filter, e.g. Sichuan/川菜, Hot Pot/火锅, Japanese/日料'},
                'price_range': {
                    'type': 'string',
                    'description': 'Price filter: Cheap, Medium, Expensive (or 便宜, 中等, 昂贵)',
                },
                'map_platforms': {
                    'type': 'array',
                    'items': {'type': 'string', 'enum': ['baidu', 'amap', 'all']},
                    'default': ['all'],
                },
                'poi_type': {'type': 'string', 'description': 'AMap POI type code, e.g. 050000 food service, 050101 hot pot'},
                'city_limit': {'type': 'boolean', 'description': 'Only return places inside the named city (AMap)', 'default': False},
            },
            'required': ['location'],
        },
    }
]


def parse_search_request(params: Dict[str, Any], config: Config) -> SearchRequest:
    """Validate tool params and fill in defaults.

    Raises:
        ValueError: If a parameter is missing or malformed
    """
    if not isinstance(params, dict):
        raise ValueError('params must be an object')

    location = params.get('location')
    if not isinstance(location, str) or not location.strip():
        raise ValueError('location required')

    radius = params.get('radius')
    if radius is None:
        radius = config.search_config.default_radius
    elif isinstance(radius, bool) or not isinstance(radius, (int, float)) or radius <= 0:
        raise ValueError(f'radius must be a positive number, got {radius!r}')

    keyword = params.get('keyword') or config.search_config.default_keyword
    if not isinstance(keyword, str):
        raise ValueError('keyword must be a string')

    cuisine = params.get('cuisine_type') or None
    if cuisine is not None:
        if not isinstance(cuisine, str):
            raise ValueError('cuisine_type must be a string')
        cuisine = cuisine.strip() or None

    price = None
    price_range = params.get('price_range')
    if price_range:
        price = PRICE_ALIASES.get(str(price_range).strip().lower())
        if price is None:
            raise ValueError(f'Unknown price_range: {price_range}')

    platforms = params.get('map_platforms') or ['all']
    if isinstance(platforms, str):
        platforms = [platforms]
    if not isinstance(platforms, list):
        raise ValueError('map_platforms must be an array')
    providers = []
    for name in platforms:
        name = str(name).strip().lower()
        if name == 'all':
            providers.extend(ProviderId)
            continue
        try:
            providers.append(ProviderId(name))
        except ValueError:
            raise ValueError(f'Unknown map platform: {name}')

    city_limit = params.get('city_limit')
    if city_limit is None:
        city_limit = False
    elif not isinstance(city_limit, bool):
        raise ValueError(f'city_limit must be a boolean, got {city_limit!r}')

    poi_type = params.get('poi_type') or None
    if poi_type is not None:
        poi_type = str(poi_type)

    return SearchRequest(
        location=location.strip(),
        radius_meters=int(radius),
        keyword=keyword,
        cuisine_filter=cuisine,
        price_filter=price,
        providers=tuple(dict.fromkeys(providers)),
        poi_type_code=poi_type,
        city_limit=city_limit,
    )


def get_engine() -> AggregationEngine:
    global engine
    if engine is None:
        engine = build_engine(get_config(), session=aiohttp_session)
    return engine


@app.before_serving
async def startup():
    global aiohttp_session, engine
    aiohttp_session = aiohttp.ClientSession(headers={"User-Agent": f"food-nearby/{__version__}"})
    engine = None


@app.after_serving
async def shutdown():
    global aiohttp_session, engine
    if aiohttp_session:
        await aiohttp_session.close()
    aiohttp_session = None
    engine = None


@app.route('/mcp/list', methods=['GET'])
async def list_tools():
    return jsonify({'tools': TOOLS})


@app.route('/mcp/providers', methods=['GET'])
async def list_providers():
    try:
        providers = get_engine().providers
    except FoodNearbyError as e:
        return jsonify({'status': 'error', 'result': f'Error: {e}'})
    return jsonify({'providers': [asdict(p.get_metadata()) for p in providers]})


@app.route('/mcp/execute', methods=['POST'])
async def execute_tool():
    data = await request.get_json(force=True, silent=True) or {}
    tool_id = data.get('tool_id')
    params = data.get('params', {})
    if not tool_id:
        return jsonify({'error': 'tool_id required'}), 400
    if tool_id != SEARCH_TOOL_ID:
        return jsonify({'error': 'unknown_tool'}), 404

    try:
        search_request = parse_search_request(params, get_config())
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except FoodNearbyError as e:
        return jsonify({'status': 'error', 'result': f'Error: {e}'})

    try:
        pois = await get_engine().search(search_request)
    except FoodNearbyError as e:
        logger.warning(f"Search for {search_request.location!r} failed: {e}")
        return jsonify({'status': 'error', 'result': f'Error: {e}'})
    except Exception:
        logger.exception(f"Unexpected failure searching {search_request.location!r}")
        return jsonify({'status': 'error', 'result': 'Error: map POI search failed'}), 500

    return jsonify({
        'status': 'ok',
        'result': format_results(pois, search_request),
        'count': len(pois),
    })


def run(port: Optional[int] = None):
    config = get_config()
    setup_logging(config)
    app.run(host=config.host, port=port or config.port)


if __name__ == '__main__':
    run()
