import pytest

from fakes import FakeProvider, make_poi
from food_nearby import app as app_module
from food_nearby import config as config_module
from food_nearby.config import Config
from food_nearby.errors import ProviderError
from food_nearby.models import PriceBucket, ProviderId
from food_nearby.services.aggregator import AggregationEngine


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)
    monkeypatch.setattr(app_module, "engine", None)
    return app_module.app.test_client()


def use_engine(monkeypatch, *providers):
    monkeypatch.setattr(app_module, "engine", AggregationEngine(list(providers)))


# --- parse_search_request ---

def test_parse_fills_defaults():
    request = app_module.parse_search_request({"location": " 北京市 "}, Config())
    assert request.location == "北京市"
    assert request.radius_meters == 1000
    assert request.keyword == "美食"
    assert request.providers == (ProviderId.BAIDU, ProviderId.AMAP)
    assert request.price_filter is None
    assert request.city_limit is False


def test_parse_accepts_chinese_price_names_and_platforms():
    request = app_module.parse_search_request(
        {
            "location": "三里屯",
            "radius": 2500.0,
            "price_range": "便宜",
            "map_platforms": ["amap"],
            "poi_type": "050101",
            "city_limit": True,
        },
        Config(),
    )
    assert request.radius_meters == 2500
    assert request.price_filter == PriceBucket.CHEAP
    assert request.providers == (ProviderId.AMAP,)
    assert request.poi_type_code == "050101"
    assert request.city_limit is True


@pytest.mark.parametrize("params", [
    {},
    {"location": ""},
    {"location": "北京市", "radius": -5},
    {"location": "北京市", "radius": "far"},
    {"location": "北京市", "price_range": "free"},
    {"location": "北京市", "map_platforms": ["google"]},
    {"location": "北京市", "map_platforms": 3},
    {"location": "北京市", "city_limit": "false"},
    {"location": "北京市", "city_limit": 1},
    {"location": "北京市", "cuisine_type": 5},
])
def test_parse_rejects_invalid_params(params):
    with pytest.raises(ValueError):
        app_module.parse_search_request(params, Config())


# --- routes ---

@pytest.mark.asyncio
async def test_list_tools(client):
    resp = await client.get("/mcp/list")
    assert resp.status_code == 200
    data = await resp.get_json()
    [tool] = data["tools"]
    assert tool["id"] == "search_map_poi"
    assert tool["inputSchema"]["required"] == ["location"]


@pytest.mark.asyncio
async def test_execute_requires_tool_id(client):
    resp = await client.post("/mcp/execute", json={"params": {"location": "北京市"}})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_execute_unknown_tool(client):
    resp = await client.post("/mcp/execute", json={"tool_id": "navigate", "params": {}})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_execute_invalid_params(client):
    resp = await client.post("/mcp/execute", json={"tool_id": "search_map_poi", "params": {"radius": 10}})
    assert resp.status_code == 400
    data = await resp.get_json()
    assert "location" in data["error"]


@pytest.mark.asyncio
async def test_execute_returns_formatted_results(client, monkeypatch):
    use_engine(monkeypatch, FakeProvider(ProviderId.AMAP, region_results=[
        make_poi(name="海底捞火锅", provider=ProviderId.AMAP, rating=4.8),
        make_poi(name="老成都川菜馆", provider=ProviderId.AMAP, rating=4.6),
    ]))
    resp = await client.post("/mcp/execute", json={
        "tool_id": "search_map_poi",
        "params": {"location": "北京市", "keyword": "火锅"},
    })
    assert resp.status_code == 200
    data = await resp.get_json()
    assert data["status"] == "ok"
    assert data["count"] == 2
    assert data["result"].index("1. 海底捞火锅") < data["result"].index("2. 老成都川菜馆")


@pytest.mark.asyncio
async def test_execute_reports_engine_errors_as_text(client, monkeypatch):
    use_engine(monkeypatch, FakeProvider(
        ProviderId.BAIDU,
        errors={"region": ProviderError("bad key", provider_name="baidu", code=240)},
    ))
    resp = await client.post("/mcp/execute", json={"tool_id": "search_map_poi", "params": {"location": "北京市"}})
    assert resp.status_code == 200
    data = await resp.get_json()
    assert data["status"] == "error"
    assert data["result"].startswith("Error: ")
    assert "bad key" in data["result"]


@pytest.mark.asyncio
async def test_execute_without_configured_providers(client):
    resp = await client.post("/mcp/execute", json={"tool_id": "search_map_poi", "params": {"location": "北京市"}})
    assert resp.status_code == 200
    data = await resp.get_json()
    assert data["status"] == "error"
    assert "No map provider is configured" in data["result"]


@pytest.mark.asyncio
async def test_list_providers(client, monkeypatch):
    monkeypatch.setenv("AMAP_API_KEY", "amap-key")
    resp = await client.get("/mcp/providers")
    data = await resp.get_json()
    [provider] = data["providers"]
    assert provider["name"] == "amap"
    assert "ip_location" in provider["capabilities"]


@pytest.mark.asyncio
async def test_execute_filters_by_chinese_cuisine_name(client, monkeypatch):
    use_engine(monkeypatch, FakeProvider(ProviderId.AMAP, region_results=[
        make_poi(name="老成都川菜馆", cuisine_type="Sichuan", tags=("美食", "中餐厅"), provider=ProviderId.AMAP),
        make_poi(name="海底捞火锅", cuisine_type="Hot Pot", provider=ProviderId.AMAP),
    ]))
    resp = await client.post("/mcp/execute", json={
        "tool_id": "search_map_poi",
        "params": {"location": "北京市", "cuisine_type": "川菜"},
    })
    data = await resp.get_json()
    assert data["status"] == "ok"
    assert data["count"] == 1
    assert "老成都川菜馆" in data["result"]
