import logging

import pytest

from food_nearby import config as config_module
from food_nearby.config import Config, Environment, MergePolicy, get_config, reset_config, setup_logging
from food_nearby.errors import ConfigurationError
from food_nearby.models import Coordinates, ProviderId


def test_defaults():
    config = Config()
    assert config.environment == Environment.TESTING
    assert config.is_testing()
    assert config.provider_config.configured() == []
    assert config.provider_config.priority == [ProviderId.BAIDU, ProviderId.AMAP]
    assert config.search_config.default_radius == 1000
    assert config.search_config.default_keyword == "美食"
    assert config.search_config.dedup_tolerance_degrees == 0.001
    assert config.search_config.merge_policy is MergePolicy.HIGHER_RATING
    assert config.degraded_mode.fallback is None
    assert config.get_timeout("provider") == 10.0
    assert config.get_timeout("http") == 8.0


def test_keys_enable_providers(monkeypatch):
    monkeypatch.setenv("BAIDU_MAP_API_KEY", " baidu-key ")
    monkeypatch.setenv("GAODE_MAP_API_KEY", "amap-key")
    config = Config()
    assert config.provider_config.api_keys == {ProviderId.BAIDU: "baidu-key", ProviderId.AMAP: "amap-key"}
    assert config.provider_config.configured() == [ProviderId.BAIDU, ProviderId.AMAP]


def test_amap_key_takes_precedence_over_gaode_alias(monkeypatch):
    monkeypatch.setenv("AMAP_API_KEY", "primary")
    monkeypatch.setenv("GAODE_MAP_API_KEY", "alias")
    assert Config().provider_config.api_keys[ProviderId.AMAP] == "primary"


def test_degraded_mode_fallback(monkeypatch):
    monkeypatch.setenv("DEGRADED_MODE", "true")
    monkeypatch.setenv("DEFAULT_LAT", "31.2304")
    monkeypatch.setenv("DEFAULT_LNG", "121.4737")
    assert Config().degraded_mode.fallback == Coordinates(31.2304, 121.4737)


def test_priority_and_merge_policy(monkeypatch):
    monkeypatch.setenv("PROVIDER_PRIORITY", "AMAP, baidu, amap")
    monkeypatch.setenv("DEDUP_MERGE_POLICY", "KEEP_FIRST")
    config = Config()
    assert config.provider_config.priority == [ProviderId.AMAP, ProviderId.BAIDU]
    assert config.search_config.merge_policy is MergePolicy.KEEP_FIRST


@pytest.mark.parametrize("key,value", [
    ("SEARCH_DEFAULT_RADIUS", "wide"),
    ("SEARCH_DEFAULT_RADIUS", "0"),
    ("TIMEOUT_PROVIDER", "-1"),
    ("TIMEOUT_HTTP", "soon"),
    ("DEDUP_TOLERANCE_DEGREES", "0"),
    ("SEARCH_PAGE_SIZE", "0"),
    ("PROVIDER_PRIORITY", "baidu,google"),
    ("DEDUP_MERGE_POLICY", "average"),
    ("ENVIRONMENT", "moon"),
])
def test_invalid_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError):
        Config()


def test_to_dict_never_contains_keys(monkeypatch):
    monkeypatch.setenv("BAIDU_MAP_API_KEY", "secret-baidu-key")
    data = Config().to_dict()
    assert data["providers"]["configured"] == ["baidu"]
    assert "secret-baidu-key" not in repr(data)


def test_get_config_is_cached_until_reset(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)
    first = get_config()
    assert get_config() is first
    reset_config()
    assert get_config() is not first


def test_setup_logging_quiets_aiohttp():
    setup_logging(Config())
    assert logging.getLogger("aiohttp").level == logging.WARNING


def test_debug_flag_forces_debug_logging(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    root = logging.getLogger()
    previous = root.level
    try:
        setup_logging(Config())
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
