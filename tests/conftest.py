"""
Pytest configuration for food_nearby tests.

Every test starts from a clean environment: testing mode, no provider keys
and no cached global configuration.
"""
import pytest

from food_nearby import config as config_module

CLEARED_ENV = (
    "BAIDU_MAP_API_KEY",
    "AMAP_API_KEY",
    "GAODE_MAP_API_KEY",
    "PROVIDER_PRIORITY",
    "DEGRADED_MODE",
    "DEDUP_TOLERANCE_DEGREES",
    "DEDUP_MERGE_POLICY",
    "TIMEOUT_PROVIDER",
    "TIMEOUT_HTTP",
    "SEARCH_DEFAULT_RADIUS",
    "SEARCH_DEFAULT_KEYWORD",
    "SEARCH_PAGE_SIZE",
    "LOG_FILE",
    "DEBUG",
)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables before each test."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    for key in CLEARED_ENV:
        monkeypatch.delenv(key, raising=False)
    config_module.reset_config()
    yield
    config_module.reset_config()
