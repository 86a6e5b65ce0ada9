"""
Centralized configuration management with validation and type conversion.

All settings come from environment variables (optionally loaded from a .env
file). Provider keys are optional: a missing key just leaves that provider
out of the search. Malformed values raise ConfigurationError.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from food_nearby.errors import ConfigurationError
from food_nearby.models import DEFAULT_KEYWORD, DEFAULT_RADIUS_METERS, Coordinates, ProviderId

logger = logging.getLogger(__name__)

# Tiananmen, Beijing: only used when degraded mode is switched on
DEFAULT_FALLBACK_LAT = 39.9042
DEFAULT_FALLBACK_LNG = 116.4074


class Environment(Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class MergePolicy(Enum):
    """What happens to the kept record when a duplicate is merged into it."""
    HIGHER_RATING = "higher_rating"
    KEEP_FIRST = "keep_first"


@dataclass
class TimeoutConfig:
    """Timeout configuration in seconds."""
    provider: float = 10.0
    http: float = 8.0


@dataclass
class ProviderConfig:
    """Provider credentials and ordering."""
    api_keys: Dict[ProviderId, str] = field(default_factory=dict)
    priority: List[ProviderId] = field(default_factory=lambda: [ProviderId.BAIDU, ProviderId.AMAP])
    page_size: int = 20

    def configured(self) -> List[ProviderId]:
        """Provider ids that have a key, in priority order."""
        return [p for p in self.priority if self.api_keys.get(p)]


@dataclass
class SearchConfig:
    """Defaults substituted by the dispatcher and tuning for the engine."""
    default_radius: int = DEFAULT_RADIUS_METERS
    default_keyword: str = DEFAULT_KEYWORD
    dedup_tolerance_degrees: float = 0.001
    merge_policy: MergePolicy = MergePolicy.HIGHER_RATING


@dataclass
class DegradedModeConfig:
    """Opt-in fallback coordinate for failed resolutions."""
    enabled: bool = False
    lat: float = DEFAULT_FALLBACK_LAT
    lng: float = DEFAULT_FALLBACK_LNG

    @property
    def fallback(self) -> Optional[Coordinates]:
        return Coordinates(self.lat, self.lng) if self.enabled else None


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


class Config:
    """Centralized configuration with validation and type conversion."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.environment = self._get_environment()
        self.debug = self._get_bool("DEBUG", False)

        # API Keys
        api_keys = {}
        baidu_key = self._get_optional("BAIDU_MAP_API_KEY")
        amap_key = self._get_optional("AMAP_API_KEY") or self._get_optional("GAODE_MAP_API_KEY")
        if baidu_key:
            api_keys[ProviderId.BAIDU] = baidu_key
        if amap_key:
            api_keys[ProviderId.AMAP] = amap_key

        self.provider_config = ProviderConfig(
            api_keys=api_keys,
            priority=self._get_provider_list("PROVIDER_PRIORITY", [ProviderId.BAIDU, ProviderId.AMAP]),
            page_size=self._get_int("SEARCH_PAGE_SIZE", 20),
        )

        # Timeouts
        self.timeout_config = TimeoutConfig(
            provider=self._get_float("TIMEOUT_PROVIDER", 10.0),
            http=self._get_float("TIMEOUT_HTTP", 8.0),
        )

        # Search
        self.search_config = SearchConfig(
            default_radius=self._get_int("SEARCH_DEFAULT_RADIUS", DEFAULT_RADIUS_METERS),
            default_keyword=self._get_str("SEARCH_DEFAULT_KEYWORD", DEFAULT_KEYWORD),
            dedup_tolerance_degrees=self._get_float("DEDUP_TOLERANCE_DEGREES", 0.001),
            merge_policy=self._get_merge_policy("DEDUP_MERGE_POLICY", MergePolicy.HIGHER_RATING),
        )

        # Degraded mode
        self.degraded_mode = DegradedModeConfig(
            enabled=self._get_bool("DEGRADED_MODE", False),
            lat=self._get_float("DEFAULT_LAT", DEFAULT_FALLBACK_LAT),
            lng=self._get_float("DEFAULT_LNG", DEFAULT_FALLBACK_LNG),
        )

        # Logging
        self.logging_config = LoggingConfig(
            level=self._get_str("LOG_LEVEL", "INFO"),
            format=self._get_str("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            file=self._get_optional("LOG_FILE"),
            max_bytes=self._get_int("LOG_MAX_BYTES", 10485760),
            backup_count=self._get_int("LOG_BACKUP_COUNT", 5),
        )

        # Dispatcher
        self.host = self._get_str("HOST", "127.0.0.1")
        self.port = self._get_int("PORT", 8766)

        # Validation
        self._validate()

    def _get_environment(self) -> Environment:
        """Get application environment."""
        env_str = self._get_str("ENVIRONMENT", "development").lower()
        try:
            return Environment(env_str)
        except ValueError:
            raise ConfigurationError(f"Invalid environment: {env_str}")

    def _get_optional(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get optional environment variable.

        Args:
            key: Environment variable name
            default: Default value if not found

        Returns:
            Environment variable value or default
        """
        value = os.getenv(key, default)
        if value is not None:
            value = value.strip()
        return value or default

    def _get_str(self, key: str, default: str) -> str:
        return os.getenv(key) or default

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable with default.

        Raises:
            ConfigurationError: If value cannot be converted to int
        """
        value = os.getenv(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Invalid integer for {key}: {value}")

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable with default.

        Raises:
            ConfigurationError: If value cannot be converted to float
        """
        value = os.getenv(key)
        if value is None or value == "":
            return default
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"Invalid float for {key}: {value}")

    def _get_bool(self, key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None or value == "":
            return default
        return value.lower() in ('1', 'true', 'yes', 'on')

    def _get_list(self, key: str, default: list) -> list:
        value = os.getenv(key)
        if value is None:
            return default
        return [item.strip() for item in value.split(',') if item.strip()]

    def _get_provider_list(self, key: str, default: List[ProviderId]) -> List[ProviderId]:
        names = self._get_list(key, [p.value for p in default])
        providers = []
        for name in names:
            try:
                provider = ProviderId(name.lower())
            except ValueError:
                raise ConfigurationError(f"Unknown provider in {key}: {name}")
            if provider not in providers:
                providers.append(provider)
        return providers

    def _get_merge_policy(self, key: str, default: MergePolicy) -> MergePolicy:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return MergePolicy(value.lower())
        except ValueError:
            raise ConfigurationError(f"Invalid merge policy for {key}: {value}")

    def _validate(self):
        """Validate configuration values."""
        for attr_name in ['provider', 'http']:
            timeout = getattr(self.timeout_config, attr_name)
            if timeout <= 0:
                raise ConfigurationError(f"Invalid timeout for {attr_name}: {timeout}")

        if self.search_config.default_radius <= 0:
            raise ConfigurationError(f"Invalid default radius: {self.search_config.default_radius}")

        if self.search_config.dedup_tolerance_degrees <= 0:
            raise ConfigurationError(
                f"Invalid dedup tolerance: {self.search_config.dedup_tolerance_degrees}"
            )

        if self.provider_config.page_size <= 0:
            raise ConfigurationError(f"Invalid page size: {self.provider_config.page_size}")

        # Missing keys are not fatal; the engine reports it when a search runs
        for provider in self.provider_config.priority:
            if provider not in self.provider_config.api_keys:
                logger.warning(f"No API key for {provider.value} - provider disabled")

        if self.degraded_mode.enabled:
            logger.warning(
                f"Degraded mode enabled - failed resolutions fall back to {self.degraded_mode.fallback}"
            )

    def get_timeout(self, operation: str) -> float:
        """Get timeout for a specific operation.

        Args:
            operation: Operation name (provider, http)

        Returns:
            Timeout value in seconds
        """
        return getattr(self.timeout_config, operation, self.timeout_config.http)

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for debugging. Keys are never included."""
        return {
            'environment': self.environment.value,
            'debug': self.debug,
            'providers': {
                'configured': [p.value for p in self.provider_config.configured()],
                'priority': [p.value for p in self.provider_config.priority],
                'page_size': self.provider_config.page_size,
            },
            'timeout_config': {
                'provider': self.timeout_config.provider,
                'http': self.timeout_config.http,
            },
            'search_config': {
                'default_radius': self.search_config.default_radius,
                'default_keyword': self.search_config.default_keyword,
                'dedup_tolerance_degrees': self.search_config.dedup_tolerance_degrees,
                'merge_policy': self.search_config.merge_policy.value,
            },
            'degraded_mode': {
                'enabled': self.degraded_mode.enabled,
                'lat': self.degraded_mode.lat,
                'lng': self.degraded_mode.lng,
            },
        }


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, loading .env on first use.

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        load_dotenv()
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the global configuration (useful for testing)."""
    global _config
    _config = None


def setup_logging(config: Optional[Config] = None):
    """Set up logging based on configuration."""
    from logging.handlers import RotatingFileHandler

    config = config or get_config()

    logging.basicConfig(
        level=getattr(logging, config.logging_config.level.upper(), logging.INFO),
        format=config.logging_config.format,
    )

    # Add file handler if configured
    if config.logging_config.file:
        file_handler = RotatingFileHandler(
            config.logging_config.file,
            maxBytes=config.logging_config.max_bytes,
            backupCount=config.logging_config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.logging_config.format))
        logging.getLogger().addHandler(file_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    if config.debug or config.is_development():
        logging.getLogger().setLevel(logging.DEBUG)
    elif config.is_production():
        logging.getLogger().setLevel(logging.INFO)
