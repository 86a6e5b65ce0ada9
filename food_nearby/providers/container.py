"""
Provider container for dependency injection and provider management.

This module provides a registry of configured providers, enabling:
- Priority ordering (the order fallback chains walk)
- Capability lookups for the resolver and the engine
- Construction of all providers from configuration
"""

import logging
from typing import Dict, List, Optional, Type

import aiohttp

from food_nearby.models import ProviderId
from food_nearby.providers.amap_provider import AmapProvider
from food_nearby.providers.baidu_provider import BaiduProvider
from food_nearby.providers.base import PoiProvider, ProviderMetadata

PROVIDER_CLASSES: Dict[ProviderId, Type[PoiProvider]] = {
    ProviderId.BAIDU: BaiduProvider,
    ProviderId.AMAP: AmapProvider,
}


class ProviderContainer:
    """Ordered registry of provider instances."""

    def __init__(self):
        """Initialize the provider container."""
        self.logger = logging.getLogger(__name__)
        self._providers: Dict[ProviderId, PoiProvider] = {}

    def register(self, provider: PoiProvider) -> None:
        """Register a provider. Registration order is priority order.

        Args:
            provider: Provider instance
        """
        if provider.provider_id in self._providers:
            self.logger.warning(f"Replacing registered provider: {provider.name}")
        self._providers[provider.provider_id] = provider
        self.logger.info(f"Registered provider: {provider.name} {sorted(provider.capabilities)}")

    def get(self, provider_id: ProviderId) -> Optional[PoiProvider]:
        return self._providers.get(provider_id)

    def configured(self) -> List[PoiProvider]:
        """All registered providers in priority order."""
        return list(self._providers.values())

    def with_capability(self, capability: str) -> List[PoiProvider]:
        """Registered providers supporting a capability, in priority order.

        Args:
            capability: One of the capability names in providers.base

        Returns:
            List of providers
        """
        return [p for p in self._providers.values() if p.supports(capability)]

    def list_providers(self) -> List[str]:
        return [p.value for p in self._providers]

    def describe(self) -> List[ProviderMetadata]:
        return [p.get_metadata() for p in self._providers.values()]

    def __len__(self) -> int:
        return len(self._providers)

    @classmethod
    def from_config(cls, config, session: Optional[aiohttp.ClientSession] = None) -> "ProviderContainer":
        """Build one provider per configured API key, in priority order.

        Args:
            config: Config instance
            session: Optional aiohttp session shared by all providers

        Returns:
            Populated container (possibly empty)
        """
        container = cls()
        for provider_id in config.provider_config.configured():
            provider_class = PROVIDER_CLASSES[provider_id]
            container.register(provider_class(
                api_key=config.provider_config.api_keys[provider_id],
                session=session,
                timeout=config.get_timeout("http"),
                page_size=config.provider_config.page_size,
            ))
        if not len(container):
            container.logger.warning("No map provider has an API key; searches will fail")
        return container
