"""
Exception hierarchy for the search engine.

Every error raised on purpose derives from FoodNearbyError so the dispatcher
can turn it into a short message instead of a 500:
- ProviderError: one provider call failed (recoverable by the engine)
- ResolutionError: no coordinates could be produced for a location
- AggregationError: every provider eligible for a search failed
- ConfigurationError: nothing usable is configured, or a setting is invalid
"""

from typing import Any, Dict, Optional


class FoodNearbyError(Exception):
    """Base exception for all engine errors."""


class ProviderError(FoodNearbyError):
    """Raised when a single provider call fails."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        code: Optional[Any] = None,
        details: Optional[Dict] = None,
    ):
        """Initialize provider error.

        Args:
            message: Error message
            provider_name: Name of the provider that failed
            code: Provider status code, when the provider reported one
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        prefix = f"[{self.provider_name}] " if self.provider_name else ""
        suffix = f" (code={self.code})" if self.code is not None else ""
        return f"{prefix}{self.message}{suffix}"


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its time budget."""
    pass


class ResolutionError(FoodNearbyError):
    """Raised when a location cannot be turned into coordinates."""

    def __init__(self, message: str, location: Optional[str] = None, errors: Optional[list] = None):
        super().__init__(message)
        self.location = location
        self.errors = errors or []


class AggregationError(FoodNearbyError):
    """Raised when every provider eligible for a strategy failed or none is eligible."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class ConfigurationError(FoodNearbyError):
    """Raised when no provider is configured or a setting is invalid."""
    pass
