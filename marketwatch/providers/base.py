"""Abstract base class for all data providers."""

from abc import ABC, abstractmethod

from marketwatch.config import PLACEHOLDER_API_KEYS
from marketwatch.models import Category, Period, PricePoint


class ProviderError(Exception):
    """Raised when a provider cannot produce a valid PricePoint."""


class UnsupportedSymbolError(ProviderError):
    """Raised when a provider has no mapping for the requested symbol."""


def is_usable_api_key(api_key: str | None) -> bool:
    """Return False for missing keys and the placeholders shipped in sample configs."""
    return bool(api_key) and api_key.strip() not in PLACEHOLDER_API_KEYS


class DataProvider(ABC):
    """Interface that every market-data provider must implement."""

    #: Categories this provider can serve.
    categories: frozenset[Category] = frozenset()

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present; unconfigured providers are never called."""

    @abstractmethod
    def supports(self, identifier: str) -> bool:
        """Whether *identifier* maps to a symbol this provider knows."""

    @abstractmethod
    async def fetch_period_data(self, identifier: str, period: Period) -> PricePoint:
        """Fetch the current value and the *period* comparison value.

        Raises ``ProviderError`` (or an ``httpx.HTTPError``) on any failure;
        never returns a partially populated point.
        """

    async def close(self) -> None:
        """Release network resources."""
