"""Data providers package."""

from marketwatch.providers.base import DataProvider, ProviderError, UnsupportedSymbolError
from marketwatch.providers.fred import FredProvider
from marketwatch.providers.twelve_data import TwelveDataProvider

__all__ = [
    "DataProvider",
    "FredProvider",
    "ProviderError",
    "TwelveDataProvider",
    "UnsupportedSymbolError",
]
