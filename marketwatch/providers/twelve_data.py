"""Twelve Data API provider for crypto, equity indices and forex."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from marketwatch.config import TWELVE_DATA_API_KEY, TWELVE_DATA_SYMBOLS
from marketwatch.models import Category, Period, PricePoint
from marketwatch.providers.base import (
    DataProvider,
    ProviderError,
    UnsupportedSymbolError,
    is_usable_api_key,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.twelvedata.com"
_TIMEOUT = 15.0
_MAX_CONCURRENT = 8


class TwelveDataError(ProviderError):
    """Raised when the Twelve Data API returns an application-level error."""


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------


def _parse_timestamp(raw: dict) -> datetime:
    """Return the quote time, falling back to now when the payload has none."""
    ts = raw.get("timestamp")
    if ts is not None:
        try:
            return datetime.fromtimestamp(int(ts), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            pass
    return datetime.now(timezone.utc)


def _parse_quote(raw: dict) -> dict:
    """Normalize a /quote response into ``{name, close, previous_close, as_of}``.

    Raises ``KeyError``/``ValueError``/``TypeError`` on malformed payloads.
    """
    return {
        "name": raw.get("name") or raw["symbol"],
        "close": float(raw["close"]),
        "previous_close": float(raw["previous_close"]),
        "as_of": _parse_timestamp(raw),
    }


def _year_start_close(raw: dict) -> float:
    """Return the earliest daily close in a /time_series response.

    Twelve Data returns bars newest first, so the oldest is the last entry.
    """
    values = raw.get("values") or []
    if not values:
        raise TwelveDataError("No daily bars returned since start of year")
    return float(values[-1]["close"])


def _build_ytd_params(symbol: str, now: datetime | None = None) -> dict:
    """Query params for daily bars from Jan 1 of the current year."""
    now = now or datetime.now(timezone.utc)
    return {
        "symbol": symbol,
        "interval": "1day",
        "start_date": f"{now.year}-01-01",
        "outputsize": 5000,
    }


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class TwelveDataProvider(DataProvider):
    """Twelve Data implementation of the DataProvider interface."""

    categories = frozenset({Category.CRYPTO, Category.EQUITY_INDEX, Category.FOREX})

    def __init__(
        self,
        api_key: str | None = None,
        symbols: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = TWELVE_DATA_API_KEY if api_key is None else api_key
        self._symbols = TWELVE_DATA_SYMBOLS if symbols is None else symbols
        self._client = httpx.AsyncClient(
            base_url=_BASE_URL,
            timeout=_TIMEOUT,
            params={"apikey": self._api_key},
            transport=transport,
        )
        self._semaphore = asyncio.Semaphore(_MAX_CONCURRENT)

    @property
    def is_configured(self) -> bool:
        return is_usable_api_key(self._api_key)

    def supports(self, identifier: str) -> bool:
        return identifier.upper() in self._symbols

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, endpoint: str, params: dict) -> dict:
        """Rate-limited GET; raises TwelveDataError on API-level errors."""
        async with self._semaphore:
            resp = await self._client.get(endpoint, params=params)
            resp.raise_for_status()
            data = resp.json()

        if not isinstance(data, dict):
            raise TwelveDataError(f"Unexpected payload type from {endpoint}")
        if data.get("code") and data.get("status") == "error":
            raise TwelveDataError(f"{data.get('code')}: {data.get('message')}")

        return data

    def _provider_symbol(self, identifier: str) -> str:
        try:
            return self._symbols[identifier.upper()]
        except KeyError:
            raise UnsupportedSymbolError(
                f"Twelve Data has no mapping for {identifier!r}"
            ) from None

    # -- Public interface ----------------------------------------------------

    async def fetch_period_data(self, identifier: str, period: Period) -> PricePoint:
        """Fetch the latest quote and its comparison value for *period*.

        ``recent`` compares against the quote's previous close.
        ``year-to-date`` compares against the first daily close of the year;
        the quote and the daily bars are requested concurrently.
        """
        symbol = self._provider_symbol(identifier)

        try:
            if period == Period.YEAR_TO_DATE:
                quote_raw, series_raw = await asyncio.gather(
                    self._request("/quote", {"symbol": symbol}),
                    self._request("/time_series", _build_ytd_params(symbol)),
                )
                quote = _parse_quote(quote_raw)
                previous = _year_start_close(series_raw)
            else:
                quote = _parse_quote(await self._request("/quote", {"symbol": symbol}))
                previous = quote["previous_close"]
        except (KeyError, ValueError, TypeError) as exc:
            raise TwelveDataError(f"Malformed payload for {symbol}: {exc!r}") from exc

        logger.debug(
            "Twelve Data %s (%s): %s vs %s", symbol, period.value, quote["close"], previous,
        )
        return PricePoint(
            label=quote["name"],
            current_value=quote["close"],
            previous_value=previous,
            as_of=quote["as_of"],
        )
