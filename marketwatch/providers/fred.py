"""FRED (Federal Reserve Economic Data) provider for Treasury yields."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from marketwatch.config import FRED_API_KEY, FRED_SERIES
from marketwatch.models import Category, Period, PricePoint
from marketwatch.providers.base import (
    DataProvider,
    ProviderError,
    UnsupportedSymbolError,
    is_usable_api_key,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.stlouisfed.org/fred"
_TIMEOUT = 15.0
_MAX_CONCURRENT = 4


class FredError(ProviderError):
    """Raised when the FRED API returns an application-level error."""


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------


def _valid_observations(observations: list[dict]) -> list[dict]:
    """Return ``{"value": float, "date": str}`` for every usable observation.

    FRED sometimes returns ``"."`` for dates with no data -- those are
    skipped.  Input order is preserved.
    """
    valid: list[dict] = []
    for obs in observations:
        if obs.get("value") in (None, "."):
            continue
        try:
            valid.append({"value": float(obs["value"]), "date": obs["date"]})
        except (ValueError, KeyError, TypeError):
            continue
    return valid


def _observation_date(date_str: str) -> datetime:
    return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def _recent_pair(observations: list[dict]) -> tuple[dict, float]:
    """Latest observation and the one before it.

    *observations* must be sorted descending by date.  With a single valid
    value the previous value equals the current one (no change).
    """
    valid = _valid_observations(observations)
    if not valid:
        raise FredError("No valid observations returned")
    latest = valid[0]
    previous = valid[1]["value"] if len(valid) > 1 else latest["value"]
    return latest, previous


def _year_start_value(observations: list[dict]) -> float:
    """Earliest valid value in an ascending observation list."""
    valid = _valid_observations(observations)
    if not valid:
        raise FredError("No valid observations since start of year")
    return valid[0]["value"]


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class FredProvider(DataProvider):
    """FRED implementation of the DataProvider interface."""

    categories = frozenset({Category.BOND})

    def __init__(
        self,
        api_key: str | None = None,
        series: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = FRED_API_KEY if api_key is None else api_key
        self._series = FRED_SERIES if series is None else series
        self._client = httpx.AsyncClient(
            base_url=_BASE_URL,
            timeout=_TIMEOUT,
            params={"api_key": self._api_key, "file_type": "json"},
            transport=transport,
        )
        self._semaphore = asyncio.Semaphore(_MAX_CONCURRENT)

    @property
    def is_configured(self) -> bool:
        return is_usable_api_key(self._api_key)

    def supports(self, identifier: str) -> bool:
        return identifier.upper() in self._series

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, endpoint: str, params: dict) -> dict:
        """Rate-limited GET; raises FredError on API-level errors."""
        async with self._semaphore:
            resp = await self._client.get(endpoint, params=params)
            resp.raise_for_status()
            data = resp.json()

        if not isinstance(data, dict):
            raise FredError(f"Unexpected payload type from {endpoint}")
        if "error_message" in data:
            raise FredError(data["error_message"])

        return data

    async def _fetch_observations(
        self,
        series_id: str,
        limit: int | None = None,
        observation_start: str | None = None,
        sort_order: str = "desc",
    ) -> list[dict]:
        """Fetch raw observations for a single series."""
        params: dict[str, str | int] = {"series_id": series_id, "sort_order": sort_order}
        if limit is not None:
            params["limit"] = limit
        if observation_start is not None:
            params["observation_start"] = observation_start

        raw = await self._request("/series/observations", params)
        observations = raw.get("observations")
        if not isinstance(observations, list):
            raise FredError(f"Missing observations for {series_id}")
        return observations

    def _series_id(self, identifier: str) -> str:
        try:
            return self._series[identifier.upper()]
        except KeyError:
            raise UnsupportedSymbolError(
                f"FRED has no series for {identifier!r}"
            ) from None

    # -- Public interface ----------------------------------------------------

    async def fetch_period_data(self, identifier: str, period: Period) -> PricePoint:
        """Fetch the latest yield (in percent) and its comparison value.

        ``recent`` compares against the previous valid observation.
        ``year-to-date`` compares against the first valid observation of the
        calendar year.
        """
        series_id = self._series_id(identifier)

        try:
            if period == Period.YEAR_TO_DATE:
                year = datetime.now(timezone.utc).year
                latest_obs, ytd_obs = await asyncio.gather(
                    self._fetch_observations(series_id, limit=10),
                    self._fetch_observations(
                        series_id,
                        observation_start=f"{year}-01-01",
                        sort_order="asc",
                        limit=10,
                    ),
                )
                latest, _ = _recent_pair(latest_obs)
                previous = _year_start_value(ytd_obs)
            else:
                observations = await self._fetch_observations(series_id, limit=10)
                latest, previous = _recent_pair(observations)
            as_of = _observation_date(latest["date"])
        except (KeyError, ValueError, TypeError) as exc:
            raise FredError(f"Malformed payload for {series_id}: {exc!r}") from exc

        logger.debug(
            "FRED %s (%s): %s vs %s", series_id, period.value, latest["value"], previous,
        )
        return PricePoint(
            label=series_id,
            current_value=latest["value"],
            previous_value=previous,
            as_of=as_of,
        )
