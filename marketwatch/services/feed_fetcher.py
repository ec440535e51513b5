"""Concurrent per-symbol fetching with mock fallback.

Every symbol of a feed is fetched independently; a failure for one symbol
is logged and replaced by mock data for that symbol only, so a refresh
cycle always yields one FeedResult per requested symbol, in order.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
import random
from collections.abc import Awaitable, Callable, Iterable, Sequence

import httpx

from marketwatch.config import (
    CACHE_TTL_LIVE_SECONDS,
    CACHE_TTL_MOCK_SECONDS,
    MOCK_FALLBACK_ENABLED,
)
from marketwatch.models import (
    Category,
    DataSource,
    FeedConfigError,
    FeedResult,
    Period,
    PricePoint,
    SymbolRequest,
)
from marketwatch.providers.base import DataProvider, ProviderError
from marketwatch.services.mock_data import generate_mock_point
from marketwatch.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)

# Receives the entries whose live fetch errored; may be sync or async.
ErrorCallback = Callable[[list[FeedResult]], Awaitable[None] | None]


class FeedFetcher:
    """Fetches feeds through the providers, falling back to mock data."""

    def __init__(
        self,
        providers: Iterable[DataProvider],
        cache: ResponseCache | None = None,
        *,
        mock_fallback: bool = MOCK_FALLBACK_ENABLED,
        live_ttl: float = CACHE_TTL_LIVE_SECONDS,
        mock_ttl: float = CACHE_TTL_MOCK_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        self._providers: dict[Category, DataProvider] = {}
        for provider in providers:
            for category in provider.categories:
                self._providers.setdefault(category, provider)
        self._cache = cache
        self._mock_fallback = mock_fallback
        self._live_ttl = live_ttl
        self._mock_ttl = mock_ttl
        self._rng = rng

    # -- Configuration checks ---------------------------------------------

    def provider_for(self, category: Category) -> DataProvider:
        try:
            return self._providers[Category(category)]
        except KeyError:
            raise FeedConfigError(f"No provider serves category {category!r}") from None

    def validate(self, requests: Iterable[SymbolRequest]) -> None:
        """Raise FeedConfigError for a request no provider can serve.

        Covers both a category without a provider and an identifier the
        category's provider has no symbol mapping for.
        """
        for req in requests:
            provider = self.provider_for(req.category)
            if not provider.supports(req.identifier):
                raise FeedConfigError(
                    f"{type(provider).__name__} has no symbol for {req.identifier!r}"
                    f" ({req.category.value})"
                )

    # -- Per-symbol fetch ----------------------------------------------------

    def _mock(self, request: SymbolRequest, period: Period) -> PricePoint:
        return generate_mock_point(
            request.identifier, request.category, period, label=request.label, rng=self._rng,
        )

    def _remember(self, key: tuple[str, str, str], point: PricePoint, source: DataSource) -> None:
        if self._cache is None:
            return
        ttl = self._live_ttl if source == DataSource.LIVE else self._mock_ttl
        self._cache.put(key, (point, source), ttl=ttl)

    async def fetch_symbol(self, request: SymbolRequest, period: Period | str) -> FeedResult:
        """Resolve one symbol: cache, then live provider, then mock.

        Never raises for per-symbol problems; they end up in ``error``.
        """
        period = Period(period)
        key = (request.category.value, request.identifier.upper(), period.value)
        if self._cache is not None:
            hit = self._cache.get(key)
            if hit is not None:
                point, source = hit
                # Feeds share entries; the label is always the caller's.
                point = dataclasses.replace(point, label=request.label)
                return FeedResult(request=request, point=point, source=source)

        provider = self._providers.get(request.category)
        if provider is None or not provider.is_configured:
            logger.warning(
                "No configured provider for %s (%s); returning mock data",
                request.identifier,
                request.category.value,
            )
            point = self._mock(request, period)
            self._remember(key, point, DataSource.MOCK)
            return FeedResult(request=request, point=point, source=DataSource.MOCK)

        try:
            point = await provider.fetch_period_data(request.identifier, period)
        except (httpx.HTTPError, ProviderError) as exc:
            logger.error(
                "fetch_period_data(%s, %s) failed: %s", request.identifier, period.value, exc,
            )
            return self._fallback(request, period, f"{type(exc).__name__}: {exc}")
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Unexpected error fetching %s (%s)", request.identifier, period.value,
            )
            return self._fallback(request, period, f"{type(exc).__name__}: {exc}")

        point = dataclasses.replace(point, label=request.label)
        self._remember(key, point, DataSource.LIVE)
        return FeedResult(request=request, point=point, source=DataSource.LIVE)

    def _fallback(self, request: SymbolRequest, period: Period, error: str) -> FeedResult:
        # Error fallbacks are not cached so the next cycle retries the live source.
        if not self._mock_fallback:
            return FeedResult(request=request, point=None, failed=True, error=error)
        return FeedResult(
            request=request,
            point=self._mock(request, period),
            source=DataSource.MOCK,
            error=error,
        )

    async def fetch_period_data(self, request: SymbolRequest, period: Period | str) -> PricePoint:
        """Return a PricePoint for one symbol; never raises for per-symbol issues.

        Falls back to mock data even in strict mode, since callers of this
        function always expect a point.
        """
        period = Period(period)
        result = await self.fetch_symbol(request, period)
        if result.point is None:
            return self._mock(request, period)
        return result.point

    # -- Whole feed ---------------------------------------------------------

    async def fetch_feed(
        self,
        requests: Sequence[SymbolRequest],
        period: Period | str,
        on_error: ErrorCallback | None = None,
    ) -> list[FeedResult]:
        """Fetch every request concurrently; one FeedResult per request, in order.

        *on_error* is invoked at most once, after the join, with the entries
        whose live fetch errored.
        """
        period = Period(period)
        results = list(await asyncio.gather(
            *(self.fetch_symbol(req, period) for req in requests),
        ))

        errored = [r for r in results if r.errored]
        if errored:
            logger.warning(
                "%d/%d symbols fell back after errors (%s)",
                len(errored),
                len(results),
                ", ".join(r.request.identifier for r in errored),
            )
            if on_error is not None:
                await _notify(on_error, errored)
        return results


async def _notify(callback: ErrorCallback, errored: list[FeedResult]) -> None:
    """Invoke the error callback; its failures are logged, never propagated."""
    try:
        outcome = callback(errored)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.exception("Error callback failed")
