"""FastAPI application entry point."""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from marketwatch.config import CACHE_TTL_LIVE_SECONDS, REFRESH_INTERVAL_SECONDS
from marketwatch.jobs.scheduler import FeedView, start_scheduler, stop_scheduler
from marketwatch.models import (
    Category,
    FeedConfigError,
    FeedResult,
    Period,
    SymbolRequest,
    load_feeds,
)
from marketwatch.providers.fred import FredProvider
from marketwatch.providers.twelve_data import TwelveDataProvider
from marketwatch.services.aggregator import build_item, period_label
from marketwatch.services.feed_fetcher import FeedFetcher
from marketwatch.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)


class PeriodChange(BaseModel):
    period: Period


def _json_safe(value: object) -> object:
    """Replace non-finite floats, which JSON cannot carry."""
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return value
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Mount every feed view on startup, tear them all down on shutdown."""
    app.state.twelve_data = TwelveDataProvider()
    app.state.fred = FredProvider()
    app.state.fetcher = FeedFetcher(
        [app.state.twelve_data, app.state.fred],
        cache=ResponseCache(ttl_seconds=CACHE_TTL_LIVE_SECONDS),
    )
    app.state.scheduler = start_scheduler()
    app.state.period = Period.RECENT
    app.state.last_error_at = None

    def _record_error(errored: list[FeedResult]) -> None:
        app.state.last_error_at = datetime.now(timezone.utc).isoformat()

    app.state.views = {
        name: FeedView(
            feed,
            app.state.fetcher,
            app.state.scheduler,
            period=app.state.period,
            interval_seconds=REFRESH_INTERVAL_SECONDS,
            on_error=_record_error,
        )
        for name, feed in load_feeds().items()
    }
    for view in app.state.views.values():
        view.mount()

    logger.info("MarketWatch started with %d feeds", len(app.state.views))
    yield

    for view in app.state.views.values():
        view.unmount()
    stop_scheduler()
    await app.state.fred.close()
    await app.state.twelve_data.close()
    logger.info("MarketWatch stopped")


app = FastAPI(title="MarketWatch Lite", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_view(name: str) -> FeedView:
    view = app.state.views.get(name)
    if view is None:
        raise HTTPException(status_code=404, detail=f"Unknown feed {name!r}")
    return view


@app.get("/api/health")
async def health() -> dict:
    """Return service health status."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/feeds")
async def feeds() -> dict:
    """List every mounted feed with its last update time."""
    return {
        "period": app.state.period.value,
        "period_label": period_label(app.state.period),
        "error_banner": any(v.error_banner for v in app.state.views.values()),
        "last_error_at": app.state.last_error_at,
        "feeds": [
            {
                "name": name,
                "title": view.feed.title,
                "symbols": [r.identifier for r in view.feed.requests],
                "updated_at": view.latest["updated_at"] if view.latest else None,
                "sentiment": view.latest["sentiment"] if view.latest else None,
            }
            for name, view in app.state.views.items()
        ],
    }


@app.get("/api/feeds/{name}")
async def feed_detail(name: str) -> dict:
    """Return the latest summary for one feed.

    Before the first cycle completes the summary is ``null`` and the
    client shows its loading state.
    """
    view = _get_view(name)
    return _json_safe({
        "name": name,
        "title": view.feed.title,
        "period": view.period.value,
        "error_banner": view.error_banner,
        "summary": view.latest,
    })


@app.post("/api/period")
async def set_period(body: PeriodChange) -> dict:
    """Switch every feed between 24h and YTD comparison (global toggle)."""
    app.state.period = body.period
    for view in app.state.views.values():
        view.set_period(body.period)
    logger.info("Dashboard period set to %s", body.period.value)
    return {"period": body.period.value, "period_label": period_label(body.period)}


@app.get("/api/quote/{category}/{identifier:path}")
async def quote(
    category: Category,
    identifier: str,
    period: Period = Query(Period.RECENT),
) -> dict:
    """Fetch one symbol on demand, with the same fallback rules as the feeds."""
    try:
        request = SymbolRequest(identifier.upper(), category)
        app.state.fetcher.validate([request])
    except FeedConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = await app.state.fetcher.fetch_symbol(request, period)
    item = build_item(result)
    return _json_safe({"period": period.value, "period_label": period_label(period), **item})


@app.post("/api/admin/refresh-now")
async def refresh_now() -> dict:
    """Refresh every feed immediately and return per-feed sentiment."""
    results: dict[str, object] = {}
    for name, view in app.state.views.items():
        summary = await view.refresh()
        results[name] = {
            "sentiment": summary["sentiment"],
            "has_errors": summary["has_errors"],
        }
    logger.info("refresh-now: %d feeds refreshed", len(results))
    return {"status": "ok", "results": results}
