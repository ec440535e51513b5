"""APScheduler configuration and feed-view refresh lifecycle."""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from marketwatch.config import REFRESH_INTERVAL_SECONDS
from marketwatch.models import Feed, FeedResult, Period
from marketwatch.services.aggregator import FeedSummary, summarize_feed
from marketwatch.services.feed_fetcher import ErrorCallback, FeedFetcher

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


class FeedView:
    """A mounted consumer of one feed.

    While mounted, the feed is refreshed immediately and then every
    *interval_seconds*.  Each cycle replaces ``latest`` and ``results`` as a
    whole; nothing from the previous cycle is merged in.
    """

    def __init__(
        self,
        feed: Feed,
        fetcher: FeedFetcher,
        scheduler: AsyncIOScheduler,
        period: Period | str = Period.RECENT,
        interval_seconds: float = REFRESH_INTERVAL_SECONDS,
        on_error: ErrorCallback | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        fetcher.validate(feed.requests)

        self.feed = feed
        self.period = Period(period)
        self.interval_seconds = interval_seconds
        self.latest: FeedSummary | None = None
        self.results: list[FeedResult] = []
        self.error_banner = False
        self._fetcher = fetcher
        self._scheduler = scheduler
        self._on_error = on_error
        self._job_id = f"feed_refresh:{feed.name}"
        self._mounted = False

    @property
    def job_id(self) -> str:
        return self._job_id

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def refresh(self) -> FeedSummary:
        """Run one fetch + aggregate cycle and publish the result.

        If the period is switched while the fetch is in flight, the stale
        results are discarded and the feed is fetched again for the new
        period before anything is published.
        """
        period = self.period
        had_errors = False

        async def _flag_errors(errored: list[FeedResult]) -> None:
            nonlocal had_errors
            had_errors = True
            if self._on_error is not None:
                outcome = self._on_error(errored)
                if inspect.isawaitable(outcome):
                    await outcome

        results = await self._fetcher.fetch_feed(
            self.feed.requests, period, on_error=_flag_errors,
        )
        while self.period != period:
            logger.info(
                "Feed %s period changed to %s mid-refresh; fetching again",
                self.feed.name,
                self.period.value,
            )
            period = self.period
            had_errors = False
            results = await self._fetcher.fetch_feed(
                self.feed.requests, period, on_error=_flag_errors,
            )
        summary = summarize_feed(results, period)

        self.results = results
        self.latest = summary
        self.error_banner = had_errors
        logger.info(
            "Feed %s refreshed (%s): %d items, sentiment=%s%s",
            self.feed.name,
            period.value,
            len(results),
            summary["sentiment"],
            ", with errors" if had_errors else "",
        )
        return summary

    def mount(self) -> None:
        """Schedule the refresh job; the first run fires immediately."""
        if self._mounted:
            return
        self._scheduler.add_job(
            self.refresh,
            trigger="interval",
            seconds=self.interval_seconds,
            next_run_time=datetime.now(timezone.utc),
            id=self._job_id,
            name=f"Refresh feed {self.feed.name}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._mounted = True
        logger.info(
            "Mounted feed %s (every %ss)", self.feed.name, self.interval_seconds,
        )

    def unmount(self) -> None:
        """Remove the refresh job; safe to call more than once."""
        if not self._mounted:
            return
        self._mounted = False
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            logger.debug("Refresh job %s already gone", self._job_id)
        logger.info("Unmounted feed %s", self.feed.name)

    def set_period(self, period: Period | str) -> None:
        """Switch the comparison period and refresh right away."""
        period = Period(period)
        if period == self.period:
            return
        self.period = period
        if self._mounted:
            self.refresh_now()

    def refresh_now(self) -> None:
        """Pull the next scheduled run forward to now."""
        if self._mounted:
            self._scheduler.modify_job(self._job_id, next_run_time=datetime.now(timezone.utc))


def create_scheduler() -> AsyncIOScheduler:
    """Create an unstarted scheduler; feed views add their own jobs."""
    return AsyncIOScheduler(timezone="UTC")


def start_scheduler() -> AsyncIOScheduler:
    """Create, start, and return the scheduler."""
    global _scheduler
    _scheduler = create_scheduler()
    _scheduler.start()
    logger.info("Scheduler started")
    return _scheduler


def stop_scheduler() -> None:
    """Gracefully shut down the scheduler."""
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
