"""Turn a refresh cycle's FeedResults into display-ready feed summaries.

Change figures are always recomputed from (current, previous) so the
absolute and percent change can never disagree.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import TypedDict

from marketwatch.config import SENTIMENT_THRESHOLD_PCT
from marketwatch.models import Category, FeedResult, Period

logger = logging.getLogger(__name__)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class ItemView(TypedDict):
    """One row/card of a feed."""

    identifier: str
    label: str
    category: str
    status: str                  # "live", "mock", or "error"
    value: float | None
    previous_value: float | None
    display_value: str           # "N/A" when there is no point
    change_abs: float | None
    change_pct: float | None     # may be +/-inf, see percent_change()
    display_change: str | None
    as_of: str | None            # ISO-8601
    error: str | None


class FeedSummary(TypedDict):
    """Full presenter output for one feed and period."""

    period: str
    period_label: str            # "24h" or "YTD"
    items: list[ItemView]
    average_change_pct: float | None
    sentiment: str
    has_errors: bool
    updated_at: str              # ISO-8601


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def absolute_change(current: float, previous: float) -> float:
    return current - previous


def percent_change(current: float, previous: float) -> float:
    """Percent change from *previous* to *current*.

    A zero baseline yields +/-inf by the sign of *current*, or 0.0 when both
    values are zero.
    """
    if previous == 0:
        if current == 0:
            return 0.0
        return math.copysign(math.inf, current)
    return (current - previous) / previous * 100.0


def classify_sentiment(
    average_pct: float | None,
    threshold: float = SENTIMENT_THRESHOLD_PCT,
) -> Sentiment:
    """Bucket an average percent change; None and NaN are neutral."""
    if average_pct is None or math.isnan(average_pct):
        return Sentiment.NEUTRAL
    if average_pct > threshold:
        return Sentiment.POSITIVE
    if average_pct < -threshold:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def average_change_pct(results: Sequence[FeedResult]) -> float | None:
    """Mean percent change over entries that have a point; None when there are none."""
    changes = [
        percent_change(r.point.current_value, r.point.previous_value)
        for r in results
        if not r.failed and r.point is not None
    ]
    if not changes:
        return None
    return sum(changes) / len(changes)


def period_label(period: Period) -> str:
    return "YTD" if Period(period) == Period.YEAR_TO_DATE else "24h"


def format_value(value: float, category: Category) -> str:
    category = Category(category)
    if category == Category.CRYPTO:
        return f"${value:,.2f}"
    if category == Category.FOREX:
        return f"{value:.4f}"
    if category == Category.BOND:
        return f"{value:.2f}%"
    return f"{value:,.2f}"


def format_change(change_pct: float) -> str:
    if math.isinf(change_pct):
        return "+∞%" if change_pct > 0 else "-∞%"
    return f"{change_pct:+.2f}%"


# ---------------------------------------------------------------------------
# Presenter
# ---------------------------------------------------------------------------


def build_item(result: FeedResult) -> ItemView:
    req = result.request
    point = result.point
    if point is None:
        return {
            "identifier": req.identifier,
            "label": req.label,
            "category": req.category.value,
            "status": "error",
            "value": None,
            "previous_value": None,
            "display_value": "N/A",
            "change_abs": None,
            "change_pct": None,
            "display_change": None,
            "as_of": None,
            "error": result.error,
        }

    change_pct = percent_change(point.current_value, point.previous_value)
    return {
        "identifier": req.identifier,
        "label": req.label,
        "category": req.category.value,
        "status": result.source.value if result.source is not None else "live",
        "value": point.current_value,
        "previous_value": point.previous_value,
        "display_value": format_value(point.current_value, req.category),
        "change_abs": absolute_change(point.current_value, point.previous_value),
        "change_pct": change_pct,
        "display_change": format_change(change_pct),
        "as_of": point.as_of.isoformat(),
        "error": result.error,
    }


def summarize_feed(
    results: Sequence[FeedResult],
    period: Period | str,
    now: datetime | None = None,
) -> FeedSummary:
    """Build the display summary for one refresh cycle.

    Never raises for empty or all-failed input; those produce a neutral
    sentiment and items marked ``error``.
    """
    period = Period(period)
    average = average_change_pct(results)
    sentiment = classify_sentiment(average)
    logger.debug(
        "Summarized %d items (%s): average=%s sentiment=%s",
        len(results),
        period.value,
        average,
        sentiment.value,
    )
    return {
        "period": period.value,
        "period_label": period_label(period),
        "items": [build_item(r) for r in results],
        "average_change_pct": average,
        "sentiment": sentiment.value,
        "has_errors": any(r.errored or r.failed for r in results),
        "updated_at": (now or datetime.now(timezone.utc)).isoformat(),
    }
