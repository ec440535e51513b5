"""Synthetic fallback prices for when a live provider errors or is unconfigured.

The shape is fixed (a complete PricePoint every time); only the values move.
Each call starts from a per-symbol base value and perturbs it slightly, so
refreshes look alive without drifting away from realistic levels.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone

from marketwatch.models import Category, Period, PricePoint

# Base levels, roughly where each market traded when the table was written.
MOCK_BASE_VALUES: dict[str, float] = {
    # Crypto (USD)
    "BTC": 65000.0,
    "ETH": 3500.0,
    "SOL": 150.0,
    # Equity indices
    "SPX": 5400.50,
    "IXIC": 17500.20,
    "FTSE": 8200.00,
    "DAX": 18300.75,
    "N225": 38500.00,
    "HSI": 18000.50,
    "NSEI": 23500.00,
    "STI": 3300.00,
    "SSEC": 3000.00,
    # Forex
    "EURUSD": 1.0850,
    "USDJPY": 157.20,
    "GBPUSD": 1.2730,
    "AUDUSD": 0.6650,
    "USDCAD": 1.3720,
    # Treasury yields (percent)
    "US2Y": 4.70,
    "US10Y": 4.25,
    "US30Y": 4.40,
}

# Used when a symbol has no entry above.
CATEGORY_DEFAULT_BASE: dict[Category, float] = {
    Category.CRYPTO: 1000.0,
    Category.EQUITY_INDEX: 5000.0,
    Category.FOREX: 1.0,
    Category.BOND: 4.0,
}

_DECIMALS: dict[Category, int] = {
    Category.CRYPTO: 2,
    Category.EQUITY_INDEX: 2,
    Category.FOREX: 4,
    Category.BOND: 3,
}

# Relative perturbation bands (fraction of value, applied as +/-).
CURRENT_JITTER = 0.005
PREVIOUS_BAND: dict[Period, float] = {
    Period.RECENT: 0.02,
    Period.YEAR_TO_DATE: 0.05,
}


def base_value(identifier: str, category: Category) -> float:
    """Deterministic base level for *identifier*."""
    return MOCK_BASE_VALUES.get(identifier.upper(), CATEGORY_DEFAULT_BASE[category])


def generate_mock_point(
    identifier: str,
    category: Category,
    period: Period,
    label: str | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> PricePoint:
    """Return a structurally complete mock PricePoint.

    The current value is the base +/-0.5%; the previous value is the current
    value +/-2% for ``recent`` and +/-5% for ``year-to-date``.
    """
    rng = rng or random
    category = Category(category)
    period = Period(period)
    decimals = _DECIMALS[category]

    base = base_value(identifier, category)
    current = base * (1 + rng.uniform(-CURRENT_JITTER, CURRENT_JITTER))
    band = PREVIOUS_BAND[period]
    previous = current * (1 + rng.uniform(-band, band))

    return PricePoint(
        label=label or identifier,
        current_value=round(current, decimals),
        previous_value=round(previous, decimals),
        as_of=now or datetime.now(timezone.utc),
    )
