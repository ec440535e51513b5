"""Configuration: env vars, refresh cadence, cache lifetimes, feed definitions."""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# API keys
# ---------------------------------------------------------------------------
TWELVE_DATA_API_KEY: str = os.getenv("TWELVE_DATA_API_KEY", "")
FRED_API_KEY: str = os.getenv("FRED_API_KEY", "")

# Values shipped in sample .env files; treated the same as a missing key.
PLACEHOLDER_API_KEYS: frozenset[str] = frozenset({
    "",
    "demo",
    "YOUR_TWELVE_DATA_API_KEY_HERE",
    "YOUR_FRED_API_KEY_HERE",
})

# ---------------------------------------------------------------------------
# Refresh & cache
# ---------------------------------------------------------------------------
REFRESH_INTERVAL_SECONDS: float = float(os.getenv("REFRESH_INTERVAL_SECONDS", "30"))
CACHE_TTL_LIVE_SECONDS: float = float(os.getenv("CACHE_TTL_LIVE_SECONDS", "60"))
CACHE_TTL_MOCK_SECONDS: float = float(os.getenv("CACHE_TTL_MOCK_SECONDS", "300"))

# When False, a failed live fetch leaves the entry empty ("error") instead of
# substituting mock data.
MOCK_FALLBACK_ENABLED: bool = _env_bool("MOCK_FALLBACK_ENABLED", True)

# ---------------------------------------------------------------------------
# Sentiment
# ---------------------------------------------------------------------------
SENTIMENT_THRESHOLD_PCT: float = 0.1   # |avg % change| above this is directional

# ---------------------------------------------------------------------------
# Provider symbol maps (dashboard identifier -> provider symbol)
# ---------------------------------------------------------------------------
TWELVE_DATA_SYMBOLS: dict[str, str] = {
    # Crypto
    "BTC": "BTC/USD",
    "ETH": "ETH/USD",
    "SOL": "SOL/USD",
    # Equity indices
    "SPX": "SPX",
    "IXIC": "IXIC",
    "FTSE": "FTSE",
    "DAX": "DAX",
    "N225": "N225",
    "HSI": "HSI",
    "NSEI": "NSEI",
    "STI": "STI",
    "SSEC": "SSEC",
    # Forex
    "EURUSD": "EUR/USD",
    "USDJPY": "USD/JPY",
    "GBPUSD": "GBP/USD",
    "AUDUSD": "AUD/USD",
    "USDCAD": "USD/CAD",
}

FRED_SERIES: dict[str, str] = {
    "US2Y": "DGS2",
    "US10Y": "DGS10",
    "US30Y": "DGS30",
}

# ---------------------------------------------------------------------------
# Feeds shown on the dashboard
# ---------------------------------------------------------------------------
# Each symbol entry is (identifier, category, display label).
FEEDS: dict[str, dict[str, object]] = {
    "overview": {
        "title": "Market Overview",
        "symbols": [
            ("BTC", "crypto", "Bitcoin (BTC)"),
            ("ETH", "crypto", "Ethereum (ETH)"),
            ("SPX", "equity-index", "S&P 500"),
            ("IXIC", "equity-index", "NASDAQ"),
            ("SSEC", "equity-index", "Shanghai Comp."),
            ("NSEI", "equity-index", "Nifty 50 (India)"),
            ("N225", "equity-index", "Nikkei 225 (Japan)"),
            ("HSI", "equity-index", "Hang Seng (HK)"),
            ("STI", "equity-index", "STI (Singapore)"),
            ("US10Y", "bond", "US 10Y Bond"),
        ],
    },
    "crypto": {
        "title": "Crypto Markets",
        "symbols": [
            ("BTC", "crypto", "Bitcoin"),
            ("ETH", "crypto", "Ethereum"),
            ("SOL", "crypto", "Solana"),
        ],
    },
    "us_indices": {
        "title": "US Major Indices",
        "symbols": [
            ("SPX", "equity-index", "S&P 500"),
            ("IXIC", "equity-index", "NASDAQ Composite"),
        ],
    },
    "eu_indices": {
        "title": "European Indices",
        "symbols": [
            ("DAX", "equity-index", "DAX"),
            ("FTSE", "equity-index", "FTSE 100"),
        ],
    },
    "asia_indices": {
        "title": "Asian Indices",
        "symbols": [
            ("N225", "equity-index", "Nikkei 225"),
            ("HSI", "equity-index", "Hang Seng"),
        ],
    },
    "india_indices": {
        "title": "Indian Indices",
        "symbols": [
            ("NSEI", "equity-index", "Nifty 50"),
        ],
    },
    "forex": {
        "title": "Forex",
        "symbols": [
            ("EURUSD", "forex", "EUR/USD"),
            ("USDJPY", "forex", "USD/JPY"),
            ("GBPUSD", "forex", "GBP/USD"),
            ("AUDUSD", "forex", "AUD/USD"),
            ("USDCAD", "forex", "USD/CAD"),
        ],
    },
    "bonds": {
        "title": "Treasury Yields",
        "symbols": [
            ("US2Y", "bond", "US 2Y Treasury"),
            ("US10Y", "bond", "US 10Y Treasury"),
            ("US30Y", "bond", "US 30Y Treasury"),
        ],
    },
}
