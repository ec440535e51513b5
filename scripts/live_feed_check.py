#!/usr/bin/env python3
"""Fetch every configured feed once against the live providers.

Prints each symbol's value, change and source (live or mock) plus the
feed sentiment, so API keys and symbol mappings can be checked by eye.
Exits non-zero when any symbol had to fall back after an error.
"""

import asyncio
import logging
import os
import sys

# Ensure project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("live_feed_check")


async def main(period: str) -> int:
    from marketwatch.models import load_feeds
    from marketwatch.providers.fred import FredProvider
    from marketwatch.providers.twelve_data import TwelveDataProvider
    from marketwatch.services.aggregator import summarize_feed
    from marketwatch.services.feed_fetcher import FeedFetcher

    print("=" * 70)
    print(f"  MARKETWATCH LITE: LIVE FEED CHECK ({period})")
    print("=" * 70)

    td = TwelveDataProvider()
    fred = FredProvider()
    for provider in (td, fred):
        state = "configured" if provider.is_configured else "NOT configured (mock only)"
        print(f"  {type(provider).__name__:20s} {state}")

    fetcher = FeedFetcher([td, fred])
    errored_total = 0
    try:
        for feed in load_feeds().values():
            results = await fetcher.fetch_feed(feed.requests, period)
            summary = summarize_feed(results, period)

            print(f"\n--- {feed.title} [{summary['sentiment']}] ---")
            for item in summary["items"]:
                print(
                    f"    {item['label']:24s} {item['display_value']:>14s}  "
                    f"{item['display_change'] or '--':>9s}  {item['status']}"
                )
                if item["error"]:
                    errored_total += 1
                    print(f"      ! {item['error']}")
    finally:
        await fred.close()
        await td.close()

    print()
    if errored_total:
        print(f"  {errored_total} symbol(s) fell back after errors.")
        return 1
    print("  All symbols fetched without errors.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "recent")))
