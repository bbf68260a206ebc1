"""
Market data feeds.

- The Odds API: spreads, totals and moneylines from US books
- Demo: fixed offline slate for running without an API key
"""

from typing import Any, Optional, Protocol

from linewatch.feeds.demo import DemoFeed
from linewatch.feeds.odds_api import OddsAPIFeed


class MarketFeed(Protocol):
    """
    Anything that can fetch a raw event payload for a category.

    Returns None when the upstream call failed.
    """

    async def fetch_events(self, category: str) -> Optional[list[dict[str, Any]]]:
        ...


__all__ = [
    "DemoFeed",
    "MarketFeed",
    "OddsAPIFeed",
]
