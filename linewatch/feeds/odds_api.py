"""
The Odds API Feed.

Fetches current market payloads (spreads, totals, moneylines) for one
category at a time.

API Docs: https://the-odds-api.com/liveapi/guides/v4/

Failure policy: a non-200 status, timeout or unreadable body resolves to
None (no payload), which callers treat as an empty category. Requests are never retried here; the snapshot job simply
runs again on its own schedule.
"""

import ssl
import time
from typing import Any, Optional

import certifi
import httpx
import structlog

from linewatch.config import OddsAPISettings

logger = structlog.get_logger()


class OddsAPIFeed:
    """
    Market data feed from The Odds API.

    Usage:
        async with OddsAPIFeed(api_key, categories) as feed:
            events = await feed.fetch_events("nba")
    """

    def __init__(
        self,
        api_key: str,
        categories: dict[str, str],
        config: Optional[OddsAPISettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.categories = categories
        self.config = config or OddsAPISettings()

        self.logger = logger.bind(feed="odds_api")

        # An injected client is owned by the caller
        self._http_client = http_client
        self._owns_client = http_client is None

        # Health
        self._requests_remaining: Optional[int] = None
        self._error_count: int = 0
        self._last_success_ms: int = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Open the HTTP client."""
        if self._http_client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            self._http_client = httpx.AsyncClient(
                verify=ssl_context,
                timeout=self.config.timeout_seconds,
                headers={"Accept": "application/json"},
            )
            self._owns_client = True

    async def stop(self) -> None:
        """Close the HTTP client if we opened it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "OddsAPIFeed":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # =========================================================================
    # API Calls
    # =========================================================================

    def _odds_params(self) -> dict[str, str]:
        return {
            "apiKey": self.api_key,
            "regions": ",".join(self.config.regions),
            "markets": ",".join(self.config.markets),
            "oddsFormat": "american",
            "bookmakers": ",".join(self.config.bookmakers),
        }

    async def fetch_events(self, category: str) -> Optional[list[dict[str, Any]]]:
        """
        Fetch the raw event payload for a category.

        Returns:
            List of provider event dicts (id, home_team, away_team,
            commence_time, bookmakers). An empty list is a quiet slate;
            None means the request failed.
        """
        sport_key = self.categories.get(category)
        if not sport_key:
            self.logger.warning("Unknown category", category=category)
            return None

        if self._http_client is None:
            await self.start()

        url = f"{self.config.base_url}/sports/{sport_key}/odds"

        try:
            response = await self._http_client.get(
                url,
                params=self._odds_params(),
                timeout=self.config.timeout_seconds,
            )
        except httpx.TimeoutException:
            self._error_count += 1
            self.logger.warning(
                "Odds request timed out",
                category=category,
                timeout=self.config.timeout_seconds,
            )
            return None
        except httpx.HTTPError as e:
            self._error_count += 1
            self.logger.warning("Odds request failed", category=category, error=str(e))
            return None

        if "x-requests-remaining" in response.headers:
            try:
                self._requests_remaining = int(float(response.headers["x-requests-remaining"]))
            except ValueError:
                pass

        if response.status_code != 200:
            self._error_count += 1
            self.logger.warning(
                "Odds API error",
                category=category,
                status=response.status_code,
                body=response.text[:200],
            )
            return None

        try:
            data = response.json()
        except ValueError as e:
            self._error_count += 1
            self.logger.warning("Unreadable odds payload", category=category, error=str(e))
            return None

        if not isinstance(data, list):
            self._error_count += 1
            self.logger.warning("Unexpected odds payload", category=category, type=type(data).__name__)
            return None

        self._last_success_ms = int(time.time() * 1000)
        self.logger.info(
            "Fetched events",
            category=category,
            count=len(data),
            requests_remaining=self._requests_remaining,
        )
        return data

    # =========================================================================
    # Metrics
    # =========================================================================

    def get_metrics(self) -> dict:
        """Get feed health metrics."""
        return {
            "name": "odds_api",
            "requests_remaining": self._requests_remaining,
            "error_count": self._error_count,
            "last_success_ms": self._last_success_ms,
        }
