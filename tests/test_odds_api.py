"""Tests for the Odds API feed."""

import httpx
import pytest

from linewatch.config import OddsAPISettings
from linewatch.feeds.odds_api import OddsAPIFeed
from tests.helpers import raw_event


CATEGORIES = {"nba": "basketball_nba", "nhl": "icehockey_nhl"}


def _feed(handler) -> OddsAPIFeed:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OddsAPIFeed("secret", CATEGORIES, config=OddsAPISettings(), http_client=client)


@pytest.mark.asyncio
class TestOddsAPIFeed:

    async def test_returns_events_and_tracks_quota(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[raw_event("a")], headers={"x-requests-remaining": "480"})

        feed = _feed(handler)
        events = await feed.fetch_events("nba")

        assert [e["id"] for e in events] == ["a"]
        assert seen[0].url.path == "/v4/sports/basketball_nba/odds"
        params = seen[0].url.params
        assert params["apiKey"] == "secret"
        assert params["markets"] == "spreads,totals,h2h"
        assert params["bookmakers"] == "draftkings,fanduel,betmgm"
        assert feed.get_metrics()["requests_remaining"] == 480

    async def test_empty_slate_is_empty_list(self):
        feed = _feed(lambda request: httpx.Response(200, json=[]))

        assert await feed.fetch_events("nhl") == []
        assert feed.get_metrics()["error_count"] == 0

    async def test_non_200_is_none(self):
        feed = _feed(lambda request: httpx.Response(401, json={"message": "bad key"}))

        assert await feed.fetch_events("nba") is None
        assert feed.get_metrics()["error_count"] == 1

    async def test_timeout_is_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        feed = _feed(handler)

        assert await feed.fetch_events("nba") is None
        assert feed.get_metrics()["error_count"] == 1

    async def test_connection_error_is_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await _feed(handler).fetch_events("nhl") is None

    async def test_non_list_body_is_none(self):
        feed = _feed(lambda request: httpx.Response(200, json={"message": "quota"}))
        assert await feed.fetch_events("nba") is None

    async def test_unknown_category_makes_no_request(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        assert await _feed(handler).fetch_events("mlb") is None
        assert seen == []

    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        async with OddsAPIFeed("secret", CATEGORIES, http_client=client):
            pass

        assert not client.is_closed
        await client.aclose()
