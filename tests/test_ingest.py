"""Tests for the snapshot ingestion job."""

from datetime import timedelta, timezone

import pytest

from linewatch.feeds.demo import DemoFeed
from linewatch.ingest import SnapshotJob
from linewatch.pipeline import LinePipeline
from linewatch.storage.snapshot_store import SnapshotStore
from tests.helpers import NOW, FakeFeed, FixedRandom, StepClock, raw_event


TODAY = NOW.date().isoformat()


def _job(settings, feed, clock=lambda: NOW):
    store = SnapshotStore(settings.data_dir, clock=StepClock())
    pipeline = LinePipeline.from_settings(settings, store, rng=FixedRandom(0.5))
    return SnapshotJob(settings, store, feed=feed, pipeline=pipeline, clock=clock)


@pytest.mark.asyncio
class TestSnapshotJob:

    async def test_writes_one_snapshot_per_category(self, settings):
        feed = FakeFeed({"nba": [raw_event("a"), raw_event("b")], "nhl": [raw_event("c")]})
        job = _job(settings, feed)

        results = await job.run("10pm")

        assert results == {"nba": 2, "nhl": 1}
        assert (await job.store.read_exact(TODAY, "nba", "10pm")).found
        assert (await job.store.read_exact(TODAY, "nhl", "10pm")).found

    async def test_later_run_uses_opening_and_previous(self, settings):
        job = _job(settings, None)

        job.feed = FakeFeed({"nba": [raw_event("a", spread=-1.0, total=220.0)]})
        await job.run("10pm")
        job.feed = FakeFeed({"nba": [raw_event("a", spread=-3.0, total=220.5)]})
        await job.run("12pm")
        job.feed = FakeFeed({"nba": [raw_event("a", spread=-3.5, total=221.0)]})
        await job.run("latest")

        latest = (await job.store.read_exact(TODAY, "nba", "latest")).lines[0]
        midday = (await job.store.read_exact(TODAY, "nba", "12pm")).lines[0]

        assert midday.spread_home_open == -1.0
        assert midday.steam_move is True        # 2.0 vs 10pm
        assert latest.spread_home_open == -1.0
        assert latest.steam_move is False       # 0.5 vs 12pm

    async def test_opening_run_has_no_opening_values(self, settings):
        job = _job(settings, FakeFeed({"nba": [raw_event("a")]}))

        await job.run("10pm")

        line = (await job.store.read_exact(TODAY, "nba", "10pm")).lines[0]
        assert line.spread_home_open is None
        assert line.steam_move is False

    async def test_failed_category_does_not_stop_others(self, settings):
        feed = FakeFeed({"nba": [raw_event("a")]}, failing={"nhl"})
        job = _job(settings, feed)

        results = await job.run("12pm")

        assert results == {"nba": 1, "nhl": 0}
        assert not (await job.store.read_exact(TODAY, "nhl", "12pm")).found

    async def test_empty_fetch_keeps_existing_snapshot(self, settings):
        job = _job(settings, FakeFeed({"nba": [raw_event("a")]}))
        await job.run("12pm")

        job.feed = FakeFeed({})
        results = await job.run("12pm")

        assert results["nba"] == 0
        assert [g.id for g in (await job.store.read_exact(TODAY, "nba", "12pm")).lines] == ["a"]

    async def test_outage_keeps_existing_snapshot(self, settings):
        job = _job(settings, FakeFeed({"nba": [raw_event("a")]}))
        await job.run("12pm")

        job.feed = FakeFeed(unavailable={"nba"})
        results = await job.run("12pm")

        assert results["nba"] == 0
        assert [g.id for g in (await job.store.read_exact(TODAY, "nba", "12pm")).lines] == ["a"]

    async def test_partition_uses_utc_date(self, settings):
        # 02:00 on 2 March in UTC+8 is still 1 March in UTC
        local_now = NOW.astimezone(timezone(timedelta(hours=8)))
        job = _job(settings, FakeFeed({"nba": [raw_event("a")]}), clock=lambda: local_now)

        await job.run("12pm")

        assert (await job.store.read_exact(TODAY, "nba", "12pm")).found
        assert not (await job.store.read_exact("2024-03-02", "nba", "12pm")).found

    async def test_no_credential_is_noop(self, settings):
        settings.odds_api_key = ""
        job = _job(settings, None)

        assert await job.run("10pm") == {}
        assert not settings.data_dir.exists()

    async def test_demo_feed_end_to_end(self, settings):
        job = _job(settings, DemoFeed("10pm", now=NOW))
        await job.run("10pm")
        job.feed = DemoFeed("12pm", now=NOW)
        await job.run("12pm")

        games = {g.id: g for g in (await job.store.read_exact(TODAY, "nba", "12pm")).lines}

        lakers = games["nba1"]
        assert lakers.spread_home_open == -2.5
        assert lakers.spread_home == -3.5
        assert lakers.steam_move is True        # total 223 -> 224.5
        assert lakers.rlm_side is False         # public on home, line moved toward home

        warriors = games["nba2"]
        assert warriors.public_away_pct > 55
        assert warriors.sharp_side == "home"    # public on away, spread 2.5 -> 1.5
