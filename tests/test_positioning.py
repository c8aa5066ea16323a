"""Tests for position feeds and starting-position providers."""

import asyncio

import pytest

from dreamwalker.positioning import (
    FeedStartingPosition,
    FixedStartingPosition,
    ManualPositionFeed,
    PositionUnavailableError,
    default_origin,
)
from dreamwalker.world import LatLng

FALLBACK = LatLng(lat=10.0, lng=20.0)


@pytest.mark.asyncio
async def test_fixed_start_defaults_to_origin():
    assert await FixedStartingPosition().acquire() == default_origin()
    assert await FixedStartingPosition(FALLBACK).acquire() == FALLBACK


@pytest.mark.asyncio
async def test_feed_start_uses_last_pushed_position():
    feed = ManualPositionFeed()
    feed.push(37.1, -122.2)

    position = await FeedStartingPosition(feed, fallback=FALLBACK, timeout=1).acquire()

    assert position == LatLng(lat=37.1, lng=-122.2)


@pytest.mark.asyncio
async def test_feed_start_waits_for_first_fix():
    feed = ManualPositionFeed()
    provider = FeedStartingPosition(feed, fallback=FALLBACK, timeout=1)

    task = asyncio.create_task(provider.acquire())
    await asyncio.sleep(0)
    feed.push(1.5, 2.5)

    assert await task == LatLng(lat=1.5, lng=2.5)


@pytest.mark.asyncio
async def test_feed_start_falls_back_on_timeout(capsys):
    provider = FeedStartingPosition(ManualPositionFeed(), fallback=FALLBACK, timeout=0.01)

    assert await provider.acquire() == FALLBACK
    assert "default origin" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_feed_start_falls_back_without_capability():
    for feed in (None, ManualPositionFeed(available=False)):
        provider = FeedStartingPosition(feed, fallback=FALLBACK, timeout=1)
        assert await provider.acquire() == FALLBACK


@pytest.mark.asyncio
async def test_feed_start_falls_back_on_error():
    feed = ManualPositionFeed()
    provider = FeedStartingPosition(feed, fallback=FALLBACK, timeout=1)

    task = asyncio.create_task(provider.acquire())
    await asyncio.sleep(0)
    feed.fail("permission denied")

    assert await task == FALLBACK


@pytest.mark.asyncio
async def test_current_position_raises_when_unsupported():
    with pytest.raises(PositionUnavailableError) as excinfo:
        await ManualPositionFeed(available=False).current_position()
    assert "not supported" in excinfo.value.reason


def test_watchers_receive_pushes_and_errors():
    feed = ManualPositionFeed()
    moves, errors = [], []
    watch_id = feed.watch(lambda lat, lng: moves.append((lat, lng)), errors.append)

    feed.push(1.0, 2.0)
    feed.fail("signal lost")
    feed.clear_watch(watch_id)
    feed.clear_watch(watch_id)
    feed.push(3.0, 4.0)

    assert moves == [(1.0, 2.0)]
    assert [error.reason for error in errors] == ["signal lost"]
    assert feed.watcher_count == 0


@pytest.mark.asyncio
async def test_timed_out_requests_do_not_accumulate():
    feed = ManualPositionFeed()
    provider = FeedStartingPosition(feed, fallback=FALLBACK, timeout=0.01)

    for _ in range(3):
        assert await provider.acquire() == FALLBACK

    assert feed.waiter_count == 0
