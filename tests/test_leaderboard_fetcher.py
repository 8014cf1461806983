"""
Tests for concurrent leaderboard fetching.

Covers the concurrency cap, both timeout policies and the handling of
official versus workshop fetch failures.
"""

import logging

import pytest

from wrlog.config import PipelineSettings
from wrlog.data_models.leaderboard import GameMode, LeaderboardEntry, LevelRequest
from wrlog.services.leaderboard_fetcher import LeaderboardFetcher
from wrlog.utils.exceptions import BackendError, CatalogError, FetchError

from tests.fakes import FakeBackend


def official(name, mode=GameMode.SPRINT):
    return LevelRequest(name=name, mode=mode, leaderboard_name=name)


def community(name, item, mode=GameMode.SPRINT):
    return LevelRequest(name=name, mode=mode, leaderboard_name=name, workshop_item=item)


async def as_stream(requests, error=None):
    for request in requests:
        yield request
    if error is not None:
        raise error


def entry(steam_id, rank, score, name=None):
    return LeaderboardEntry(steam_id=steam_id, global_rank=rank, score=score, player_name=name)


@pytest.mark.asyncio
async def test_snapshots_carry_request_and_entries(fixed_clock, workshop_item):
    backend = FakeBackend(leaderboards={
        "a": [entry(2, 2, 1100, "runner-up"), entry(1, 1, 1000, "holder")],
    })
    fetcher = LeaderboardFetcher(backend, clock=fixed_clock)

    snapshots = await fetcher.fetch_all(as_stream([community("a", workshop_item), official("b")]))
    by_name = {snapshot.leaderboard_name: snapshot for snapshot in snapshots}

    assert set(by_name) == {"a", "b"}
    assert [e.global_rank for e in by_name["a"].entries] == [1, 2]
    assert by_name["a"].workshop_item == workshop_item
    assert by_name["a"].timestamp == fixed_clock()
    assert by_name["b"].entries == ()


@pytest.mark.asyncio
async def test_concurrency_never_exceeds_cap():
    requests = [official(f"level-{i}") for i in range(20)]
    backend = FakeBackend(delays={request.leaderboard_name: 0.01 for request in requests})
    fetcher = LeaderboardFetcher(backend, PipelineSettings(max_in_flight=4, step_timeout=5))

    snapshots = await fetcher.fetch_all(as_stream(requests))

    assert len(snapshots) == 20
    assert backend.max_in_flight_seen == 4


@pytest.mark.asyncio
async def test_official_failure_is_fatal():
    backend = FakeBackend(failures={"b": BackendError("boom")})
    fetcher = LeaderboardFetcher(backend)

    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch_all(as_stream([official("a"), official("b")]))

    assert excinfo.value.leaderboard_name == "b"
    assert isinstance(excinfo.value.__cause__, BackendError)


@pytest.mark.asyncio
async def test_community_failure_is_dropped(workshop_item):
    backend = FakeBackend(failures={"ws": BackendError("not found")})
    fetcher = LeaderboardFetcher(backend)

    snapshots = await fetcher.fetch_all(as_stream([official("a"), community("ws", workshop_item)]))

    assert [snapshot.leaderboard_name for snapshot in snapshots] == ["a"]


@pytest.mark.asyncio
async def test_catalog_failure_propagates():
    fetcher = LeaderboardFetcher(FakeBackend())

    with pytest.raises(CatalogError):
        await fetcher.fetch_all(as_stream([official("a")], error=CatalogError("down")))


@pytest.mark.asyncio
async def test_fail_fast_truncates_remaining_work(caplog):
    backend = FakeBackend(delays={"slow": 1.0})
    settings = PipelineSettings(max_in_flight=1, step_timeout=0.1, timeout_policy="fail_fast")
    fetcher = LeaderboardFetcher(backend, settings)

    with caplog.at_level(logging.WARNING):
        snapshots = await fetcher.fetch_all(as_stream([official("fast"), official("slow"), official("after")]))

    assert [snapshot.leaderboard_name for snapshot in snapshots] == ["fast"]
    assert "after" not in backend.requested
    assert "took too long" in caplog.text


@pytest.mark.asyncio
async def test_per_item_policy_keeps_going(caplog):
    backend = FakeBackend(delays={"slow": 1.0})
    settings = PipelineSettings(max_in_flight=1, step_timeout=0.1, timeout_policy="per_item")
    fetcher = LeaderboardFetcher(backend, settings)

    with caplog.at_level(logging.WARNING):
        snapshots = await fetcher.fetch_all(as_stream([official("fast"), official("slow"), official("after")]))

    assert [snapshot.leaderboard_name for snapshot in snapshots] == ["fast", "after"]
    assert "took too long" in caplog.text


@pytest.mark.asyncio
async def test_dropped_community_results_do_not_reset_step_timer(workshop_item):
    backend = FakeBackend(
        delays={"ws-1": 0.15, "ws-2": 0.15, "late": 0.05},
        failures={"ws-1": BackendError("x"), "ws-2": BackendError("y")}
    )
    settings = PipelineSettings(max_in_flight=1, step_timeout=0.25)
    fetcher = LeaderboardFetcher(backend, settings)

    requests = [community("ws-1", workshop_item), community("ws-2", workshop_item), official("late")]
    snapshots = await fetcher.fetch_all(as_stream(requests))

    assert snapshots == []


@pytest.mark.asyncio
async def test_missing_names_are_resolved_best_effort():
    backend = FakeBackend(
        leaderboards={"a": [entry(1, 1, 1000), entry(2, 2, 1100)]},
        names={1: "holder", 2: BackendError("unavailable")}
    )
    fetcher = LeaderboardFetcher(backend)

    (snapshot,) = await fetcher.fetch_all(as_stream([official("a")]))

    assert [e.player_name for e in snapshot.entries] == ["holder", None]
