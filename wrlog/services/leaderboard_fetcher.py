"""
Leaderboard fetcher for the WR log.

Downloads the top entries of every requested leaderboard while keeping a global
cap on outstanding requests. Results are handed back as they complete, guarded
by a forward-progress timeout on the whole result sequence.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Callable, List, Optional

from wrlog.config import PipelineSettings
from wrlog.constants import FetchConstants
from wrlog.data_models.leaderboard import LeaderboardEntry, LevelRequest, LevelSnapshot
from wrlog.services.backend import LeaderboardBackend
from wrlog.utils.exceptions import BackendError, FetchError

logger = logging.getLogger(__name__)


class TimeoutPolicy(Enum):
    """How the step timeout is applied"""
    FAIL_FAST = FetchConstants.POLICY_FAIL_FAST  # First late snapshot ends the run's fetching
    PER_ITEM = FetchConstants.POLICY_PER_ITEM    # Each fetch is bounded on its own


@dataclass
class FetchOutcome:
    """Result of one fetch task, or a producer failure when request is None"""
    request: Optional[LevelRequest]
    snapshot: Optional[LevelSnapshot] = None
    error: Optional[Exception] = None
    timed_out: bool = False


_DONE = object()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LeaderboardFetcher:
    """Fetches leaderboard snapshots with bounded concurrency."""

    def __init__(
        self,
        backend: LeaderboardBackend,
        settings: Optional[PipelineSettings] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        settings = settings or PipelineSettings()
        self.backend = backend
        self.max_in_flight = settings.max_in_flight
        self.step_timeout = settings.step_timeout
        self.timeout_policy = TimeoutPolicy(settings.timeout_policy)
        self.clock = clock

    async def fetch_all(self, requests: AsyncIterable[LevelRequest]) -> List[LevelSnapshot]:
        """Collect every snapshot the stream produces."""
        snapshots = []
        async for snapshot in self.stream(requests):
            logger.debug(f"Fetched level {snapshot.name} ({snapshot.mode})")
            snapshots.append(snapshot)
        logger.info(f"Finished fetching level information: {len(snapshots)} leaderboards")
        return snapshots

    async def stream(self, requests: AsyncIterable[LevelRequest]) -> AsyncIterator[LevelSnapshot]:
        """
        Yield snapshots in completion order.

        With the fail-fast policy, each snapshot must arrive within step_timeout
        of the previous one. The first one that does not ends the stream and
        abandons all remaining work.

        Raises:
            FetchError: If an official level's leaderboard could not be fetched
            CatalogError: If the workshop catalog query failed
        """
        queue: asyncio.Queue = asyncio.Queue()
        producer = asyncio.create_task(self._produce(requests, queue))
        loop = asyncio.get_running_loop()

        try:
            deadline = loop.time() + self.step_timeout
            while True:
                if self.timeout_policy is TimeoutPolicy.FAIL_FAST:
                    try:
                        outcome = await self._next_outcome(queue, deadline - loop.time())
                    except asyncio.TimeoutError:
                        logger.warning("Skipping some levels that took too long to fetch")
                        return
                else:
                    outcome = await queue.get()

                if outcome is _DONE:
                    return

                snapshot = self._accept(outcome)
                if snapshot is None:
                    continue

                yield snapshot
                deadline = loop.time() + self.step_timeout
        finally:
            producer.cancel()
            try:
                await producer
            except asyncio.CancelledError:
                pass

    async def _next_outcome(self, queue: asyncio.Queue, remaining: float):
        if not queue.empty():
            return queue.get_nowait()
        if remaining <= 0:
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(queue.get(), timeout=remaining)

    def _accept(self, outcome: FetchOutcome) -> Optional[LevelSnapshot]:
        """Turn an outcome into a snapshot, None to drop it, or raise if fatal."""
        request = outcome.request

        if outcome.error is not None:
            if request is None:
                raise outcome.error
            if request.is_official:
                raise FetchError(request.leaderboard_name, str(outcome.error)) from outcome.error
            logger.debug(f"Dropping workshop level '{request.name}' ({request.mode}): {outcome.error}")
            return None

        if outcome.timed_out:
            logger.warning(f"Skipping level '{request.name}' ({request.mode}): fetch took too long")
            return None

        return outcome.snapshot

    async def _produce(self, requests: AsyncIterable[LevelRequest], queue: asyncio.Queue):
        """Start fetches as slots free up, then signal completion."""
        semaphore = asyncio.Semaphore(self.max_in_flight)
        tasks = set()
        try:
            async for request in requests:
                await semaphore.acquire()
                task = asyncio.create_task(self._run(request, queue, semaphore))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
            if tasks:
                await asyncio.gather(*tasks)
        except Exception as e:
            queue.put_nowait(FetchOutcome(request=None, error=e))
        else:
            queue.put_nowait(_DONE)
        finally:
            pending = list(tasks)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, request: LevelRequest, queue: asyncio.Queue, semaphore: asyncio.Semaphore):
        try:
            if self.timeout_policy is TimeoutPolicy.PER_ITEM:
                snapshot = await self._fetch_within_timeout(request)
            else:
                snapshot = await self._fetch_one(request)
        except Exception as e:
            queue.put_nowait(FetchOutcome(request=request, error=e))
        else:
            if snapshot is None:
                queue.put_nowait(FetchOutcome(request=request, timed_out=True))
            else:
                queue.put_nowait(FetchOutcome(request=request, snapshot=snapshot))
        finally:
            semaphore.release()

    async def _fetch_within_timeout(self, request: LevelRequest) -> Optional[LevelSnapshot]:
        """Fetch one level, None if it did not finish within step_timeout."""
        fetch = asyncio.ensure_future(self._fetch_one(request))
        try:
            done, _ = await asyncio.wait({fetch}, timeout=self.step_timeout)
        finally:
            if not fetch.done():
                fetch.cancel()
        if not done:
            return None
        return fetch.result()

    async def _fetch_one(self, request: LevelRequest) -> LevelSnapshot:
        entries = await self.backend.query_leaderboard_range(
            request.leaderboard_name,
            FetchConstants.FIRST_RANK,
            FetchConstants.LAST_RANK
        )
        entries = await asyncio.gather(*(self._with_display_name(entry) for entry in entries))

        return LevelSnapshot(
            name=request.name,
            mode=request.mode,
            leaderboard_name=request.leaderboard_name,
            entries=tuple(sorted(entries, key=lambda entry: entry.global_rank)),
            timestamp=self.clock(),
            workshop_item=request.workshop_item
        )

    async def _with_display_name(self, entry: LeaderboardEntry) -> LeaderboardEntry:
        if entry.player_name is not None:
            return entry
        try:
            name = await self.backend.resolve_display_name(entry.steam_id)
        except BackendError as e:
            logger.debug(f"Couldn't resolve the name of player {entry.steam_id}: {e}")
            return entry
        return dataclasses.replace(entry, player_name=name)
