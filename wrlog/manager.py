"""
Supervisor for the WR log.

Runs the update process on a fixed period, kills runs that take too long,
backs off exponentially after failures and optionally keeps a backend client
process alive, restarting it on a fixed cadence.
"""

import asyncio
import logging
import random
import shlex
import sys
import time
from enum import Enum
from typing import Callable, List, Optional

import aiohttp

from wrlog.config import Config
from wrlog.constants import SupervisorConstants
from wrlog.utils.logger import setup_logging

logger = logging.getLogger('wrlog.manager')


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COOLING_DOWN = "cooling_down"


class RunOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class ExponentialBackoff:
    """Randomized exponential backoff without an elapsed-time limit."""

    def __init__(
        self,
        initial_interval: float = SupervisorConstants.BACKOFF_INITIAL_INTERVAL,
        multiplier: float = SupervisorConstants.BACKOFF_MULTIPLIER,
        randomization_factor: float = SupervisorConstants.BACKOFF_RANDOMIZATION_FACTOR,
        max_interval: float = SupervisorConstants.BACKOFF_MAX_INTERVAL,
        rng: Optional[random.Random] = None
    ):
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.randomization_factor = randomization_factor
        self.max_interval = max_interval
        self.rng = rng or random.Random()
        self.current_interval = initial_interval

    def reset(self):
        self.current_interval = self.initial_interval

    def next_backoff(self) -> float:
        """Return a jittered delay and grow the interval"""
        delta = self.randomization_factor * self.current_interval
        delay = self.rng.uniform(self.current_interval - delta, self.current_interval + delta)
        self.current_interval = min(self.current_interval * self.multiplier, self.max_interval)
        return delay


class RestartPolicy:
    """
    Decides when the next update run starts.

    States move IDLE -> RUNNING on start, then back to IDLE after a success or
    a timeout, or to COOLING_DOWN after a failure. COOLING_DOWN -> RUNNING on
    the next start.
    """

    def __init__(self, update_period: float, backoff: Optional[ExponentialBackoff] = None):
        self.update_period = update_period
        self.backoff = backoff or ExponentialBackoff()
        self.state = RunState.IDLE

    def start(self):
        if self.state is RunState.RUNNING:
            raise RuntimeError("A run is already in progress")
        self.state = RunState.RUNNING

    def finish(self, outcome: RunOutcome, elapsed: float) -> float:
        """Record a run's outcome and return the delay before the next run"""
        if self.state is not RunState.RUNNING:
            raise RuntimeError("No run is in progress")

        if outcome is RunOutcome.SUCCESS:
            self.state = RunState.IDLE
            self.backoff.reset()
            return max(self.update_period - elapsed, 0.0)

        if outcome is RunOutcome.FAILURE:
            self.state = RunState.COOLING_DOWN
            return self.backoff.next_backoff()

        # Timed out runs are retried right away
        self.state = RunState.IDLE
        self.backoff.reset()
        return 0.0


class ClientProcess:
    """Keeps a backend client process running and restarts it periodically."""

    def __init__(self, command: List[str], restart_period: float,
                 shutdown_grace: float = SupervisorConstants.CLIENT_SHUTDOWN_GRACE_SECONDS):
        self.command = command
        self.restart_period = restart_period
        self.shutdown_grace = shutdown_grace
        self.process: Optional[asyncio.subprocess.Process] = None

    async def start(self):
        logger.info(f"Starting client process: {' '.join(self.command)}")
        self.process = await asyncio.create_subprocess_exec(*self.command)

    async def stop(self):
        """Ask the client to shut down gracefully, then wait for it"""
        if self.process is None or self.process.returncode is not None:
            return
        logger.info("Requesting client process shutdown")
        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout=self.shutdown_grace)
        except asyncio.TimeoutError:
            logger.warning("Client process did not exit in time, killing it")
            self.process.kill()
            await self.process.wait()

    async def restart(self):
        await self.stop()
        await self.start()

    async def keep_alive(self):
        """Restart the client every restart_period until cancelled"""
        await self.start()
        try:
            while True:
                await asyncio.sleep(self.restart_period)
                logger.info("Restarting client process")
                await self.restart()
        finally:
            await self.stop()


async def run_update_process(command: List[str], max_duration: float) -> RunOutcome:
    """Run one update in a child process and classify how it ended"""
    logger.info("Starting wr log update")
    try:
        process = await asyncio.create_subprocess_exec(*command)
    except OSError as e:
        logger.error(f"Couldn't spawn the wr log update process: {e}")
        return RunOutcome.FAILURE

    try:
        returncode = await asyncio.wait_for(process.wait(), timeout=max_duration)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return RunOutcome.TIMEOUT
    except asyncio.CancelledError:
        process.kill()
        raise
    return RunOutcome.SUCCESS if returncode == 0 else RunOutcome.FAILURE


async def healthchecks_send_ping(healthchecks_url: str):
    async with aiohttp.ClientSession() as session:
        async with session.get(healthchecks_url) as resp:
            resp.raise_for_status()


async def healthchecks_send_fail_signal(healthchecks_url: str, error: str):
    async with aiohttp.ClientSession() as session:
        async with session.post(f"{healthchecks_url}/fail", data=f"[manager] error: {error}") as resp:
            resp.raise_for_status()


class Supervisor:
    """Periodically runs the update process."""

    def __init__(
        self,
        policy: RestartPolicy,
        update_command: List[str],
        max_update_duration: float,
        healthchecks_url: Optional[str] = None,
        run_update: Callable = run_update_process,
        sleep: Callable = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.policy = policy
        self.update_command = update_command
        self.max_update_duration = max_update_duration
        self.healthchecks_url = healthchecks_url
        self.run_update = run_update
        self.sleep = sleep
        self.clock = clock

    async def run_once(self) -> float:
        """Run one update and return the delay before the next"""
        self.policy.start()
        started = self.clock()
        outcome = await self.run_update(self.update_command, self.max_update_duration)
        delay = self.policy.finish(outcome, self.clock() - started)

        if outcome is RunOutcome.SUCCESS:
            if self.healthchecks_url:
                try:
                    await healthchecks_send_ping(self.healthchecks_url)
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.warning(f"Couldn't send healthchecks ping: {e}")
        elif outcome is RunOutcome.FAILURE:
            logger.error("error: wr log update did not run successfully")
        else:
            logger.error("error: wr log update ran for too long")

        return delay

    async def run_forever(self):
        while True:
            delay = await self.run_once()
            await self.sleep(delay)


async def main() -> int:
    """Supervisor entry point"""
    Config.validate()

    supervisor = Supervisor(
        policy=RestartPolicy(Config.UPDATE_PERIOD),
        update_command=[sys.executable, '-m', 'wrlog.main'],
        max_update_duration=Config.MAX_UPDATE_DURATION,
        healthchecks_url=Config.HEALTHCHECKS_URL
    )
    if not Config.HEALTHCHECKS_URL:
        logger.warning("Environment variable HEALTHCHECKS_URL is not set")

    client_task = None
    if Config.CLIENT_COMMAND:
        client = ClientProcess(shlex.split(Config.CLIENT_COMMAND), Config.CLIENT_RESTART_PERIOD)
        client_task = asyncio.create_task(client.keep_alive())

    try:
        await supervisor.run_forever()
    except Exception as e:
        logger.error(f"error: {e}", exc_info=True)
        if Config.HEALTHCHECKS_URL:
            await healthchecks_send_fail_signal(Config.HEALTHCHECKS_URL, str(e))
        return 1
    finally:
        if client_task is not None:
            client_task.cancel()
            try:
                await client_task
            except asyncio.CancelledError:
                pass
    return 0


def run():
    setup_logging('wr_log_manager')
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
