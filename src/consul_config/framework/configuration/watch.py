"""
Long-poll watch loop.

Runs one asyncio task that repeatedly fetches the watched folders with a
Consul blocking query, resolves the snapshot, and commits it to the
provider when consumers need to reload.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from ...domain.models import KVListResult
from ...infrastructure.exceptions import FormatError, TransportError
from ...infrastructure.kv_client import KVClient, QueryOptions
from ...infrastructure.observability.logging import watch_cycle
from .changes import ChangeDetector
from .provider import ConsulConfigurationProvider

logger = logging.getLogger(__name__)


class WatchState(Enum):
    """States of one watch cycle."""
    IDLE = "idle"
    FETCHING = "fetching"
    RESOLVING = "resolving"
    DIFFING = "diffing"
    RELOADING = "reloading"
    STOPPED = "stopped"


class CycleResult(Enum):
    """Outcome of one watch cycle."""
    RELOADED = "reloaded"
    UNCHANGED = "unchanged"
    FETCH_FAILED = "fetch_failed"
    RESOLVE_FAILED = "resolve_failed"


class ConsulWatchLoop:
    """
    Drives fetch -> resolve -> diff -> commit cycles for a provider.

    The first cycle runs inline in :meth:`start` so the provider holds data
    before the host proceeds; later cycles run on a background task until
    :meth:`stop` cancels it.
    """

    def __init__(
        self,
        provider: ConsulConfigurationProvider,
        client: KVClient,
        folder: str = "",
        wait_time: float = 180.0,
        token: Optional[str] = None,
        datacenter: Optional[str] = None
    ):
        if wait_time <= 0:
            raise ValueError("wait_time must be greater than 0")

        self.provider = provider
        self.client = client
        self.folder = folder
        self.wait_time = wait_time
        self.token = token
        self.datacenter = datacenter

        self._state = WatchState.IDLE
        self._wait_index = 0
        self._polling = False
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self.failed_cycles = 0
        self.completed_cycles = 0

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def wait_index(self) -> int:
        return self._wait_index

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """
        Perform the initial load and start watching.

        Raises:
            TransportError: if the store cannot be read at startup
            FormatError: if the initial snapshot holds malformed JSON
        """
        if self.is_running():
            logger.warning("Watch loop is already running")
            return

        self._stopping = False
        with watch_cycle():
            try:
                result = await self._fetch()
                self._apply(result)
            except (TransportError, FormatError) as e:
                self._state = WatchState.IDLE
                logger.error(f"Initial configuration load from '{self.folder}' failed: {e}")
                raise
        self.completed_cycles += 1

        self._task = asyncio.create_task(self._run(), name="ConsulConfigWatch")
        logger.info(f"Watching '{self.folder}' (blocking wait {self.wait_time}s)")

    async def stop(self) -> None:
        """Cancel the watch task; no commit happens afterwards."""
        self._stopping = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Watch loop stopped")
        self._state = WatchState.STOPPED

    async def run_once(self) -> CycleResult:
        """Run a single cycle; failures are logged and never raised."""
        with watch_cycle():
            try:
                result = await self._fetch()
            except TransportError as e:
                self._state = WatchState.IDLE
                self.failed_cycles += 1
                logger.error(f"Failed to fetch configuration from '{self.folder}': {e}")
                return CycleResult.FETCH_FAILED

            try:
                reloaded = self._apply(result)
            except FormatError as e:
                self._state = WatchState.IDLE
                self.failed_cycles += 1
                logger.error(f"Failed to resolve configuration, keeping previous state: {e}")
                return CycleResult.RESOLVE_FAILED

        self.completed_cycles += 1
        return CycleResult.RELOADED if reloaded else CycleResult.UNCHANGED

    async def _run(self) -> None:
        while not self._stopping:
            try:
                outcome = await self.run_once()
                # Without a usable index the next query would not block
                if outcome is CycleResult.FETCH_FAILED or self._polling:
                    await asyncio.sleep(self.wait_time)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Unexpected error in watch cycle: {e}")
                await asyncio.sleep(self.wait_time)

    async def _fetch(self) -> KVListResult:
        self._state = WatchState.FETCHING
        options = QueryOptions(
            token=self.token,
            datacenter=self.datacenter,
            wait_index=self._wait_index,
            wait_time=self.wait_time,
        )
        return await self.client.list(self.folder, options)

    def _apply(self, result: KVListResult) -> bool:
        if self._stopping:
            self._state = WatchState.STOPPED
            return False

        # The index moves on even if the snapshot is rejected, so a broken
        # value is not refetched in a tight loop
        self._advance_index(result.last_index)

        self._state = WatchState.RESOLVING
        next_config = self.provider.resolve(result.entries)

        self._state = WatchState.DIFFING
        previous = self.provider.snapshot()
        changes = ChangeDetector.diff(previous, next_config)
        if not ChangeDetector.should_reload(previous, next_config, self.provider.is_initialized(), changes):
            self._state = WatchState.IDLE
            return False

        # The loop is the provider's only writer, so the diff is still current
        self._state = WatchState.RELOADING
        committed = self.provider.commit(next_config, changes)
        self._state = WatchState.IDLE
        return committed is not None

    def _advance_index(self, last_index: int) -> None:
        self._polling = last_index <= 0
        if last_index <= 0 or last_index < self._wait_index:
            # Index went backwards or is missing: restart with a non-blocking query
            self._wait_index = 0
        else:
            self._wait_index = last_index
