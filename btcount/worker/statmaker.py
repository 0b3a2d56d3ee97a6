"""Stat maker worker - materializes closed hours into the history stats table"""

import asyncio
import enum
import logging
import time
from datetime import datetime

from btcount.domain.bucketing import collect_transactions_into_stats
from btcount.domain.cache import load_checkpoint
from btcount.domain.models import TimeRange
from btcount.domain.repository import LedgerStore, SnapshotStore
from btcount.infrastructure.observability.logging import log_sync
from btcount.infrastructure.observability.metrics import (
    record_sync,
    stat_checkpoint_gauge,
    stat_sync_latency_histogram,
)
from btcount.utils.date_utils import Clock, truncate_to_hour, until_next_hour, utc_now

logger = logging.getLogger(__name__)


class WorkerState(enum.Enum):
    BOOTSTRAPPING = "bootstrapping"
    STEADY = "steady"
    SHUTTING_DOWN = "shutting_down"


class StatMaker:
    """
    Advances the history stats table one closed hour at a time.

    The latest persisted stat is the checkpoint: every sync starts from it,
    so a rerun after a partial batch write simply resumes where the
    committed rows end. Nothing else is tracked between runs.

    Lifecycle:
    - BOOTSTRAPPING: sync up to the start of the current hour, retrying
      every ``retry_delay`` seconds until it succeeds.
    - STEADY: sleep until the next hour boundary and sync the hour that just
      closed; after a failure retry after ``retry_delay`` instead of a full
      hour.
    - SHUTTING_DOWN: the stop event was set while waiting. Rows committed so
      far are kept.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        snapshots: SnapshotStore,
        retry_delay: float = 5.0,
        clock: Clock = utc_now,
    ):
        self.ledger = ledger
        self.snapshots = snapshots
        self.retry_delay = retry_delay
        self.clock = clock
        self.state = WorkerState.BOOTSTRAPPING

    def sync(self, till: datetime) -> int:
        """Materialize every closed hour up to ``till``; returns stats written"""
        last_stat = load_checkpoint(self.snapshots, till)
        if last_stat.timestamp >= till:
            return 0

        transactions = self.ledger.load(TimeRange(since=last_stat.timestamp, till=till))
        if not transactions:
            return 0

        stats = collect_transactions_into_stats(transactions, last_stat.amount)
        self.snapshots.save_many(stats)
        return len(stats)

    async def run(self, stop: asyncio.Event) -> None:
        self.state = WorkerState.BOOTSTRAPPING
        while not await self._tick(truncate_to_hour(self.clock())):
            if await self._wait(stop, self.retry_delay):
                self._shutdown()
                return

        self.state = WorkerState.STEADY
        delay = until_next_hour(self.clock()).total_seconds()
        while not await self._wait(stop, delay):
            # Just past a boundary, so this is the hour that closed
            till = truncate_to_hour(self.clock())
            if await self._tick(till):
                delay = until_next_hour(self.clock()).total_seconds()
            else:
                delay = self.retry_delay

        self._shutdown()

    async def _tick(self, till: datetime) -> bool:
        logger.debug("Handling stat tick", extra={"till": till.isoformat(), "state": self.state.value})
        start_time = time.perf_counter()
        try:
            inserted = await asyncio.to_thread(self.sync, till)
        except Exception as e:
            record_sync(False)
            logger.error(
                "Unable to sync stats",
                extra={"till": till.isoformat(), "state": self.state.value, "error": str(e)},
            )
            return False

        duration = time.perf_counter() - start_time
        stat_sync_latency_histogram.observe(duration)
        stat_checkpoint_gauge.set(till.timestamp())
        record_sync(True, inserted)
        log_sync(till, inserted, duration * 1000)
        return True

    @staticmethod
    async def _wait(stop: asyncio.Event, seconds: float) -> bool:
        """Sleep up to ``seconds``; True when the stop event fired instead"""
        try:
            await asyncio.wait_for(stop.wait(), timeout=max(seconds, 0))
        except asyncio.TimeoutError:
            return stop.is_set()
        return True

    def _shutdown(self) -> None:
        self.state = WorkerState.SHUTTING_DOWN
        logger.info("Stat maker stopped")
