"""Running balance for the hour that has not been materialized yet"""

import logging
import threading
from datetime import datetime
from decimal import Decimal

from btcount.domain.bucketing import collect_transactions_into_stats
from btcount.domain.exceptions import NotFoundError
from btcount.domain.models import Snapshot, TimeRange, Transaction
from btcount.domain.repository import LedgerStore, SnapshotStore
from btcount.utils.date_utils import EPOCH, Clock, utc_now

logger = logging.getLogger(__name__)


class CurrentHourStatCollector:
    """
    Process-local running total fed by the write path.

    Both mutations take the same lock so an ``adjust`` racing a ``collect``
    cannot drop either update. Reads take it too; the state is a single
    small record, so there is nothing to gain from a shared read lock.
    """

    def __init__(self, last_stat: Snapshot, clock: Clock = utc_now):
        self._stat = last_stat
        self._clock = clock
        self._lock = threading.Lock()

    def collect(self, transaction: Transaction) -> None:
        with self._lock:
            self._stat = Snapshot(
                timestamp=transaction.timestamp,
                amount=self._stat.amount + transaction.amount,
            )

    def adjust(self, amount: Decimal) -> None:
        """Overwrite the running total with a value read from the ledger"""
        with self._lock:
            self._stat = Snapshot(timestamp=self._clock(), amount=amount)

    def get_stat(self) -> Snapshot:
        with self._lock:
            return self._stat


def load_checkpoint(snapshots: SnapshotStore, ts: datetime) -> Snapshot:
    """Latest persisted snapshot at or before ``ts``, or a zero balance"""
    try:
        return snapshots.load_last_stat(ts)
    except NotFoundError:
        return Snapshot(timestamp=EPOCH, amount=Decimal("0"))


def init_current_hour_collector(
    ledger: LedgerStore,
    snapshots: SnapshotStore,
    clock: Clock = utc_now,
) -> CurrentHourStatCollector:
    """
    Seed the cache from the last checkpoint plus everything written since.

    Storage errors propagate; callers decide whether to run without a cache.
    """
    now = clock()
    last_stat = load_checkpoint(snapshots, now)

    transactions = ledger.load(TimeRange(since=last_stat.timestamp, till=now))
    stats = collect_transactions_into_stats(transactions, last_stat.amount)

    seed = stats[-1] if stats else last_stat
    logger.debug(
        "Created current hour cache",
        extra={
            "checkpoint": last_stat.timestamp.isoformat(),
            "transactions": len(transactions),
            "amount": str(seed.amount),
        },
    )
    return CurrentHourStatCollector(seed, clock=clock)
