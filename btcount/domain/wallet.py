"""Wallet operations - ledger writes and hourly balance history reads"""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from btcount.domain.bucketing import collect_transactions_into_stats
from btcount.domain.cache import CurrentHourStatCollector, load_checkpoint
from btcount.domain.exceptions import InvalidInputError, UnexpectedTypeError
from btcount.domain.models import AMOUNT_SCALE, Snapshot, TimeRange, Transaction
from btcount.domain.repository import LedgerStore, SnapshotStore
from btcount.utils.date_utils import (
    EPOCH,
    Clock,
    as_utc,
    round_up_to_hour,
    truncate_to_hour,
    utc_now,
)

logger = logging.getLogger(__name__)


class WalletService:
    """
    Reads combine three sources, newest last:

    1. hourly snapshots materialized by the stat maker worker,
    2. raw ledger transactions for closed hours the worker has not reached,
    3. the current-hour cache (or the ledger, when running without one).

    The service never writes snapshots; the worker owns that table.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        snapshots: SnapshotStore,
        stat_collector: Optional[CurrentHourStatCollector] = None,
        clock: Clock = utc_now,
    ):
        self.ledger = ledger
        self.snapshots = snapshots
        self.stat_collector = stat_collector
        self.clock = clock

    def create_transaction(self, transaction: Transaction) -> None:
        """
        Validate and append a transaction to the ledger.

        The cache is updated only after the ledger write succeeded, so it can
        never run ahead of persisted data.

        Raises:
            InvalidInputError: negative, non-finite or too precise amount;
                zero or missing timestamp
            StorageError: ledger write failed
        """
        amount = transaction.amount
        if amount is None or (amount.is_finite() and amount < Decimal("0")):
            raise InvalidInputError("negative value not allowed: amount")

        # The ledger column would round finer digits while the cache kept them
        if not amount.is_finite() or amount.normalize().as_tuple().exponent < -AMOUNT_SCALE:
            raise InvalidInputError(
                f"invalid parameter: amount must be finite with at most {AMOUNT_SCALE} decimal places"
            )

        # Reads and the stat maker start at EPOCH; anything at or before it is unreachable
        if transaction.timestamp is None or as_utc(transaction.timestamp) <= EPOCH:
            raise InvalidInputError("invalid parameter: datetime")

        transaction = replace(transaction, timestamp=as_utc(transaction.timestamp))

        self.ledger.save(transaction)
        logger.debug(
            "Transaction saved",
            extra={
                "amount": str(transaction.amount),
                "timestamp": transaction.timestamp.isoformat(),
            },
        )

        if self.stat_collector is not None:
            self.stat_collector.collect(transaction)

    def fetch_balance_by_hour(self, since: datetime, till: datetime) -> List[Snapshot]:
        """
        Balance at every hour boundary in ``(since, till]`` that saw activity.

        ``since`` is rounded down and ``till`` rounded up to whole hours. When
        the range reaches into the current hour and a cache is available, the
        last entry is the cache's live snapshot rather than an hour boundary.
        """
        since, till = as_utc(since), as_utc(till)
        if till < since:
            raise InvalidInputError("invalid parameter: end datetime is before start datetime")

        since = truncate_to_hour(since)
        till = round_up_to_hour(till)
        hour_start = truncate_to_hour(self.clock())

        stats = self.snapshots.load(TimeRange(since=since, till=till))
        if not stats:
            logger.debug("No stats materialized for range, using ledger")
            return self._load_balance_slow(since, till, hour_start)

        last_stat = stats[-1]
        if not isinstance(last_stat, Snapshot):
            raise UnexpectedTypeError(f"snapshot store returned {type(last_stat).__name__}")

        if last_stat.timestamp >= till:
            return stats

        # The stored list is left as loaded; gap entries go to a new one.
        result = list(stats)

        # Closed hours the worker has not materialized yet
        result.extend(self._collect_from_ledger(last_stat, min(till, hour_start)))

        if till > hour_start:
            result.extend(self._collect_open_hour(result[-1], hour_start, till))

        logger.debug(
            "Balance history assembled",
            extra={"materialized": len(stats), "total": len(result)},
        )
        return result

    def get_current_balance(self) -> Snapshot:
        """Best known balance right now"""
        if self.stat_collector is not None:
            return self.stat_collector.get_stat()

        now = self.clock()
        checkpoint = load_checkpoint(self.snapshots, now)
        stats = self._collect_from_ledger(checkpoint, now)
        return stats[-1] if stats else checkpoint

    def _collect_from_ledger(self, base: Snapshot, till: datetime) -> List[Snapshot]:
        """Bucket ledger transactions in ``[base.timestamp, till)`` on top of ``base``"""
        if base.timestamp >= till:
            return []

        transactions = self.ledger.load(TimeRange(since=base.timestamp, till=till))
        return collect_transactions_into_stats(transactions, base.amount)

    def _collect_open_hour(
        self, base: Snapshot, hour_start: datetime, till: datetime
    ) -> List[Snapshot]:
        if self.stat_collector is not None:
            return [self.stat_collector.get_stat()]

        transactions = self.ledger.load(TimeRange(since=hour_start, till=till))
        return collect_transactions_into_stats(transactions, base.amount)

    def _load_balance_slow(
        self, since: datetime, till: datetime, hour_start: datetime
    ) -> List[Snapshot]:
        """
        Answer entirely from the ledger.

        Seeded from the latest snapshot before the range (zero when nothing
        is materialized) so amounts stay cumulative. The ledger is read from
        that checkpoint rather than from ``since``; with no snapshot at all
        this scans from EPOCH until the stat maker's first sync.

        If the ledger shows activity in the open hour, the cache is
        resynchronized with it.
        """
        checkpoint = load_checkpoint(self.snapshots, since)
        stats = [
            stat
            for stat in self._collect_from_ledger(checkpoint, till)
            if stat.timestamp > since
        ]

        if till <= hour_start or self.stat_collector is None:
            return stats

        if stats and stats[-1].timestamp > hour_start:
            self.stat_collector.adjust(stats[-1].amount)
            logger.info(
                "Current hour cache adjusted from ledger",
                extra={"amount": str(stats[-1].amount)},
            )
            stats = stats[:-1]

        return stats + [self.stat_collector.get_stat()]
