"""Hour bucketing - folds raw transactions into cumulative hourly snapshots"""

from decimal import Decimal
from typing import List, Sequence

from btcount.domain.models import Snapshot, Transaction
from btcount.utils.date_utils import hour_end


def collect_transactions_into_stats(
    transactions: Sequence[Transaction],
    initial_sum: Decimal,
) -> List[Snapshot]:
    """
    Partition transactions by hour and emit the running balance at the end of
    each hour that saw activity.

    Amounts are cumulative: every snapshot is ``initial_sum`` plus all
    transactions before its boundary, so any contiguous slice of the result
    is a valid balance history on its own. Hours without transactions produce
    no snapshot.

    The input may be unordered; it is sorted into a copy and left untouched.

    Example:
        seed 12.0, hour H: +0.4 +1.2 +0.1, H+1: +0.5, H+2: +0.7 +2.1
        → [(H+1, 13.7), (H+2, 14.2), (H+3, 17.0)]
    """
    if not transactions:
        return []

    ordered = sorted(transactions, key=lambda t: t.timestamp)

    first = ordered[0]
    bucket_end = hour_end(first.timestamp)
    running = initial_sum + first.amount

    stats: List[Snapshot] = []
    for txn in ordered[1:]:
        if txn.timestamp < bucket_end:
            running += txn.amount
            continue

        stats.append(Snapshot(timestamp=bucket_end, amount=running))
        running += txn.amount
        bucket_end = hour_end(txn.timestamp)

    # The last bucket is always closed out, even when its only member is the
    # transaction that crossed into it.
    stats.append(Snapshot(timestamp=bucket_end, amount=running))
    return stats
