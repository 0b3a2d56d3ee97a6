"""Storage protocols - the domain depends on these, never on SQLAlchemy.

Unit tests inject in-memory fakes that conform to them; the infrastructure
layer provides the database-backed implementation.
"""

from datetime import datetime
from typing import List, Protocol, Sequence

from btcount.domain.models import Snapshot, TimeRange, Transaction


class LedgerStore(Protocol):
    """Append-only store of raw transactions"""

    def save(self, transaction: Transaction) -> None: ...

    def load(self, query: TimeRange) -> List[Transaction]:
        """Transactions with ``since <= timestamp < till``, oldest first"""
        ...


class SnapshotStore(Protocol):
    """Materialized hourly balances"""

    def save(self, snapshot: Snapshot) -> None: ...

    def save_many(self, snapshots: Sequence[Snapshot]) -> None:
        """Write one by one; stops at the first failure, keeping the prefix"""
        ...

    def load(self, query: TimeRange) -> List[Snapshot]:
        """Snapshots with ``since < timestamp <= till``, oldest first"""
        ...

    def load_last_stat(self, ts: datetime) -> Snapshot:
        """Latest snapshot at or before ``ts``; raises NotFoundError if none"""
        ...
