"""Data access layer for the ledger and materialized history stats"""

from datetime import datetime
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from btcount.domain.exceptions import NotFoundError, StorageError
from btcount.domain.models import Snapshot, TimeRange, Transaction
from btcount.infrastructure.database.models import HistoryStatRecord, TransactionRecord


class SqlLedgerStore:
    """Repository for raw ledger transactions"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, transaction: Transaction) -> None:
        """Append a transaction to the ledger"""
        try:
            with self.session_factory() as db:
                db.add(TransactionRecord(timestamp=transaction.timestamp, amount=transaction.amount))
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"saving transaction: {e}") from e

    def load(self, query: TimeRange) -> List[Transaction]:
        """Transactions in ``[since, till)``, oldest first"""
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.timestamp >= query.since)
            .where(TransactionRecord.timestamp < query.till)
            .order_by(TransactionRecord.timestamp.asc(), TransactionRecord.id.asc())
        )
        try:
            with self.session_factory() as db:
                rows = db.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"loading transactions: {e}") from e

        return [Transaction(amount=row.amount, timestamp=row.timestamp) for row in rows]


class SqlSnapshotStore:
    """Repository for hourly history stats"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, snapshot: Snapshot) -> None:
        try:
            with self.session_factory() as db:
                db.add(_to_record(snapshot))
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"saving history stat: {e}") from e

    def save_many(self, snapshots: Sequence[Snapshot]) -> None:
        """
        Persist stats one commit at a time.

        A failure stops the batch: rows committed before it stay, the error
        names the stat that failed.
        """
        if not snapshots:
            return

        with self.session_factory() as db:
            for snapshot in snapshots:
                try:
                    db.add(_to_record(snapshot))
                    db.commit()
                except SQLAlchemyError as e:
                    db.rollback()
                    raise StorageError(
                        f"inserting {snapshot.timestamp.isoformat()} {snapshot.amount}: {e}"
                    ) from e

    def load(self, query: TimeRange) -> List[Snapshot]:
        """Stats in ``(since, till]``, oldest first"""
        stmt = (
            select(HistoryStatRecord)
            .where(HistoryStatRecord.timestamp > query.since)
            .where(HistoryStatRecord.timestamp <= query.till)
            .order_by(HistoryStatRecord.timestamp.asc())
        )
        try:
            with self.session_factory() as db:
                rows = db.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"loading history stats: {e}") from e

        return [_to_snapshot(row) for row in rows]

    def load_last_stat(self, ts: datetime) -> Snapshot:
        """Latest stat at or before ``ts``"""
        stmt = (
            select(HistoryStatRecord)
            .where(HistoryStatRecord.timestamp <= ts)
            .order_by(HistoryStatRecord.timestamp.desc())
            .limit(1)
        )
        try:
            with self.session_factory() as db:
                row = db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise StorageError(f"loading last history stat: {e}") from e

        if row is None:
            raise NotFoundError(f"no history stat at or before {ts.isoformat()}")
        return _to_snapshot(row)


def _to_record(snapshot: Snapshot) -> HistoryStatRecord:
    return HistoryStatRecord(timestamp=snapshot.timestamp, amount=snapshot.amount)


def _to_snapshot(row: HistoryStatRecord) -> Snapshot:
    return Snapshot(timestamp=row.timestamp, amount=row.amount)
