"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator, List, Optional, Sequence
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from btcount.api.main import create_app
from btcount.config import Settings
from btcount.domain.exceptions import NotFoundError, StorageError
from btcount.domain.models import Snapshot, TimeRange, Transaction
from btcount.infrastructure.database.session import create_engine_for_url, create_session_factory, init_db

# Fixed "now" used by tests that need a deterministic current hour
NOW = datetime(2024, 5, 10, 12, 30, tzinfo=timezone.utc)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class InMemoryLedgerStore:
    """Ledger fake with the same bounds as the SQL store"""

    def __init__(self, transactions: Optional[List[Transaction]] = None):
        self.transactions: List[Transaction] = list(transactions or [])
        self.fail = False

    def save(self, transaction: Transaction) -> None:
        if self.fail:
            raise StorageError("ledger unavailable")
        self.transactions.append(transaction)

    def load(self, query: TimeRange) -> List[Transaction]:
        if self.fail:
            raise StorageError("ledger unavailable")
        found = [t for t in self.transactions if query.since <= t.timestamp < query.till]
        return sorted(found, key=lambda t: t.timestamp)


class InMemorySnapshotStore:
    """Snapshot fake; ``fail_after`` makes save_many stop after that many rows"""

    def __init__(self, snapshots: Optional[List[Snapshot]] = None):
        self.snapshots: List[Snapshot] = list(snapshots or [])
        self.fail_after: Optional[int] = None
        self.fail_reads = 0

    def save(self, snapshot: Snapshot) -> None:
        if any(s.timestamp == snapshot.timestamp for s in self.snapshots):
            raise StorageError(f"duplicate history stat {snapshot.timestamp.isoformat()}")
        self.snapshots.append(snapshot)

    def save_many(self, snapshots: Sequence[Snapshot]) -> None:
        for i, snapshot in enumerate(snapshots):
            if self.fail_after is not None and i >= self.fail_after:
                raise StorageError(f"inserting {snapshot.timestamp.isoformat()}")
            self.save(snapshot)

    def load(self, query: TimeRange) -> List[Snapshot]:
        self._maybe_fail()
        found = [s for s in self.snapshots if query.since < s.timestamp <= query.till]
        return sorted(found, key=lambda s: s.timestamp)

    def load_last_stat(self, ts: datetime) -> Snapshot:
        self._maybe_fail()
        found = [s for s in self.snapshots if s.timestamp <= ts]
        if not found:
            raise NotFoundError(f"no history stat at or before {ts.isoformat()}")
        return max(found, key=lambda s: s.timestamp)

    def _maybe_fail(self) -> None:
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise StorageError("snapshot store unavailable")


@pytest.fixture
def ledger() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def snapshots() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """SQLite database in a temp dir with tables created"""
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'btcount.db'}")
    init_db(engine)
    try:
        yield create_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture
def client(session_factory: sessionmaker) -> Generator[TestClient, None, None]:
    """Create FastAPI test client on the SQLite database, without the stat maker"""
    app = create_app(
        app_settings=Settings(stat_worker_enabled=False),
        session_factory=session_factory,
        clock=lambda: NOW,
    )
    # Entering the client runs the lifespan
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_transactions() -> List[Transaction]:
    """Seed 12.0 followed by three hours of activity before NOW"""
    return [
        Transaction(amount=Decimal("12.0"), timestamp=utc(2024, 5, 10, 8, 5)),
        Transaction(amount=Decimal("0.4"), timestamp=utc(2024, 5, 10, 9, 10)),
        Transaction(amount=Decimal("1.2"), timestamp=utc(2024, 5, 10, 9, 20)),
        Transaction(amount=Decimal("0.1"), timestamp=utc(2024, 5, 10, 9, 59, 59)),
        Transaction(amount=Decimal("0.5"), timestamp=utc(2024, 5, 10, 10, 0)),
        Transaction(amount=Decimal("0.7"), timestamp=utc(2024, 5, 10, 11, 15)),
        Transaction(amount=Decimal("2.1"), timestamp=utc(2024, 5, 10, 11, 45)),
    ]
