"""SQLAlchemy ORM models for the ledger and the materialized hourly stats"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, Numeric
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from btcount.domain.models import AMOUNT_SCALE

Base = declarative_base()

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class TransactionRecord(Base):
    """Raw ledger entry, append-only"""

    __tablename__ = "transactions"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    timestamp = Column("datetime", UTCDateTime, nullable=False, index=True)
    amount = Column(Numeric(precision=28, scale=AMOUNT_SCALE), nullable=False)


class HistoryStatRecord(Base):
    """Cumulative balance at an hour boundary; one row per boundary"""

    __tablename__ = "history_stats"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    timestamp = Column("datetime", UTCDateTime, nullable=False, unique=True)
    amount = Column(Numeric(precision=28, scale=AMOUNT_SCALE), nullable=False)
