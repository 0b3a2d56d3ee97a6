"""Database engine and session management with connection pooling"""

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from btcount.config import Settings, settings
from btcount.infrastructure.database.models import Base


def create_engine_for_url(database_url: str, app_settings: Settings = settings) -> Engine:
    """Build an engine; SQLite gets thread sharing instead of pool sizing"""
    kwargs: Dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_pre_ping=True,  # Verify connections before using
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_recycle=3600,
        )
    return create_engine(database_url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the ledger and history tables if they do not exist"""
    Base.metadata.create_all(bind=engine)
