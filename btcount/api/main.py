"""FastAPI application factory"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import sessionmaker
from starlette.responses import Response

from btcount.api.middleware import RequestIDMiddleware, MetricsMiddleware
from btcount.api.v1 import wallet
from btcount.config import Settings, settings
from btcount.domain.cache import init_current_hour_collector
from btcount.domain.exceptions import DomainException
from btcount.domain.wallet import WalletService
from btcount.infrastructure.database.repositories import SqlLedgerStore, SqlSnapshotStore
from btcount.infrastructure.database.session import create_engine_for_url, create_session_factory, init_db
from btcount.infrastructure.observability.logging import setup_logging
from btcount.utils.date_utils import Clock, utc_now
from btcount.worker.statmaker import StatMaker

# Setup structured logging
setup_logging(settings.log_level, settings.log_format, settings.service_name)

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Storage, the current-hour cache and the stat maker are wired in the
    lifespan, so importing this module never touches the database. Pass a
    ``session_factory`` to reuse an existing engine (its tables must exist).
    """
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        factory = session_factory
        if factory is None:
            engine = create_engine_for_url(cfg.database_url, cfg)
            init_db(engine)
            factory = create_session_factory(engine)

        ledger = SqlLedgerStore(factory)
        snapshots = SqlSnapshotStore(factory)

        try:
            stat_collector = init_current_hour_collector(ledger, snapshots, clock)
        except DomainException as e:
            # Reads fall back to the ledger for the open hour
            logger.warning(f"Running without current hour cache: {e}")
            stat_collector = None

        app.state.wallet_service = WalletService(ledger, snapshots, stat_collector, clock)

        stop = asyncio.Event()
        worker_task = None
        if cfg.stat_worker_enabled:
            stat_maker = StatMaker(ledger, snapshots, cfg.stat_worker_retry_delay_seconds, clock)
            worker_task = asyncio.create_task(stat_maker.run(stop))

        logger.info("Service started", extra={"stat_worker": cfg.stat_worker_enabled})
        try:
            yield
        finally:
            stop.set()
            if worker_task is not None:
                await worker_task
            if engine is not None:
                engine.dispose()

    app = FastAPI(
        title="btcount",
        description="Wallet ledger with hourly balance history",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": cfg.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(wallet.router, prefix="/api/v1/wallet", tags=["wallet"])

    return app


app = create_app()
