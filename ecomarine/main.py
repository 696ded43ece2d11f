"""ecomarine — satellite marine-pollution monitoring backend.

This is the application entry point.  It wires the store, the imagery
resolver, the classifier client, the ingestion cycle and its scheduler,
and the REST and WebSocket endpoints together.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ecomarine.api.monitoring import create_monitoring_router
from ecomarine.api.ws_dashboard import create_dashboard_router
from ecomarine.config import Settings, settings as default_settings
from ecomarine.core.ingestion import IngestionCycle
from ecomarine.core.scheduler import PollingScheduler
from ecomarine.foundation.clock import utc_now
from ecomarine.services.classifier import ClassifierClient
from ecomarine.services.connection_manager import ConnectionRegistry
from ecomarine.services.imagery import ImageryResolver
from ecomarine.store.base import MonitoringStore
from ecomarine.store.memory import InMemoryMonitoringStore
from ecomarine.store.sql import SqlMonitoringStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_store(config: Settings) -> MonitoringStore:
    if config.storage_backend == "memory":
        return InMemoryMonitoringStore()
    return SqlMonitoringStore(config.resolved_database_url, echo=config.db_echo)


def create_app(
    config: Settings | None = None,
    *,
    store: MonitoringStore | None = None,
    classifier_transport: httpx.AsyncBaseTransport | None = None,
    imagery_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build a fully wired application.

    Every collaborator is constructed here and passed down explicitly.
    The transports let tests substitute the external HTTP services.
    """
    config = config or default_settings

    store = store or build_store(config)
    connections = ConnectionRegistry()
    imagery = ImageryResolver(
        httpx.AsyncClient(timeout=config.http_timeout_seconds, transport=imagery_transport),
        delta=config.imagery_delta_degrees,
        lag_days=config.imagery_lag_days,
    )
    classifier = ClassifierClient(
        httpx.AsyncClient(
            base_url=config.classifier_base_url,
            timeout=config.http_timeout_seconds,
            transport=classifier_transport,
        ),
        imagery,
        mode=config.classifier_mode,
    )
    cycle = IngestionCycle(
        store,
        classifier,
        imagery,
        connections,
        batch_size=config.batch_size,
        work_source=config.work_source,
        statistics_window_hours=config.statistics_window_hours,
    )
    scheduler = PollingScheduler(cycle, interval_seconds=config.poll_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.open()
        if config.scheduler_enabled:
            scheduler.start()
        logger.info("Classifier API URL: %s", classifier.base_url)
        try:
            yield
        finally:
            await scheduler.stop()
            await classifier.aclose()
            await imagery.aclose()
            await store.close()
            logger.info("Shutdown complete")

    app = FastAPI(
        title=config.app_name,
        description="Satellite marine-pollution monitoring",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.connections = connections
    app.state.cycle = cycle
    app.state.scheduler = scheduler

    # ── Routes ───────────────────────────────────────────────────────────

    app.include_router(create_monitoring_router(
        store,
        cycle,
        imagery,
        recent_limit=config.recent_records_limit,
    ))
    app.include_router(create_dashboard_router(connections))

    # ── Health ───────────────────────────────────────────────────────────

    @app.get("/api/health")
    async def health() -> dict:
        return {
            "status": "OK",
            "timestamp": utc_now().isoformat(),
            "classifier_url": classifier.base_url,
            "classifier_mode": classifier.mode,
            "db_connected": await store.ping(),
            "connected_clients": connections.active_count,
            "scheduler_running": scheduler.running,
            "cycles_run": cycle.cycles_run,
            "decoders": classifier.registry.stats,
        }

    return app


configure_logging(default_settings.log_level)

app = create_app()
