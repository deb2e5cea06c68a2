from __future__ import annotations

import logging
import asyncio
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from prometheus_client import Counter, start_http_server

from fedi_delete.api import api_router
from fedi_delete.core import DeleteSettings
from fedi_delete.core.event_bus import EventBus
from fedi_delete.db import DatabaseSessionManager
from fedi_delete.db.repository import DeleteRepository
from fedi_delete.services import (
    AccountDeletionService,
    AudienceCalculator,
    DeleteActivityBuilder,
    DeleteActivityProcessor,
    DeliveryWorker,
    LedgerDeliveryDispatcher,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_settings() -> DeleteSettings:
    """Loads settings, caching the result."""
    return DeleteSettings()


def create_app(settings: Optional[DeleteSettings] = None) -> FastAPI:
    """Creates and configures the FastAPI application.

    Args:
        settings: Optional DeleteSettings instance. If None, settings are loaded.

    Returns:
        A configured FastAPI application instance.
    """
    settings = settings or _load_settings()

    db_manager = DatabaseSessionManager(settings.database_url)
    db_manager.create_all()  # IMPORTANT: In production, use a dedicated migration tool (e.g., Alembic) for schema management.

    repository = DeleteRepository(db_manager)
    event_bus = EventBus()
    builder = DeleteActivityBuilder(local_domain=settings.local_domain)
    audience = AudienceCalculator(repository)
    dispatcher = LedgerDeliveryDispatcher(repository)
    account_deleter = AccountDeletionService(
        repository=repository,
        audience=audience,
        dispatcher=dispatcher,
        builder=builder,
    )
    processor = DeleteActivityProcessor(
        settings=settings,
        repository=repository,
        dispatcher=dispatcher,
        account_deleter=account_deleter,
        builder=builder,
        audience=audience,
        event_bus=event_bus,
    )
    delivery_worker = DeliveryWorker(settings=settings, repository=repository)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        worker_task = None
        if settings.delivery_worker_enabled:
            worker_task = asyncio.create_task(delivery_worker.start())
        try:
            yield
        finally:
            await delivery_worker.stop()
            if worker_task is not None:
                worker_task.cancel()
            db_manager.dispose()

    app = FastAPI(title="fedi-delete", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.repository = repository
    app.state.event_bus = event_bus
    app.state.delete_processor = processor
    app.state.delivery_worker = delivery_worker

    if settings.prometheus_port > 0:
        app.state.delete_activities_total = Counter(
            "fedi_delete_activities_total",
            "Total number of Delete activities processed",
            ["kind", "outcome"],
        )
        app.state.delete_deliveries_enqueued_total = Counter(
            "fedi_delete_deliveries_enqueued_total",
            "Total number of Delete deliveries handed to the delivery queue",
        )
        start_http_server(settings.prometheus_port)
    else:
        app.state.delete_activities_total = None
        app.state.delete_deliveries_enqueued_total = None

    app.include_router(api_router)

    logger.info("fedi-delete configured for %s", settings.local_domain)
    return app


__all__ = ["create_app"]
