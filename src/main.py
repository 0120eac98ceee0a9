"""Main application entry point.

Builds the process-wide services once (store client, notification channel,
core services, trigger host), exposes the HTTP handlers and runs the
document triggers for the lifetime of the process.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.controllers import counters_controller, weather_controller
from api.errors import register_exception_handlers
from application.services import CounterManager, DerivedFieldRewriter, FanOutAggregator, NotificationDispatcher
from application.settings import Settings, app_settings, configure_logging
from application.triggers import TriggerHost, TriggerRegistry, TriggerServices, register_triggers
from domain.repositories import DocumentStore
from infrastructure import InMemoryNotificationPublisher, NotificationPublisher, RedisNotificationPublisher
from integration.repositories import InMemoryDocumentStore, MotorDocumentStore

configure_logging(log_level=app_settings.log_level)
log = logging.getLogger(__name__)


def build_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "memory":
        return InMemoryDocumentStore(max_transaction_attempts=settings.transaction_max_attempts)
    return MotorDocumentStore(
        connection_string=settings.mongo_connection_string,
        database_name=settings.database_name,
        collection_name=settings.documents_collection,
        max_transaction_attempts=settings.transaction_max_attempts,
    )


def build_publisher(settings: Settings) -> NotificationPublisher:
    if settings.store_backend == "memory":
        return InMemoryNotificationPublisher()
    return RedisNotificationPublisher(redis_url=settings.redis_url, channel_prefix=settings.redis_channel_prefix)


def create_app(
    settings: Settings = app_settings,
    store: DocumentStore | None = None,
    publisher: NotificationPublisher | None = None,
    run_triggers: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings
        store: Document store to use instead of the one ``settings`` selects
        publisher: Notification channel to use instead of the one ``settings`` selects
        run_triggers: Whether the lifespan starts the trigger host

    Returns:
        Configured FastAPI application
    """
    log.debug("🚀 Creating Document Triggers application...")

    if store is None:
        store = build_store(settings)
    if publisher is None:
        publisher = build_publisher(settings)

    aggregator = FanOutAggregator(
        store,
        reference_field=settings.area_reference_field,
        child_collection=settings.weather_collection,
        missing_child_policy=settings.fanout_missing_child_policy,
    )
    counter_manager = CounterManager(store, counter_field=settings.counter_field, levels_up=settings.counter_levels_up)
    rewriter = DerivedFieldRewriter(store, source_field=settings.message_source_field, timestamp_field=settings.message_timestamp_field)
    dispatcher = NotificationDispatcher(publisher, enabled=settings.notifications_enabled)

    registry = register_triggers(
        TriggerRegistry(),
        TriggerServices(counter_manager=counter_manager, rewriter=rewriter, dispatcher=dispatcher),
        settings,
    )
    host = TriggerHost(
        store,
        registry,
        max_deliveries=settings.trigger_max_deliveries,
        timeout_seconds=settings.trigger_timeout_seconds,
        max_concurrency=settings.trigger_max_concurrency,
        reconnect_delay_seconds=settings.trigger_reconnect_delay_seconds,
        max_reconnect_delay_seconds=settings.trigger_max_reconnect_delay_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Connect the shared clients once, run the triggers, tear down on exit."""
        if isinstance(store, MotorDocumentStore):
            await store.connect_async()
        if isinstance(publisher, RedisNotificationPublisher):
            await publisher.connect()
        if run_triggers:
            host.start()

        yield

        log.info("🛑 Shutting down...")
        await host.stop()
        if isinstance(publisher, RedisNotificationPublisher):
            await publisher.disconnect()
        if isinstance(store, MotorDocumentStore):
            await store.disconnect_async()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="HTTP reads and document triggers over a path-addressed document store",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.publisher = publisher
    app.state.aggregator = aggregator
    app.state.counter_manager = counter_manager
    app.state.rewriter = rewriter
    app.state.dispatcher = dispatcher
    app.state.trigger_registry = registry
    app.state.trigger_host = host

    app.include_router(weather_controller.router, prefix="/api", tags=["Weather"])
    app.include_router(counters_controller.router, prefix="/api", tags=["Counters"])
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "store": type(store).__name__}

    log.info("✅ Application created successfully!")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:create_app",
        factory=True,
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=app_settings.debug,
    )
