"""Trigger handlers wired to the core services.

- Weather update: notify subscribers when watched weather fields change
- Message create: rewrite the text, then notify the room
- Message update: rewrite the text when it changed
- Counted child create/delete: keep the scope counter in sync
"""

import logging
from dataclasses import dataclass

from application.services import CounterManager, DerivedFieldRewriter, NotificationDispatcher
from application.settings import Settings
from application.triggers.registry import TriggerRegistry
from domain.models import ChangeEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerServices:
    """Process-wide services the trigger handlers call into."""

    counter_manager: CounterManager
    rewriter: DerivedFieldRewriter
    dispatcher: NotificationDispatcher


def register_triggers(registry: TriggerRegistry, services: TriggerServices, settings: Settings) -> TriggerRegistry:
    """Register every document trigger on ``registry`` and return it."""

    @registry.on_update(f"{settings.weather_collection}/{{cityId}}")
    async def on_weather_update(event: ChangeEvent) -> None:
        topic = settings.weather_topic_template.format(**event.params)
        await services.dispatcher.notify_changes_async(topic, event, settings.weather_watched_fields)

    @registry.on_create(settings.message_trigger_pattern)
    async def on_message_create(event: ChangeEvent) -> None:
        record = await services.rewriter.on_created_async(event)
        if record is None:
            return
        topic = settings.message_topic_template.format(**event.params)
        await services.dispatcher.notify_async(topic, record.to_dict())

    @registry.on_update(settings.message_trigger_pattern)
    async def on_message_update(event: ChangeEvent) -> None:
        await services.rewriter.on_updated_async(event)

    @registry.on_create(settings.counted_trigger_pattern)
    async def on_counted_create(event: ChangeEvent) -> None:
        await services.counter_manager.on_child_created_async(event)

    @registry.on_delete(settings.counted_trigger_pattern)
    async def on_counted_delete(event: ChangeEvent) -> None:
        await services.counter_manager.on_child_deleted_async(event)

    logger.info(f"Registered {len(registry.triggers)} document triggers")
    return registry
