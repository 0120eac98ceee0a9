"""End-to-end trigger scenarios over the in-memory store.

Every write goes through the store, and every change event it queues
(including the ones caused by the handlers themselves) is delivered through
the trigger host until the store settles.
"""

from datetime import datetime

import pytest

from application.triggers import TriggerHost
from infrastructure import InMemoryNotificationPublisher
from integration.repositories import InMemoryDocumentStore
from tests.fixtures.factories import ChangeEventFactory
from tests.fixtures.mixins import TriggerTestMixin

MESSAGE = "rooms/lobby/messages/m1"


class TestCounterScenario(TriggerTestMixin):
    """Counted children keep their area's counter in sync."""

    @pytest.mark.asyncio
    async def test_create_then_delete_moves_counter(self, store: InMemoryDocumentStore, host: TriggerHost) -> None:
        await store.write_async("area/greater-boston/cities/boston", {"name": "Boston"})
        await self.settle_async(store, host)

        assert (await store.read_async("area/greater-boston")).get("count") == 1

        await store.delete_async("area/greater-boston/cities/boston")
        await self.settle_async(store, host)

        assert (await store.read_async("area/greater-boston")).get("count") == 0

    @pytest.mark.asyncio
    async def test_several_children(self, store: InMemoryDocumentStore, host: TriggerHost) -> None:
        for city in ("boston", "cambridge", "somerville"):
            await store.write_async(f"area/greater-boston/cities/{city}", {"name": city.title()})
        await store.delete_async("area/greater-boston/cities/cambridge")
        await self.settle_async(store, host)

        assert (await store.read_async("area/greater-boston")).get("count") == 2


class TestMessageScenario(TriggerTestMixin):
    """Messages get their text rewritten once per change and do not loop."""

    @pytest.mark.asyncio
    async def test_created_message_is_rewritten_and_announced(
        self, store: InMemoryDocumentStore, host: TriggerHost, publisher: InMemoryNotificationPublisher, fixed_now: datetime
    ) -> None:
        await store.write_async(MESSAGE, {"text": "I like pizza", "author": "ana"})

        delivered = await self.settle_async(store, host)

        record = await store.read_async(MESSAGE)
        assert record.get("text") == "I like 🍕"
        assert record.get("updated_at") == fixed_now.isoformat()
        assert delivered == 3
        assert publisher.for_topic("room_lobby") == [{"id": "m1", "text": "I like 🍕", "author": "ana"}]

    @pytest.mark.asyncio
    async def test_update_with_unchanged_text_is_noop(self, store: InMemoryDocumentStore, host: TriggerHost) -> None:
        await self.seed_async(store, {MESSAGE: {"text": "I like 🍕"}})
        revision = store.revision_of(MESSAGE)

        event = ChangeEventFactory.updated(MESSAGE, {"text": "I like pizza"}, {"text": "I like pizza"})
        assert await host.deliver_async(event) is True

        assert store.revision_of(MESSAGE) == revision
        assert store.pending_changes == 0

    @pytest.mark.asyncio
    async def test_edit_of_rewritten_text_stamps_once(
        self, store: InMemoryDocumentStore, host: TriggerHost, fixed_now: datetime
    ) -> None:
        await self.seed_async(store, {MESSAGE: {"text": "I like 🍕"}})

        await store.write_async(MESSAGE, {"text": "I like 🍕 night"})
        delivered = await self.settle_async(store, host)

        record = await store.read_async(MESSAGE)
        assert record.get("text") == "I like 🍕 night"
        assert record.get("updated_at") == fixed_now.isoformat()
        assert delivered == 2

    @pytest.mark.asyncio
    async def test_redelivered_update_writes_once(self, store: InMemoryDocumentStore, host: TriggerHost) -> None:
        await self.seed_async(store, {MESSAGE: {"text": "hello"}})
        await store.write_async(MESSAGE, {"text": "pizza party"})
        [event] = store.drain_changes()

        await host.deliver_async(event)
        revision = store.revision_of(MESSAGE)

        await host.deliver_async(event)

        assert store.revision_of(MESSAGE) == revision
        await self.settle_async(store, host)
        assert (await store.read_async(MESSAGE)).get("text") == "🍕 party"


class TestWeatherScenario(TriggerTestMixin):
    """Weather changes are pushed to the city's topic."""

    @pytest.mark.asyncio
    async def test_watched_change_is_published(
        self, store: InMemoryDocumentStore, host: TriggerHost, publisher: InMemoryNotificationPublisher
    ) -> None:
        await self.seed_async(store, {"cities-weather/boston-ma-us": {"temp": 12.5, "conditions": "cloudy"}})

        await store.write_async("cities-weather/boston-ma-us", {"temp": 14.0})
        await self.settle_async(store, host)

        assert publisher.for_topic("weather_boston-ma-us") == [{"temp": "14.0", "conditions": "cloudy"}]

    @pytest.mark.asyncio
    async def test_failed_notification_does_not_fail_trigger(
        self, store: InMemoryDocumentStore, host: TriggerHost, publisher: InMemoryNotificationPublisher
    ) -> None:
        await self.seed_async(store, {"cities-weather/boston-ma-us": {"temp": 12.5, "conditions": "cloudy"}})
        publisher.fail_with = "topic has no subscribers"

        await store.write_async("cities-weather/boston-ma-us", {"conditions": "rain"})
        [event] = store.drain_changes()

        assert await host.deliver_async(event) is True
        assert publisher.published == []
