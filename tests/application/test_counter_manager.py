"""Application layer tests for CounterManager.

Tests:
- Counter path derivation from a counted child's path
- Read-missing-as-zero and implicit creation
- Exact sum under concurrent adjustments
- Exhausted transactions surface and leave the counter skewed
"""

import asyncio
from typing import Any

import pytest

from application.services import CounterManager
from domain.exceptions import TransactionExhausted
from domain.models import DocumentPath
from integration.repositories import InMemoryDocumentStore
from tests.fixtures.factories import ChangeEventFactory
from tests.fixtures.mixins import TriggerTestMixin

SCOPE = "area/greater-boston"


class AlwaysConflictingStore(InMemoryDocumentStore):
    """Store where another writer always wins the compare-and-set."""

    async def _compare_and_set_async(self, record_path: DocumentPath, field: str, value: Any, revision: int) -> bool:
        return False


class TestCounterPaths:
    """Test counter path derivation."""

    def test_counter_lives_two_levels_up(self, counter_manager: CounterManager) -> None:
        assert str(counter_manager.counter_path_for("area/greater-boston/cities/boston")) == "area/greater-boston/count"

    def test_levels_and_field_are_configurable(self, store: InMemoryDocumentStore) -> None:
        manager = CounterManager(store, counter_field="message_count", levels_up=2)

        assert str(manager.counter_path_for("rooms/lobby/messages/m1")) == "rooms/lobby/message_count"


class TestCounterAdjustments(TriggerTestMixin):
    """Test transactional counter adjustments."""

    @pytest.mark.asyncio
    async def test_absent_counter_reads_as_zero(self, store: InMemoryDocumentStore, counter_manager: CounterManager) -> None:
        assert await counter_manager.value_async(SCOPE) == 0
        assert not await store.exists_async(SCOPE)

    @pytest.mark.asyncio
    async def test_first_adjustment_creates_counter(self, store: InMemoryDocumentStore, counter_manager: CounterManager) -> None:
        value = await counter_manager.adjust_async(SCOPE, +1)

        assert value == 1
        assert (await store.read_async(SCOPE)).fields == {"count": 1}

    @pytest.mark.asyncio
    async def test_adjustment_keeps_other_scope_fields(self, store: InMemoryDocumentStore, counter_manager: CounterManager) -> None:
        await self.seed_async(store, {SCOPE: {"name": "Greater Boston"}})

        await counter_manager.adjust_async(SCOPE, +1)

        assert (await store.read_async(SCOPE)).fields == {"name": "Greater Boston", "count": 1}

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, store: InMemoryDocumentStore, counter_manager: CounterManager) -> None:
        results = await asyncio.gather(*(counter_manager.adjust_async(SCOPE, +1) for _ in range(8)))

        assert await counter_manager.value_async(SCOPE) == 8
        assert sorted(results) == list(range(1, 9))

    @pytest.mark.asyncio
    async def test_concurrent_mixed_deltas_sum_exactly(self, store: InMemoryDocumentStore, counter_manager: CounterManager) -> None:
        deltas = [+1, +1, -1, +3, -2, +1, +1, +1]

        await asyncio.gather(*(counter_manager.adjust_async(SCOPE, delta) for delta in deltas))

        assert await counter_manager.value_async(SCOPE) == sum(deltas)

    @pytest.mark.asyncio
    async def test_many_concurrent_writers_with_enough_attempts(self) -> None:
        store = InMemoryDocumentStore(max_transaction_attempts=25)
        manager = CounterManager(store)

        await asyncio.gather(*(manager.adjust_async(SCOPE, +1) for _ in range(20)))

        assert await manager.value_async(SCOPE) == 20

    @pytest.mark.asyncio
    async def test_exhausted_transaction_is_raised(self) -> None:
        manager = CounterManager(AlwaysConflictingStore())

        with pytest.raises(TransactionExhausted) as exc_info:
            await manager.adjust_async(SCOPE, +1)

        assert exc_info.value.attempts == 10
        assert exc_info.value.path == "area/greater-boston/count"

    @pytest.mark.asyncio
    async def test_exhausted_adjustments_leave_counter_skewed(self) -> None:
        """Test that losers of a single-attempt race fail loudly instead of being masked."""
        store = InMemoryDocumentStore(max_transaction_attempts=1)
        manager = CounterManager(store)

        results = await asyncio.gather(*(manager.adjust_async(SCOPE, +1) for _ in range(3)), return_exceptions=True)

        assert results[0] == 1
        assert all(isinstance(result, TransactionExhausted) for result in results[1:])
        assert await manager.value_async(SCOPE) == 1

    @pytest.mark.asyncio
    async def test_create_and_delete_events_move_counter(self, counter_manager: CounterManager) -> None:
        path = "area/greater-boston/cities/boston"

        assert await counter_manager.on_child_created_async(ChangeEventFactory.created(path, name="Boston")) == 1
        assert await counter_manager.on_child_deleted_async(ChangeEventFactory.deleted(path, name="Boston")) == 0
