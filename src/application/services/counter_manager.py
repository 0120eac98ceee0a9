"""Counter consistency manager.

Keeps an integer field equal to (creates - deletes) of a child collection,
mutated only through the store's optimistic transactions.
"""

import logging

from domain.exceptions import NotFound, TransactionExhausted
from domain.models import ChangeEvent, DocumentPath
from domain.repositories import DocumentStore
from observability import counter_adjustments, counter_exhausted

logger = logging.getLogger(__name__)


class CounterManager:
    """Maintains a counter field on the ancestor scope of counted child Records.

    For a child at ``area/greater-boston/cities/boston`` and the defaults
    (two levels up, field ``count``) the counter is the ``count`` field of
    ``area/greater-boston``. A missing counter reads as zero and is created
    by the first adjustment.
    """

    def __init__(self, store: DocumentStore, counter_field: str = "count", levels_up: int = 2):
        self._store = store
        self._counter_field = counter_field
        self._levels_up = levels_up

    def scope_of(self, child_path: DocumentPath | str) -> DocumentPath:
        return DocumentPath.parse(child_path).ancestor(self._levels_up)

    def counter_path_for(self, child_path: DocumentPath | str) -> DocumentPath:
        return self.scope_of(child_path).child(self._counter_field)

    async def adjust_async(self, scope_path: DocumentPath | str, delta: int) -> int:
        """Add ``delta`` to the counter of ``scope_path`` and return the committed value.

        Raises:
            TransactionExhausted: when concurrent writers kept winning; the
                adjustment is lost and the counter stays skewed by ``delta``
        """
        counter_path = DocumentPath.parse(scope_path).child(self._counter_field)
        try:
            value = await self._store.transact_async(counter_path, lambda current: int(current or 0) + delta)
        except TransactionExhausted as e:
            counter_exhausted.add(1)
            logger.error(f"❌ Counter {counter_path} skewed by {delta:+d}: {e}")
            raise

        counter_adjustments.add(1)
        logger.info(f"✅ Counter {counter_path} adjusted by {delta:+d} to {value}")
        return value

    async def value_async(self, scope_path: DocumentPath | str) -> int:
        try:
            scope = await self._store.read_async(scope_path)
        except NotFound:
            return 0
        return int(scope.get(self._counter_field) or 0)

    async def on_child_created_async(self, event: ChangeEvent) -> int:
        return await self.adjust_async(self.scope_of(event.path), +1)

    async def on_child_deleted_async(self, event: ChangeEvent) -> int:
        return await self.adjust_async(self.scope_of(event.path), -1)
