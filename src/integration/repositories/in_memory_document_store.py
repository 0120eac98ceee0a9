"""In-memory implementation of DocumentStore."""

import asyncio
import copy
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from domain.exceptions import NotFound
from domain.models import ChangeEvent, DocumentPath, Record
from domain.repositories import DEFAULT_MAX_TRANSACTION_ATTEMPTS, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class _StoredRecord:
    fields: dict[str, Any] = field(default_factory=dict)
    revision: int = 0


class InMemoryDocumentStore(DocumentStore):
    """Process-local DocumentStore for development and testing.

    Every mutation bumps the Record's revision and queues a ChangeEvent.
    Revisions of a path only ever go up: a deleted Record leaves a tombstone
    revision behind, and a Record created again at that path continues from it.
    Writes that leave a Record's fields unchanged emit nothing, like a hosted
    store does. Transactions yield to the event loop between their read and
    their compare-and-set, so concurrent writers interleave for real.

    Warning: data is lost on application restart.
    """

    def __init__(self, max_transaction_attempts: int = DEFAULT_MAX_TRANSACTION_ATTEMPTS):
        super().__init__(max_transaction_attempts)
        self._records: dict[DocumentPath, _StoredRecord] = {}
        self._tombstones: dict[DocumentPath, int] = {}
        self._changes: asyncio.Queue[ChangeEvent] = asyncio.Queue()

    async def read_async(self, path: DocumentPath | str) -> Record:
        path = DocumentPath.parse(path)
        stored = self._records.get(path)
        if stored is None:
            raise NotFound(str(path))
        return Record.of(path, stored.fields)

    async def write_async(self, path: DocumentPath | str, fields: dict[str, Any], merge: bool = True) -> None:
        path = DocumentPath.parse(path)
        stored = self._records.get(path)
        new_fields = {**stored.fields, **fields} if stored is not None and merge else dict(fields)
        self._apply(path, new_fields)

    async def delete_async(self, path: DocumentPath | str) -> None:
        path = DocumentPath.parse(path)
        stored = self._records.pop(path, None)
        if stored is None:
            return
        self._tombstones[path] = stored.revision + 1
        self._changes.put_nowait(ChangeEvent.deleted(Record.of(path, stored.fields)))

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        while True:
            yield await self._changes.get()

    def drain_changes(self) -> list[ChangeEvent]:
        """Pop every queued ChangeEvent without waiting."""
        drained: list[ChangeEvent] = []
        while not self._changes.empty():
            drained.append(self._changes.get_nowait())
        return drained

    @property
    def pending_changes(self) -> int:
        return self._changes.qsize()

    def revision_of(self, path: DocumentPath | str) -> int:
        return self._revision(DocumentPath.parse(path))

    def _revision(self, path: DocumentPath) -> int:
        stored = self._records.get(path)
        return stored.revision if stored else self._tombstones.get(path, 0)

    async def _read_versioned_async(self, record_path: DocumentPath, field: str) -> tuple[Any, int]:
        stored = self._records.get(record_path)
        value = copy.deepcopy(stored.fields.get(field)) if stored else None
        revision = self._revision(record_path)
        await asyncio.sleep(0)
        return value, revision

    async def _compare_and_set_async(self, record_path: DocumentPath, field: str, value: Any, revision: int) -> bool:
        if self._revision(record_path) != revision:
            return False

        stored = self._records.get(record_path)
        new_fields = dict(stored.fields) if stored else {}
        new_fields[field] = value
        self._apply(record_path, new_fields)
        return True

    def _apply(self, path: DocumentPath, new_fields: dict[str, Any]) -> None:
        stored = self._records.get(path)
        if stored is not None and stored.fields == new_fields:
            return

        after = Record.of(path, new_fields)
        if stored is None:
            revision = self._tombstones.pop(path, 0) + 1
            self._records[path] = _StoredRecord(fields=copy.deepcopy(new_fields), revision=revision)
            event = ChangeEvent.created(after)
        else:
            before = Record.of(path, stored.fields)
            stored.fields = copy.deepcopy(new_fields)
            stored.revision += 1
            event = ChangeEvent.updated(before, after)

        self._changes.put_nowait(event)
