"""Abstract document store consumed by the handlers.

Implementations are in src/integration/repositories/.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from typing import Any

from domain.exceptions import NotFound, TransactionExhausted
from domain.models import ChangeEvent, DocumentPath, Record

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRANSACTION_ATTEMPTS = 10


class DocumentStore(ABC):
    """Point reads, point writes and optimistic transactions against path-addressed Records.

    ``transact_async`` is implemented here once, on top of two primitives each
    backend supplies: a versioned read of a single field and a compare-and-set
    that only succeeds when the Record's revision is unchanged.

    A transaction path addresses a field: ``area/greater-boston/count`` is the
    ``count`` field of the Record at ``area/greater-boston``.
    """

    def __init__(self, max_transaction_attempts: int = DEFAULT_MAX_TRANSACTION_ATTEMPTS):
        if max_transaction_attempts < 1:
            raise ValueError("max_transaction_attempts must be >= 1")
        self.max_transaction_attempts = max_transaction_attempts

    @abstractmethod
    async def read_async(self, path: DocumentPath | str) -> Record:
        """Read the Record at ``path``.

        Raises:
            NotFound: when no Record exists at the path
        """
        pass

    @abstractmethod
    async def write_async(self, path: DocumentPath | str, fields: dict[str, Any], merge: bool = True) -> None:
        """Write fields to the Record at ``path``, creating it when missing.

        With ``merge`` the given fields overwrite only themselves; without it
        the Record is replaced entirely.

        Raises:
            WriteError: when the write could not be applied
        """
        pass

    @abstractmethod
    async def delete_async(self, path: DocumentPath | str) -> None:
        """Delete the Record at ``path``. Deleting a missing Record is a no-op."""
        pass

    @abstractmethod
    def changes(self) -> AsyncIterator[ChangeEvent]:
        """Yield a ChangeEvent for every mutation, including this store's own writes."""
        pass

    @abstractmethod
    async def _read_versioned_async(self, record_path: DocumentPath, field: str) -> tuple[Any, int]:
        """Return ``(value, revision)``; a missing Record has revision 0 and value None."""
        pass

    @abstractmethod
    async def _compare_and_set_async(self, record_path: DocumentPath, field: str, value: Any, revision: int) -> bool:
        """Set ``field`` only if the Record is still at ``revision``. Return False on conflict."""
        pass

    async def exists_async(self, path: DocumentPath | str) -> bool:
        try:
            await self.read_async(path)
        except NotFound:
            return False
        return True

    async def transact_async(self, path: DocumentPath | str, fn: Callable[[Any], Any]) -> Any:
        """Atomically replace the field at ``path`` with ``fn(current)``.

        ``current`` is None when the field (or its Record) does not exist yet.
        On a conflicting concurrent write the field is re-read and ``fn`` is
        applied again, up to ``max_transaction_attempts`` times.

        Returns:
            The committed value

        Raises:
            TransactionExhausted: when every attempt conflicted
        """
        path = DocumentPath.parse(path)
        record_path, field = path.parent, path.key

        for attempt in range(1, self.max_transaction_attempts + 1):
            current, revision = await self._read_versioned_async(record_path, field)
            new_value = fn(current)
            if await self._compare_and_set_async(record_path, field, new_value, revision):
                if attempt > 1:
                    logger.debug(f"Transaction on {path} committed after {attempt} attempts")
                return new_value
            logger.debug(f"Transaction on {path} conflicted at revision {revision} (attempt {attempt})")

        raise TransactionExhausted(str(path), self.max_transaction_attempts)
