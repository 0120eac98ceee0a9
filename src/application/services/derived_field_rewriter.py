"""Derived-field rewriter.

Rewrites a Record's source field into its derived form once per genuine
change. The store re-delivers the rewriter's own write as a new Update
event; that event carries identical before/after source text and is
absorbed without writing, which is what ends the cycle.

Update rewrites also store a fingerprint of the before/after transition they
handled, so a redelivered copy of an already handled event is absorbed too.
"""

import hashlib
import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from domain.exceptions import NotFound
from domain.models import ChangeEvent, ChangeKind, Record
from domain.repositories import DocumentStore
from observability import rewrites_applied, rewrites_skipped

logger = logging.getLogger(__name__)

PIZZA_WORD = re.compile(r"\bpizza\b", re.IGNORECASE)


def add_pizzazz(text: str) -> str:
    """Replace every whole word "pizza" with 🍕."""
    return PIZZA_WORD.sub("🍕", text)


def utc_now() -> datetime:
    return datetime.now(UTC)


def transition_fingerprint(before: Any, after: Any) -> str:
    digest = hashlib.sha256(f"{before!r}\x00{after!r}".encode("utf-8"))
    return digest.hexdigest()[:16]


class DerivedFieldRewriter:
    """Keeps ``source_field`` rewritten through ``transform`` on create and update."""

    def __init__(
        self,
        store: DocumentStore,
        source_field: str = "text",
        transform: Callable[[str], str] = add_pizzazz,
        timestamp_field: str = "updated_at",
        marker_field: str = "rewrite_of",
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._source_field = source_field
        self._transform = transform
        self._timestamp_field = timestamp_field
        self._marker_field = marker_field
        self._clock = clock

    async def on_created_async(self, event: ChangeEvent) -> Record | None:
        """Write the derived source field of a freshly created Record.

        Returns:
            The Record as written, or None when it has no source field
        """
        if event.kind is not ChangeKind.CREATE:
            raise ValueError(f"on_created_async expects a create event, got {event.kind.value}")

        source = event.after.get(self._source_field)
        if source is None:
            logger.warning(f"Created record {event.path} has no '{self._source_field}' field, nothing to rewrite")
            return None

        fields = {self._source_field: self._transform(str(source))}
        await self._store.write_async(event.path, fields)
        rewrites_applied.add(1, {"kind": "create"})
        logger.info(f"✅ Rewrote '{self._source_field}' of created record {event.path}")
        return Record.of(event.path, {**event.after.fields, **fields})

    async def on_updated_async(self, event: ChangeEvent) -> dict[str, Any] | None:
        """Rewrite the source field when it changed between before and after.

        Returns:
            The fields written, or None when the update was absorbed
        """
        if event.kind is not ChangeKind.UPDATE:
            raise ValueError(f"on_updated_async expects an update event, got {event.kind.value}")

        before = event.before.get(self._source_field)
        after = event.after.get(self._source_field)
        if before == after:
            rewrites_skipped.add(1, {"reason": "unchanged"})
            logger.debug(f"'{self._source_field}' of {event.path} did not change, skipping rewrite")
            return None
        if after is None:
            rewrites_skipped.add(1, {"reason": "removed"})
            logger.warning(f"'{self._source_field}' was removed from {event.path}, nothing to rewrite")
            return None

        try:
            current = await self._store.read_async(event.path)
        except NotFound:
            rewrites_skipped.add(1, {"reason": "deleted"})
            logger.warning(f"{event.path} was deleted before its update was handled, nothing to rewrite")
            return None

        derived = self._transform(str(after))
        fingerprint = transition_fingerprint(before, after)
        if current.get(self._marker_field) == fingerprint and current.get(self._source_field) == derived:
            rewrites_skipped.add(1, {"reason": "redelivered"})
            logger.debug(f"Update of {event.path} was already rewritten, skipping redelivered event")
            return None

        fields = {
            self._source_field: derived,
            self._timestamp_field: self._clock().isoformat(),
            self._marker_field: fingerprint,
        }
        await self._store.write_async(event.path, fields)
        rewrites_applied.add(1, {"kind": "update"})
        logger.info(f"✅ Rewrote '{self._source_field}' of updated record {event.path}")
        return fields
