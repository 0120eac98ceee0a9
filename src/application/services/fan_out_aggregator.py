"""Fan-out aggregator: resolves a parent Record's reference set into its child Records."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Literal

from domain.exceptions import AggregationError, InvalidReferenceSet, NotFound
from domain.models import DocumentPath, Record
from domain.repositories import DocumentStore
from observability import fanout_width

logger = logging.getLogger(__name__)

MissingChildPolicy = Literal["fail", "skip"]


@dataclass(frozen=True)
class AggregatedChild:
    """One joined child: the reference-set key it was listed under and its Record."""

    key: str
    record: Record

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, **self.record.to_dict()}


class FanOutAggregator:
    """Reads every child referenced by a parent Record concurrently and joins them.

    The reference set is a field of the parent holding either a mapping of
    opaque key to reference id, or a list of reference ids (keyed by index).
    Each reference id names a Record under ``child_collection``.

    Results keep the reference set's iteration order, whatever order the
    child reads complete in. With the default ``"fail"`` policy any child
    read failure fails the whole aggregation; ``"skip"`` leaves dangling
    references (missing children) out instead, other failures still fail.
    """

    def __init__(
        self,
        store: DocumentStore,
        reference_field: str,
        child_collection: DocumentPath | str,
        missing_child_policy: MissingChildPolicy = "fail",
    ):
        self._store = store
        self._reference_field = reference_field
        self._child_collection = DocumentPath.parse(child_collection)
        self._missing_child_policy = missing_child_policy

    async def aggregate_async(self, parent_path: DocumentPath | str) -> list[AggregatedChild]:
        """Join the children of the Record at ``parent_path``.

        Raises:
            NotFound: when the parent Record does not exist
            InvalidReferenceSet: when the reference field has an unusable shape
            AggregationError: wrapping the first child read that failed
        """
        parent = await self._store.read_async(parent_path)
        references = self._reference_set(parent)
        fanout_width.record(len(references))
        logger.debug(f"Fanning out {len(references)} reads for {parent.path}")

        # Fails on the first child error; the other reads are left to finish and their results dropped.
        children = await asyncio.gather(*(self._read_child_async(key, reference) for key, reference in references))
        return [child for child in children if child is not None]

    def _reference_set(self, parent: Record) -> list[tuple[str, str]]:
        value = parent.get(self._reference_field)
        if value is None:
            return []
        if isinstance(value, dict):
            return [(str(key), str(reference)) for key, reference in value.items()]
        if isinstance(value, list):
            return [(str(index), str(reference)) for index, reference in enumerate(value)]
        raise InvalidReferenceSet(str(parent.path), self._reference_field)

    async def _read_child_async(self, key: str, reference: str) -> AggregatedChild | None:
        child_path = f"{self._child_collection}/{reference}"
        try:
            record = await self._store.read_async(self._child_collection.child(reference))
        except NotFound as e:
            if self._missing_child_policy == "skip":
                logger.warning(f"Skipping dangling reference '{key}' -> {child_path}")
                return None
            raise AggregationError(key, child_path, e) from e
        except Exception as e:
            raise AggregationError(key, child_path, e) from e
        return AggregatedChild(key=key, record=record)
