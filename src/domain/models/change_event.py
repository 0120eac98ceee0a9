"""Change notifications delivered by the document store."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from domain.exceptions import InvalidChangeEvent
from domain.models.paths import DocumentPath
from domain.models.record import Record


class ChangeKind(str, Enum):
    """Kind of mutation a ChangeEvent reports."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """A single Create/Update/Delete mutation with its before/after snapshots.

    Create carries only ``after``, Delete only ``before``, Update both.
    ``params`` holds the wildcard values bound by the trigger pattern that
    matched the event; it is empty until a registry dispatches the event.
    """

    kind: ChangeKind
    path: DocumentPath
    before: Record | None = None
    after: Record | None = None
    params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        has_before = self.before is not None
        has_after = self.after is not None
        expected = {
            ChangeKind.CREATE: (False, True),
            ChangeKind.UPDATE: (True, True),
            ChangeKind.DELETE: (True, False),
        }[self.kind]
        if (has_before, has_after) != expected:
            raise InvalidChangeEvent(f"{self.kind.value} event for '{self.path}' has before={has_before}, after={has_after}")

    @classmethod
    def created(cls, after: Record) -> "ChangeEvent":
        return cls(kind=ChangeKind.CREATE, path=after.path, after=after)

    @classmethod
    def updated(cls, before: Record, after: Record) -> "ChangeEvent":
        return cls(kind=ChangeKind.UPDATE, path=after.path, before=before, after=after)

    @classmethod
    def deleted(cls, before: Record) -> "ChangeEvent":
        return cls(kind=ChangeKind.DELETE, path=before.path, before=before)

    def with_params(self, params: dict[str, str]) -> "ChangeEvent":
        return replace(self, params=dict(params))

    def changed_fields(self) -> dict[str, tuple[Any, Any]]:
        """Fields whose value differs between before and after, as (old, new) pairs."""
        old = self.before.fields if self.before else {}
        new = self.after.fields if self.after else {}
        return {name: (old.get(name), new.get(name)) for name in sorted(set(old) | set(new)) if old.get(name) != new.get(name)}
