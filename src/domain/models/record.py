"""Record snapshot value object."""

import copy
from dataclasses import dataclass, field
from typing import Any

from domain.models.paths import DocumentPath


@dataclass(frozen=True)
class Record:
    """A path-addressed mapping of field name to value.

    Values are strings, numbers or nested mappings. A Record handed out by a
    store is a snapshot: mutating ``fields`` never touches stored data.
    """

    path: DocumentPath
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, path: "DocumentPath | str", fields: dict[str, Any] | None = None) -> "Record":
        return cls(path=DocumentPath.parse(path), fields=copy.deepcopy(fields or {}))

    @property
    def id(self) -> str:
        return self.path.key

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Serialize fields with the Record's own id attached."""
        return {"id": self.id, **copy.deepcopy(self.fields)}
