"""Domain value objects for the document store handlers.

All value objects use @dataclass(frozen=True) for immutability.
"""

from .change_event import ChangeEvent, ChangeKind
from .paths import DocumentPath, PathPattern
from .record import Record

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "DocumentPath",
    "PathPattern",
    "Record",
]
