"""Integration layer repositories package.

Contains the DocumentStore implementations.
These implement the abstract interface defined in domain/repositories/.
"""

from .in_memory_document_store import InMemoryDocumentStore
from .motor_document_store import MotorDocumentStore

__all__ = [
    "InMemoryDocumentStore",
    "MotorDocumentStore",
]
