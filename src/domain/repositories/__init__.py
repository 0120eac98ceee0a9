"""Domain repositories package.

Contains the abstract document store the handlers depend on.
Implementations are in src/integration/repositories/.
"""

from .document_store import DEFAULT_MAX_TRANSACTION_ATTEMPTS, DocumentStore

__all__: list[str] = [
    "DEFAULT_MAX_TRANSACTION_ATTEMPTS",
    "DocumentStore",
]
