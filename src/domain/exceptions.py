"""Error taxonomy for document store operations and the handlers built on them."""


class DocumentStoreError(Exception):
    """Base class for every error surfaced by the store and the core handlers."""


class InvalidPathError(DocumentStoreError):
    """Raised when a path or path pattern cannot be parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path '{path}': {reason}")
        self.path = path
        self.reason = reason


class NotFound(DocumentStoreError):
    """Raised when a Record does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}")
        self.path = path


class WriteError(DocumentStoreError):
    """Raised when a write could not be applied. Transient, eligible for redelivery."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Write to '{path}' failed: {reason}")
        self.path = path
        self.reason = reason


class TransactionExhausted(DocumentStoreError):
    """Raised when an optimistic transaction kept conflicting past its retry cap."""

    def __init__(self, path: str, attempts: int):
        super().__init__(f"Transaction on '{path}' gave up after {attempts} conflicting attempts")
        self.path = path
        self.attempts = attempts


class AggregationError(DocumentStoreError):
    """Raised by a fan-out read when one child read fails. Wraps the first failure."""

    def __init__(self, child_key: str, child_path: str, cause: Exception):
        super().__init__(f"Aggregation failed on child '{child_key}' ({child_path}): {cause}")
        self.child_key = child_key
        self.child_path = child_path
        self.cause = cause


class DeliveryError(DocumentStoreError):
    """Raised by a notification channel. Non-fatal for the caller."""

    def __init__(self, topic: str, reason: str):
        super().__init__(f"Delivery to topic '{topic}' failed: {reason}")
        self.topic = topic
        self.reason = reason


class InvalidChangeEvent(DocumentStoreError):
    """Raised when a ChangeEvent's snapshots contradict its kind."""


class InvalidReferenceSet(DocumentStoreError):
    """Raised when a parent Record's reference field is neither a mapping nor a list."""

    def __init__(self, path: str, field: str):
        super().__init__(f"Field '{field}' of '{path}' is not a reference set")
        self.path = path
        self.field = field


class ReadError(DocumentStoreError):
    """Raised when a read could not be served by the store. Transient, eligible for redelivery."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Read of '{path}' failed: {reason}")
        self.path = path
        self.reason = reason
