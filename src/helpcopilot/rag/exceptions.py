"""Exceptions raised by the retrieval layer."""

from helpcopilot.exceptions import HelpCopilotError


class RagError(HelpCopilotError):
    """Base exception for embedding store, similarity and vector index errors."""

    pass


class DimensionMismatchError(RagError):
    """Raised when two embedding vectors of different length are compared."""

    def __init__(self, expected: int, actual: int, item_id: str | None = None):
        target = f" for '{item_id}'" if item_id else ""
        super().__init__(
            f"Embedding dimension mismatch{target}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.item_id = item_id


class VectorIndexFailedError(RagError):
    """Raised when a remote vector index or file batch ends in the failed state."""

    pass


class VectorIndexTimeoutError(RagError):
    """Raised when polling a remote vector index exceeds its time ceiling."""

    def __init__(self, name: str, timeout: float):
        super().__init__(
            f"Vector index '{name}' did not complete within {timeout:.0f} seconds"
        )
        self.name = name
        self.timeout = timeout
