"""
Exceptions raised by the indexing and query engine.
"""
from typing import Optional


class VaultRAGError(Exception):
    """Base exception for all vaultrag errors."""
    pass


class NoModelConfiguredError(VaultRAGError):
    """
    An operation that needs an embedding model was called while none is active.

    Raised instead of letting a missing model surface as an AttributeError
    somewhere downstream. Never retried.
    """

    def __init__(self, message: str = "Embedding model is not set"):
        super().__init__(message)


class ModelInitializationError(VaultRAGError):
    """
    The configured embedding model could not be constructed.

    Raised when:
    - No provider is configured for a non-blank model id
    - The provider is unsupported
    - A required API key or base URL is missing
    - The backend library fails while loading the model
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model_id = model_id


class StoreOperationError(VaultRAGError):
    """
    Error reading from or writing to the vector store.

    Raised when:
    - The database rejects a query or write
    - The store has been released by cleanup()
    """
    pass


class DimensionMismatchError(StoreOperationError):
    """A vector's length does not match the embedding model's dimension."""

    def __init__(self, expected: int, actual: int, model: str):
        super().__init__(
            f"Embedding dimension mismatch for model '{model}': "
            f"expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.model = model
