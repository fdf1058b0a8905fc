"""
Error types shared by the retrieval and normalization layers.
"""

from typing import Any, List, Optional


class CharforgeError(Exception):
    """Base exception for all charforge errors."""
    pass


class EmbeddingUnavailable(CharforgeError):
    """
    No embedding could be produced.

    Raised when:
    - every candidate embedding model rejected the request
      (non-2xx, network error or timeout)
    - a computed vector is degenerate (zero norm)
    - a vector does not match the dimension of the vectors it is compared or stored with
    """

    def __init__(self, message: str, attempted_models: Optional[List[str]] = None):
        super().__init__(message)
        self.attempted_models = list(attempted_models or [])


class StoreNotFound(CharforgeError):
    """Raised when a vector store snapshot is requested before any ingestion."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ExtractionFailed(CharforgeError):
    """
    Strict structured extraction of a model reply failed.

    Internal to the response normalizer, which always absorbs it
    by switching to heuristic extraction.
    """

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class ChatUnavailable(CharforgeError):
    """Raised when the chat completion endpoint fails or returns no content."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model
