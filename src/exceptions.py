"""Application exception hierarchy.

All custom exceptions inherit from VectorServiceError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "SVS-1000"
    CONFIGURATION_ERROR = "SVS-1001"
    VALIDATION_ERROR = "SVS-1002"
    NOT_INITIALIZED = "SVS-1003"

    # Record errors (2xxx)
    RECORD_NOT_FOUND = "SVS-2000"
    DIMENSION_MISMATCH = "SVS-2001"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "SVS-3000"
    EMBEDDING_MODEL_LOAD_ERROR = "SVS-3001"
    EMBEDDING_OUTPUT_ERROR = "SVS-3002"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "SVS-4000"
    COLLECTION_NOT_FOUND = "SVS-4001"
    COLLECTION_EXISTS = "SVS-4002"


class VectorServiceError(Exception):
    """Base exception for all vector service errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorServiceError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(VectorServiceError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class DimensionMismatchError(ValidationError):
    """Vector length differs from the collection dimension."""

    def __init__(
        self,
        expected: int,
        actual: int,
        context: str = "Embedding",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{context} dimension mismatch. Expected {expected}, got {actual}",
            ErrorCode.DIMENSION_MISMATCH,
            {"expected": expected, "actual": actual, **(details or {})},
        )


class NotInitializedError(VectorServiceError):
    """Operation attempted before startup completed."""

    def __init__(
        self,
        message: str = "Service not initialized. Call initialize() first.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.NOT_INITIALIZED, details)


class NotFoundError(VectorServiceError):
    """Requested record does not exist."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RECORD_NOT_FOUND, details)


class UpstreamError(VectorServiceError):
    """A collaborator (embedding generator or vector store) failed."""


class EmbeddingError(UpstreamError):
    """Embedding generator error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(UpstreamError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
