"""
Repository-related domain exceptions.

These exceptions keep SQLAlchemy errors out of the application layer.

Exception Hierarchy:
    RepositoryError (base)
    ├── EntityNotFoundError    - Entity not found by ID
    └── StorageFailureError    - Write-back of a conversation failed
"""

from typing import Any, Optional


class RepositoryError(Exception):
    """
    Base exception for all repository-related errors.

    Attributes:
        message: Human-readable error description
        original_error: The underlying exception (if any)
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class EntityNotFoundError(RepositoryError):
    """Raised when an entity cannot be found by its identifier."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        message: Optional[str] = None,
    ) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        msg = message or f"{entity_type} with ID '{entity_id}' not found"
        super().__init__(msg, details={"entity_type": entity_type, "entity_id": entity_id})


class StorageFailureError(RepositoryError):
    """Raised when a session's message list could not be written back."""

    def __init__(
        self,
        session_id: str,
        message: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.session_id = session_id
        msg = message or f"Failed to store messages for session '{session_id}'"
        super().__init__(msg, original_error=original_error, details={"session_id": session_id})
