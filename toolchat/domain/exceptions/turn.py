"""
Conversation turn exceptions.

TurnConfigurationError covers everything rejected before any server
connection is attempted. ModelStepError is fatal to a running turn.
"""

from toolchat.domain.shared_kernel import DomainException


class TurnConfigurationError(DomainException):
    """A turn request that cannot be started as given."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationRequiredError(TurnConfigurationError):
    """No owner id was supplied in the body or the x-user-id header."""

    status_code = 401

    def __init__(self, message: str = "User ID is required") -> None:
        super().__init__(message)


class UnknownModelError(TurnConfigurationError):
    """The selected model alias is not in the catalog."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown model '{model_id}'")


class SessionOwnershipError(TurnConfigurationError):
    """The session exists but belongs to a different owner."""

    status_code = 403

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Chat '{session_id}' belongs to another user")


class ModelStepError(DomainException):
    """The model capability failed mid-step (provider error, malformed stream, timeout)."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class TurnCancelledError(DomainException):
    """The request cancellation token fired while the turn was suspended."""
