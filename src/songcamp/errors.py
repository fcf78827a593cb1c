from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested comment or record is not found."""

    def __init__(self, message: str = "Comment not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class AuthorizationError(UserError):
    """Raised when someone other than the author tries to edit a comment.

    The view is expected to hide the edit action from non-authors, so this
    error signals a caller bug rather than a recoverable condition.
    """

    def __init__(self, message: str = "Only the author can edit this comment") -> None:
        super().__init__(message)


class WriteError(UserError):
    """Raised when a remote create, update or reaction toggle fails."""

    def __init__(self, message: str = "Failed to save, please try again.") -> None:
        super().__init__(message)


class EngineError(Exception):
    """Base class for failures that are logged but never shown to the user."""


class FetchError(EngineError):
    """Raised when loading comments from the remote store fails."""


class NotificationDeliveryError(EngineError):
    """Raised when notifications produced by a fan-out could not be written."""
