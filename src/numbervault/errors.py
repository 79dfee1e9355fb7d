from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class ConflictError(UserError):
    """Raised when a write collides with a unique key (email, serial).

    Safe to retry, possibly with corrected input.
    """


class DeliveryError(UserError):
    """Raised when an outbound message could not be delivered.

    Whatever was persisted before the delivery attempt stays persisted.
    """

    def __init__(self, message: str = "Message could not be delivered") -> None:
        super().__init__(message)
