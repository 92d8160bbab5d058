"""Domain-specific exceptions.

These exceptions represent attestation rule violations and flow errors.
They are caught and mapped to user-facing replies by the adapters.
"""


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PayloadDecodeError(DomainException):
    """Raised when a deep-link start payload cannot be decoded."""

    pass


class MissingIdentityError(DomainException):
    """Raised when the chat user has no username or id."""

    pass


class InvalidSessionError(DomainException):
    """Raised when the session is absent or its token prefix does not match."""

    pass


class WalletAddressNotFoundError(DomainException):
    """Raised when no verified wallet address is bound to the device session."""

    pass


class AttestationIssuanceError(DomainException):
    """Raised when the issuer fails to post an attestation profile."""

    pass


class NotificationError(DomainException):
    """Raised when a paired device cannot be messaged."""

    pass


class InvalidStateTransitionError(DomainException):
    """Raised when an invalid order state transition is attempted."""

    pass


class ResourceNotFoundError(DomainException):
    """Raised when a requested resource does not exist."""

    pass
