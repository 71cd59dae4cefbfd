"""Custom exceptions for Inbox Notifier."""


class InboxNotifierError(Exception):
    """Base exception for all Inbox Notifier errors."""


class ConfigurationError(InboxNotifierError):
    """Exception raised for configuration related errors."""


class UnauthenticatedError(InboxNotifierError):
    """Raised when no valid Gmail credential is held."""


class AuthExpiredError(UnauthenticatedError):
    """Raised when Gmail rejects the credential as invalid or expired."""


class TransientFetchError(InboxNotifierError):
    """Raised for Gmail API or network failures other than authorization."""


class InvalidArgumentError(InboxNotifierError):
    """Raised for invalid control input such as a non-positive interval."""


class NotificationDeliveryError(InboxNotifierError):
    """Raised when an outbound notification could not be delivered."""
