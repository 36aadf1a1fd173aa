"""Domain exception hierarchy for the trade notifier."""

from __future__ import annotations


class NotifierError(RuntimeError):
    """Base class for all domain-level notifier errors."""


class ConfigValidationError(NotifierError):
    """Raised when configuration cannot be validated safely."""


class MessengerConfigurationError(NotifierError):
    """Raised when no usable messenger can be built for a service."""


class MessengerSendError(NotifierError):
    """Raised by a messenger when a message could not be delivered."""


class MalformedEventError(NotifierError):
    """Raised when an event payload does not match the expected shape."""


class NotificationServiceError(NotifierError):
    """Raised when the notification service cannot change lifecycle state."""
