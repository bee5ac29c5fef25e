"""Error types shared across the AirSS model layer."""


class AirSSError(Exception):
    """Base class for AirSS errors."""


class DuplicateError(AirSSError):
    """Raised when an insert violates a unique index (item url, feed url)."""


class InvalidItemError(AirSSError):
    """Raised when an item holds values the store cannot take."""


class NotFoundError(AirSSError):
    """Raised when a keyed record does not exist."""


class FeedParseError(AirSSError):
    """Raised when a feed cannot be fetched or parsed."""


class ModelNotReadyError(AirSSError):
    """Raised when an operation runs without an initialized model."""
