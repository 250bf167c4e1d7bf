class RelayError(Exception):
    """Base exception for relay errors."""
    code = "INTERNAL"


class SubscriptionClosed(RelayError):
    """Raised by a subscriber queue once it has been closed."""
    code = "SUBSCRIPTION_CLOSED"


class SessionClosedError(RelayError):
    """Raised when subscribing on a session that already closed."""
    code = "SESSION_CLOSED"


class DuplicateOperationError(RelayError):
    """Raised when an operation id is already streaming on the session."""
    code = "DUPLICATE_OPERATION"


class CommandValidationError(RelayError):
    """Raised when a command's input fails validation."""
    code = "BAD_USER_INPUT"


class UnknownOperationError(RelayError):
    """Raised when a subscribe frame names no known root field."""
    code = "UNKNOWN_OPERATION"
