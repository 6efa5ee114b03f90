class QueueConfigurationError(RuntimeError):
    """Raised when the queue backend cannot be selected from configuration."""


class UnknownTypeError(LookupError):
    """Raised when a string identifier has no registered class."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"No type registered for identifier '{identifier}'")


class JobRehydrationError(RuntimeError):
    """
    Raised when a queued payload references a listener, event or job type
    the running worker does not know about. Usually means producer and
    worker are running different code versions.
    """

    def __init__(self, identifier: str, message: str = None):
        self.identifier = identifier
        super().__init__(message or f"Cannot rehydrate job: unknown type '{identifier}'")


class NotBootedError(RuntimeError):
    """Raised when the event dispatcher is requested before boot()."""


class DispatcherError(RuntimeError):
    """Raised when a listener cannot be dispatched as declared."""
