"""Custom exceptions for snapvault"""


class SnapvaultException(Exception):
    """Base exception for all snapvault business errors

    All custom exceptions should inherit from this class.
    The global exception handler will catch this and return ErrorResponse.

    Attributes:
        message: Human-readable error message
        code: Error code for client-side error handling
        status_code: HTTP status used when the error reaches the API layer
    """

    status_code = 500

    def __init__(self, message: str, code: str):
        """Initialize snapvault exception

        Args:
            message: Human-readable error message
            code: Error code (e.g., "NOT_FOUND", "INTERNAL_ERROR")
        """
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(SnapvaultException):
    """Resource not found error

    Examples:
        - Image id does not exist
        - Image id is not a valid store identifier
    """

    status_code = 404

    def __init__(self, message: str):
        super().__init__(message, "NOT_FOUND")


class InternalError(SnapvaultException):
    """Internal server error (unexpected errors)

    The message of this error is returned to API clients, so it must stay
    generic. Never pass the text of the underlying exception.
    """

    def __init__(self, message: str):
        super().__init__(message, "INTERNAL_ERROR")


class ConfigurationError(SnapvaultException):
    """Missing or invalid configuration detected at startup

    Examples:
        - [database] url not set
        - Reminder job without a cron expression
    """

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")


# ==================== Runtime Layer Exceptions ====================


class RuntimeException(SnapvaultException):
    """Base exception for all runtime layer errors

    Runtime layer exceptions are raised by the connection supervisor,
    the ingestion pipeline and the image store.
    """

    def __init__(self, message: str, code: str):
        super().__init__(message, code)


class TransientConnectionError(RuntimeException):
    """Session closed for a recoverable reason

    Raised as the fatal outcome only when rate-limit retries are exhausted.
    """

    def __init__(self, message: str):
        super().__init__(message, "TRANSIENT_CONNECTION_ERROR")


class SessionExpiredError(RuntimeException):
    """Platform logged the session out; manual re-authentication required"""

    def __init__(self, message: str):
        super().__init__(message, "SESSION_EXPIRED")


class MediaRetrievalError(RuntimeException):
    """Downloading or decrypting a media payload failed"""

    def __init__(self, message: str):
        super().__init__(message, "MEDIA_RETRIEVAL_ERROR")


class DuplicateContentError(RuntimeException):
    """An image for this message id is already stored"""

    def __init__(self, message: str, message_id: str):
        super().__init__(message, "DUPLICATE_CONTENT")
        self.message_id = message_id


class PersistenceError(RuntimeException):
    """Store failure other than a duplicate key"""

    def __init__(self, message: str):
        super().__init__(message, "PERSISTENCE_ERROR")


class RuntimeAlreadyStartedError(RuntimeException):
    """A session is still live

    Examples:
        - Calling ConnectionSupervisor.start() twice without a close in between
        - Starting a supervisor that already reached a terminal state
    """

    def __init__(self, message: str):
        super().__init__(message, "RUNTIME_ALREADY_STARTED")


class BridgeTimeoutError(RuntimeException):
    """The bridge did not answer a command in time"""

    def __init__(self, message: str):
        super().__init__(message, "BRIDGE_TIMEOUT")
