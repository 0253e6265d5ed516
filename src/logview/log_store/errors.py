"""Error kinds reported by the log store."""


class LogStoreError(Exception):
    """Base class for every failure a store operation can report."""

    def __init__(self, message: str, *, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation


class TransportError(LogStoreError):
    """Network-level failure: connection refused, timeout, protocol error."""


class HTTPStatusError(TransportError):
    """The service answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int, operation: str = "") -> None:
        super().__init__(message, operation=operation)
        self.status_code = status_code


class UnexpectedResponseShape(LogStoreError):
    """Response body is not JSON or lacks a required field."""


class InvalidUpload(LogStoreError):
    """The object handed to upload cannot be sent as a file."""
