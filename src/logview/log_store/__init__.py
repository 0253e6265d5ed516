"""
Log store.

Client-side state for the log viewer: uploads, filtered fetches, module
names, and server-side clearing against the log service HTTP API.
"""

from logview.log_store.errors import (
    HTTPStatusError,
    InvalidUpload,
    LogStoreError,
    TransportError,
    UnexpectedResponseShape,
)
from logview.log_store.result import StoreResult
from logview.log_store.store import LogStore

__all__ = [
    "HTTPStatusError",
    "InvalidUpload",
    "LogStore",
    "LogStoreError",
    "StoreResult",
    "TransportError",
    "UnexpectedResponseShape",
]
