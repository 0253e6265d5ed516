"""Log store: client-side state for the log viewer, backed by the log service HTTP API."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, BinaryIO, Mapping, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from logview.config import Settings, get_settings
from logview.log_store.errors import (
    HTTPStatusError,
    InvalidUpload,
    LogStoreError,
    TransportError,
    UnexpectedResponseShape,
)
from logview.log_store.result import StoreResult
from logview.models import (
    DEFAULT_FILTERS,
    ClearReceipt,
    LogsPayload,
    ServiceStatus,
    UploadReceipt,
    clean_filters,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Filename used when the upload has no name of its own
DEFAULT_UPLOAD_NAME = "upload.log"

UploadSource = str | Path | bytes | bytearray | tuple[str, bytes] | BinaryIO


def _as_bytes(content: Any, source: str) -> bytes:
    if isinstance(content, str):
        content = content.encode("utf-8")
    if not isinstance(content, (bytes, bytearray)):
        raise InvalidUpload(f"{source} content must be bytes or str", operation="upload")
    return bytes(content)


def _upload_field(file: Any) -> tuple[str, bytes]:
    """Turn the upload argument into a (filename, content) multipart field."""
    if isinstance(file, (str, Path)):
        path = Path(file)
        if not path.is_file():
            raise InvalidUpload(f"No such file: {path}", operation="upload")
        try:
            return path.name, path.read_bytes()
        except OSError as e:
            raise InvalidUpload(f"Cannot read {path}: {e}", operation="upload") from e
    if isinstance(file, (bytes, bytearray)):
        return DEFAULT_UPLOAD_NAME, bytes(file)
    if isinstance(file, tuple) and len(file) == 2:
        name, content = file
        return str(name), _as_bytes(content, "Upload tuple")
    if hasattr(file, "read"):
        try:
            content = file.read()
        except (OSError, ValueError) as e:
            raise InvalidUpload(f"Cannot read upload: {e}", operation="upload") from e
        name = Path(getattr(file, "name", "") or DEFAULT_UPLOAD_NAME).name
        return name, _as_bytes(content, "File object")
    raise InvalidUpload(f"Unsupported upload type: {type(file).__name__}", operation="upload")


class LogStore:
    """
    Holds the last fetched logs and the active filter set for one UI session.

    Create one per application session and close it when the session ends,
    either with `async with LogStore(...)` or an explicit `aclose()`. State
    changes only through the store's own operations:

    - logs_data: last fetch payload (None until the first successful fetch)
    - filters: accumulated query filters
    - unique_modules: Module names derived on demand from logs_data

    Network operations return a StoreResult; failures are logged first.
    Nothing guards against overlapping calls: a slow fetch may land after a
    newer one and overwrite logs_data.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None
        self.logs_data: LogsPayload | None = None
        self.filters: dict[str, str] = {}
        self.unique_modules: set[str] = set()

    @property
    def settings(self) -> Settings:
        return self._settings

    async def __aenter__(self) -> LogStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if the store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = self._settings.request_timeout_seconds
            if timeout is None:
                self._client = httpx.AsyncClient()
            else:
                self._client = httpx.AsyncClient(timeout=timeout)
        return self._client

    def _fail(self, error: LogStoreError, exc_info: bool = False) -> StoreResult[Any]:
        logger.warning(
            "Log store %s failed: %s",
            error.operation,
            error,
            exc_info=exc_info,
            extra={"operation": error.operation},
        )
        return StoreResult.failure(error)

    async def _request(
        self, operation: str, method: str, path: str, **kwargs: Any
    ) -> StoreResult[Any]:
        """Send one request; return the decoded JSON body or a typed error."""
        url = self._settings.endpoint(path)
        try:
            response = await self._get_client().request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return self._fail(
                HTTPStatusError(
                    f"{method} {url} returned {e.response.status_code}",
                    status_code=e.response.status_code,
                    operation=operation,
                )
            )
        except httpx.HTTPError as e:
            return self._fail(
                TransportError(f"{method} {url} failed: {e}", operation=operation),
                exc_info=True,
            )
        try:
            return StoreResult.success(response.json())
        except ValueError as e:
            return self._fail(
                UnexpectedResponseShape(
                    f"{method} {url} did not return JSON: {e}", operation=operation
                )
            )

    def _validate(self, operation: str, model: type[M], data: Any) -> StoreResult[M]:
        try:
            return StoreResult.success(model.model_validate(data))
        except ValidationError as e:
            return self._fail(
                UnexpectedResponseShape(
                    f"{model.__name__} expected, got: {e.errors()[0]['msg']}",
                    operation=operation,
                )
            )

    async def upload(self, file: UploadSource) -> StoreResult[UploadReceipt]:
        """
        Send a log file to the service as multipart field `file`.

        Depending on settings, stored logs are cleared first and the logs are
        re-fetched after a successful upload. Neither step changes the
        upload's own result. A failed upload leaves local state untouched.
        """
        try:
            field = _upload_field(file)
        except InvalidUpload as e:
            return self._fail(e)

        if self._settings.clear_before_upload:
            cleared = await self.clear_logs()
            if not cleared.ok:
                logger.warning("Uploading without clearing previous logs")

        sent = await self._request(
            "upload", "POST", self._settings.upload_path, files={"file": field}
        )
        if not sent.ok:
            return sent
        receipt = self._validate("upload", UploadReceipt, sent.value)
        if not receipt.ok:
            return receipt
        logger.info(
            "Log file uploaded",
            extra={"upload_name": field[0], "added": receipt.value.added},
        )

        if self._settings.refresh_after_upload:
            await self.fetch()
        return receipt

    async def fetch(self) -> StoreResult[LogsPayload]:
        """GET the logs for the active filters and replace logs_data with the payload."""
        received = await self._request(
            "fetch", "GET", self._settings.fetch_path, params=dict(self.filters)
        )
        if not received.ok:
            return received
        payload = self._validate("fetch", LogsPayload, received.value)
        if payload.ok:
            self.logs_data = payload.value
            logger.debug(
                "Fetched logs",
                extra={"count": len(payload.value.logs), "filters": dict(self.filters)},
            )
        return payload

    def derive_unique_modules(self) -> StoreResult[set[str]]:
        """Recompute unique_modules from the Module field of the current logs."""
        if self.logs_data is None:
            return self._fail(
                UnexpectedResponseShape(
                    "No logs fetched yet", operation="derive_unique_modules"
                )
            )
        self.unique_modules = {entry.Module for entry in self.logs_data.logs}
        return StoreResult.success(set(self.unique_modules))

    def module_counts(self) -> dict[str, int]:
        """Number of current entries per Module."""
        if self.logs_data is None:
            return {}
        return dict(Counter(entry.Module for entry in self.logs_data.logs))

    async def set_filters(self, partial: Mapping[str, Any]) -> StoreResult[LogsPayload]:
        """Merge non-empty values of `partial` into the filters, then fetch."""
        self.filters = {**self.filters, **clean_filters(dict(partial))}
        return await self.fetch()

    async def clear_filters(self) -> StoreResult[LogsPayload]:
        """Reset the filters to the default set, then fetch."""
        self.filters = dict(DEFAULT_FILTERS)
        return await self.fetch()

    async def clear_logs(self) -> StoreResult[ClearReceipt]:
        """Ask the service to drop all stored logs. Local logs_data is kept."""
        sent = await self._request("clear_logs", "POST", self._settings.clear_path)
        if not sent.ok:
            return sent
        return self._validate("clear_logs", ClearReceipt, sent.value)

    async def status(self) -> StoreResult[ServiceStatus]:
        """Return the service's overall stats and counts."""
        received = await self._request("status", "GET", self._settings.status_path)
        if not received.ok:
            return received
        return self._validate("status", ServiceStatus, received.value)
