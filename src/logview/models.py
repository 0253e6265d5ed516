"""Response and state models shared by the log store and the log service."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Filter set that clear_filters resets to
DEFAULT_FILTERS: dict[str, str] = {"level": ""}


class LogEntry(BaseModel):
    """One log record as served by the backend; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    Module: str = ""
    Level: str = ""
    Message: str = ""
    Caller: str = ""
    Timestamp: str | None = None

    @field_validator("Module", mode="before")
    @classmethod
    def _null_module_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ParseStats(BaseModel):
    """Per-upload or per-query counters computed by the backend."""

    model_config = ConfigDict(extra="allow")

    TotalLines: int = 0
    SuccessLines: int = 0
    ErrorLines: int = 0
    ByLevel: dict[str, int] = Field(default_factory=dict)
    ByModule: dict[str, int] = Field(default_factory=dict)
    HasHTTPRequests: bool = False

    @field_validator("ByLevel", "ByModule", mode="before")
    @classmethod
    def _null_map_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class LogsPayload(BaseModel):
    """Body of a fetch response. `logs` is required; everything else is optional."""

    model_config = ConfigDict(extra="allow")

    logs: list[LogEntry]
    status: str = ""
    message: str = ""
    count: int | None = None
    total: int | None = None
    stats: ParseStats | None = None
    original_stats: ParseStats | None = None
    filters: dict[str, str] = Field(default_factory=dict)

    @field_validator("logs", mode="before")
    @classmethod
    def _null_logs_is_empty(cls, v: Any) -> Any:
        # The service encodes an empty filtered result as null
        return [] if v is None else v


class UploadReceipt(BaseModel):
    """Body of an upload response."""

    model_config = ConfigDict(extra="allow")

    status: str = ""
    message: str = ""
    added: int = 0
    errors: int = 0
    total: int = 0


class ClearReceipt(BaseModel):
    """Body of a clear response."""

    model_config = ConfigDict(extra="allow")

    status: str = ""
    message: str = ""


class ServiceStatus(BaseModel):
    """Body of a status response."""

    model_config = ConfigDict(extra="allow")

    status: str = ""
    message: str = ""
    stats: ParseStats | None = None
    logs_count: int = 0
    errors_count: int = 0


def clean_filters(partial: dict[str, Any]) -> dict[str, str]:
    """Drop None and empty-string values; stringify the rest for use as query params."""
    return {
        str(k): str(v)
        for k, v in partial.items()
        if v is not None and v != ""
    }
