"""
In-memory log service for local development and integration tests.

Accepts Terraform-style JSON log uploads, serves them back with level,
module, time-range, text and limit filters, and clears them on request.
State lives in the process and resets with reset_service_state().
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from logview.models import ParseStats

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]

# Accepted since/until formats, tried in order; naive values are read as UTC
TIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%H:%M:%S",
    "%H:%M",
]

# Sorts before every real timestamp
_NO_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)

NO_DATA = {"status": "no_data", "message": "No log data"}

app = FastAPI(title="Log Service", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS", "DELETE"],
    allow_headers=["Content-Type"],
)


class StoredLog(BaseModel):
    """One parsed log line."""

    Level: str = ""
    Message: str = ""
    Module: str = ""
    Caller: str = ""
    Timestamp: datetime | None = None
    TfReqID: str = ""
    TfRPC: str = ""
    TfProtoVersion: str = ""
    TfProviderAddr: str = ""
    EntryType: str = "general"
    RawJSON: str = ""


class ParseError(BaseModel):
    LineNumber: int
    Line: str
    Error: str


class _ServiceState:
    def __init__(self) -> None:
        self.loaded = False
        self.logs: list[StoredLog] = []
        self.errors: list[ParseError] = []
        self.stats = ParseStats()


_state = _ServiceState()


def reset_service_state() -> None:
    """Drop all stored logs (clear endpoints and tests)."""
    global _state
    _state = _ServiceState()


def _get_string(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def classify_entry(entry: StoredLog) -> str:
    """Rough origin of a log line: HTTP request, gRPC call, provider or other."""
    if entry.TfReqID:
        return "http_request"
    if "GRPCProvider" in entry.Message or entry.TfRPC:
        return "grpc_request"
    if "provider" in entry.Module:
        return "provider"
    return "general"


def parse_line(line: str) -> StoredLog:
    """Parse one JSON log line; raises ValueError when it is not a JSON object."""
    data = json.loads(line)
    if not isinstance(data, dict):
        raise ValueError("log line is not a JSON object")
    entry = StoredLog(
        Level=_get_string(data, "@level"),
        Message=_get_string(data, "@message"),
        Module=_get_string(data, "@module"),
        Caller=_get_string(data, "@caller"),
        Timestamp=_parse_timestamp(_get_string(data, "@timestamp")),
        TfReqID=_get_string(data, "tf_req_id"),
        TfRPC=_get_string(data, "tf_rpc"),
        TfProtoVersion=_get_string(data, "tf_proto_version"),
        TfProviderAddr=_get_string(data, "tf_provider_addr"),
        RawJSON=line,
    )
    entry.EntryType = classify_entry(entry)
    return entry


def _split_body(body: bytes) -> list[str]:
    """JSON array bodies become one line per element; anything else splits on newlines."""
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except ValueError:
        return text.splitlines()
    if isinstance(data, list):
        return [json.dumps(item) for item in data]
    return text.splitlines()


def parse_stream(body: bytes) -> tuple[list[StoredLog], list[ParseError], ParseStats]:
    """Parse an uploaded body into entries, per-line errors and stats."""
    logs: list[StoredLog] = []
    errors: list[ParseError] = []
    stats = ParseStats()
    for number, raw in enumerate(_split_body(body), start=1):
        line = raw.strip()
        stats.TotalLines += 1
        if not line:
            continue
        try:
            entry = parse_line(line)
        except ValueError as e:
            errors.append(ParseError(LineNumber=number, Line=line, Error=str(e)))
            stats.ErrorLines += 1
            continue
        logs.append(entry)
        stats.SuccessLines += 1
        stats.ByLevel[entry.Level] = stats.ByLevel.get(entry.Level, 0) + 1
        if entry.Module:
            stats.ByModule[entry.Module] = stats.ByModule.get(entry.Module, 0) + 1
        if entry.TfReqID:
            stats.HasHTTPRequests = True
    return logs, errors, stats


def parse_time_flexible(value: str) -> datetime | None:
    """Parse a since/until filter value; None when no format matches."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in TIME_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def filter_logs(
    logs: list[StoredLog],
    level: str = "",
    since: str = "",
    until: str = "",
    search: str = "",
    module: str = "",
    limit: str = "",
) -> list[StoredLog]:
    """Apply query filters; unparsable since/until values are ignored."""
    since_time = parse_time_flexible(since) if since else None
    until_time = parse_time_flexible(until) if until else None
    needle = search.lower()
    filtered = []
    for entry in logs:
        if level and entry.Level.lower() != level.lower():
            continue
        if module and entry.Module.lower() != module.lower():
            continue
        ts = entry.Timestamp or _NO_TIMESTAMP
        if since_time is not None and ts < since_time:
            continue
        if until_time is not None and ts > until_time:
            continue
        if needle and needle not in entry.Message.lower():
            continue
        filtered.append(entry)
    if limit:
        try:
            n = int(limit)
        except ValueError:
            n = 0
        if 0 < n < len(filtered):
            filtered = filtered[:n]
    logger.debug("Filtered %d of %d log entries", len(filtered), len(logs))
    return filtered


def stats_for(logs: list[StoredLog]) -> ParseStats:
    """Stats over an already-parsed (e.g. filtered) list."""
    stats = ParseStats()
    for entry in logs:
        stats.TotalLines += 1
        stats.SuccessLines += 1
        if entry.Level:
            stats.ByLevel[entry.Level] = stats.ByLevel.get(entry.Level, 0) + 1
        if entry.Module:
            stats.ByModule[entry.Module] = stats.ByModule.get(entry.Module, 0) + 1
        if entry.TfReqID:
            stats.HasHTTPRequests = True
    return stats


def _serialize(entry: StoredLog) -> dict:
    data = entry.model_dump()
    data["Timestamp"] = entry.Timestamp.isoformat() if entry.Timestamp else ""
    return data


@app.get("/api/logs")
@app.get("/api/dataLogger")
def api_get_logs(
    level: str = "",
    since: str = "",
    until: str = "",
    search: str = "",
    module: str = "",
    limit: str = "",
):
    """Stored logs matching the query filters, with stats for the filtered set."""
    if not _state.loaded:
        return {**NO_DATA, "logs": []}
    filtered = filter_logs(_state.logs, level, since, until, search, module, limit)
    return {
        "status": "success",
        "stats": stats_for(filtered).model_dump(),
        "original_stats": _state.stats.model_dump(),
        "filters": {
            "level": level,
            "since": since,
            "until": until,
            "search": search,
            "module": module,
            "limit": limit,
        },
        "logs": [_serialize(e) for e in filtered],
        "count": len(filtered),
        "total": len(_state.logs),
    }


@app.post("/api/logs")
@app.post("/api/log")
async def api_upload_logs(request: Request):
    """Parse an uploaded file (multipart field `file`) or raw body and append it."""
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        form = await request.form()
        upload = form.get("file")
        if upload is None or isinstance(upload, str):
            raise HTTPException(status_code=400, detail="Missing file field")
        body = await upload.read()
        logger.info("Received file %s", upload.filename)
    else:
        body = await request.body()

    logs, errors, stats = parse_stream(body)
    _state.loaded = True
    _state.logs.extend(logs)
    _state.errors.extend(errors)
    _state.stats.TotalLines += stats.TotalLines
    _state.stats.SuccessLines += stats.SuccessLines
    _state.stats.ErrorLines += stats.ErrorLines
    _state.stats.HasHTTPRequests = _state.stats.HasHTTPRequests or stats.HasHTTPRequests
    for level, count in stats.ByLevel.items():
        _state.stats.ByLevel[level] = _state.stats.ByLevel.get(level, 0) + count
    for module, count in stats.ByModule.items():
        _state.stats.ByModule[module] = _state.stats.ByModule.get(module, 0) + count

    return {
        "status": "success",
        "message": "Logs processed",
        "added": len(logs),
        "errors": len(errors),
        "total": len(_state.logs),
    }


@app.delete("/api/logs")
@app.post("/api/clear")
def api_clear_logs():
    """Drop every stored log."""
    reset_service_state()
    return {"status": "success", "message": "All logs cleared"}


@app.get("/api/status")
def api_status():
    """Overall stats and counts for everything stored."""
    if not _state.loaded:
        return NO_DATA
    return {
        "status": "success",
        "stats": _state.stats.model_dump(),
        "logs_count": len(_state.logs),
        "errors_count": len(_state.errors),
    }


if __name__ == "__main__":
    import uvicorn

    from logview.config import configure_logging

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8080)
