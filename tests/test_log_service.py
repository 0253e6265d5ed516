"""Tests for the in-memory log service."""

import json

import pytest
from fastapi.testclient import TestClient

from log_service.app import (
    app,
    classify_entry,
    filter_logs,
    parse_line,
    parse_stream,
    parse_time_flexible,
    reset_service_state,
)

LINES = [
    {
        "@level": "info",
        "@message": "Starting apply",
        "@module": "terraform.ui",
        "@timestamp": "2025-02-11T10:00:00Z",
    },
    {
        "@level": "error",
        "@message": "GRPCProvider: ApplyResourceChange failed",
        "@module": "provider.aws",
        "@timestamp": "2025-02-11T10:05:00Z",
        "tf_rpc": "ApplyResourceChange",
    },
    {
        "@level": "debug",
        "@message": "HTTP Request Sent",
        "@module": "provider.aws",
        "@timestamp": "2025-02-11T10:10:00Z",
        "tf_req_id": "req-1",
    },
]


def _jsonl(lines) -> bytes:
    return "\n".join(json.dumps(line) for line in lines).encode("utf-8")


@pytest.fixture(autouse=True)
def _reset_service():
    reset_service_state()
    yield


@pytest.fixture
def client():
    return TestClient(app)


def test_parse_line_reads_terraform_keys():
    entry = parse_line(json.dumps(LINES[0]))
    assert entry.Level == "info"
    assert entry.Module == "terraform.ui"
    assert entry.Timestamp.year == 2025
    assert entry.EntryType == "general"


def test_parse_line_rejects_non_object():
    with pytest.raises(ValueError):
        parse_line("[1, 2]")
    with pytest.raises(ValueError):
        parse_line("not json")


def test_classify_entry():
    assert classify_entry(parse_line(json.dumps(LINES[1]))) == "grpc_request"
    assert classify_entry(parse_line(json.dumps(LINES[2]))) == "http_request"
    assert classify_entry(parse_line(json.dumps({"@module": "provider.google"}))) == "provider"


def test_parse_stream_counts_errors_and_blank_lines():
    body = _jsonl(LINES[:2]) + b"\n\nnot json\n"
    logs, errors, stats = parse_stream(body)
    assert len(logs) == 2
    assert len(errors) == 1
    assert errors[0].LineNumber == 4
    assert stats.TotalLines == 4
    assert stats.SuccessLines == 2
    assert stats.ErrorLines == 1
    assert stats.ByModule == {"terraform.ui": 1, "provider.aws": 1}


def test_parse_stream_accepts_json_array():
    logs, errors, _ = parse_stream(json.dumps(LINES).encode("utf-8"))
    assert len(logs) == 3
    assert errors == []


def test_parse_time_flexible_formats():
    assert parse_time_flexible("2025-02-11T10:03").minute == 3
    assert parse_time_flexible("2025-02-11 10:03:30").second == 30
    assert parse_time_flexible("2025-02-11").day == 11
    assert parse_time_flexible("2025-02-11T10:03:00Z").tzinfo is not None
    assert parse_time_flexible("yesterday") is None


def test_filter_logs_by_time_search_and_limit():
    logs, _, _ = parse_stream(_jsonl(LINES))
    assert len(filter_logs(logs, since="2025-02-11T10:04")) == 2
    assert len(filter_logs(logs, until="2025-02-11 10:05:00")) == 2
    assert len(filter_logs(logs, search="grpcprovider")) == 1
    assert len(filter_logs(logs, limit="1")) == 1
    assert len(filter_logs(logs, limit="abc")) == 3
    assert len(filter_logs(logs, since="garbage")) == 3


def test_get_logs_without_data(client):
    r = client.get("/api/logs")
    assert r.status_code == 200
    assert r.json() == {"status": "no_data", "message": "No log data", "logs": []}


def test_upload_multipart_then_get(client):
    r = client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES))})
    assert r.status_code == 200
    data = r.json()
    assert data["added"] == 3
    assert data["errors"] == 0
    assert data["total"] == 3

    r = client.get("/api/logs")
    data = r.json()
    assert data["status"] == "success"
    assert data["count"] == 3
    assert {e["Module"] for e in data["logs"]} == {"terraform.ui", "provider.aws"}
    assert data["logs"][0]["Timestamp"].startswith("2025-02-11T10:00:00")


def test_upload_raw_body_appends(client):
    client.post("/api/logs", content=_jsonl(LINES[:1]))
    r = client.post("/api/log", content=_jsonl(LINES[1:]))
    assert r.json()["total"] == 3


def test_upload_multipart_without_file_field(client):
    r = client.post("/api/logs", files={"other": ("x.log", b"{}")})
    assert r.status_code == 400


def test_get_logs_filters_case_insensitive(client):
    client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES))})
    r = client.get("/api/logs", params={"level": "ERROR"})
    data = r.json()
    assert data["count"] == 1
    assert data["total"] == 3
    assert data["filters"]["level"] == "ERROR"
    assert data["stats"]["ByLevel"] == {"error": 1}

    r = client.get("/api/dataLogger", params={"module": "Provider.AWS"})
    assert r.json()["count"] == 2


def test_empty_level_filter_matches_all(client):
    client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES))})
    r = client.get("/api/logs", params={"level": ""})
    assert r.json()["count"] == 3


def test_clear_endpoints(client):
    client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES))})
    r = client.post("/api/clear")
    assert r.json()["status"] == "success"
    assert client.get("/api/logs").json()["status"] == "no_data"

    client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES))})
    client.delete("/api/logs")
    assert client.get("/api/status").json()["status"] == "no_data"


def test_status_counts(client):
    client.post("/api/logs", files={"file": ("apply.json", _jsonl(LINES) + b"\nbroken")})
    data = client.get("/api/status").json()
    assert data["status"] == "success"
    assert data["logs_count"] == 3
    assert data["errors_count"] == 1
    assert data["stats"]["HasHTTPRequests"] is True


def test_cors_preflight_for_allowed_origin(client):
    r = client.options(
        "/api/logs",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "http://localhost:5173"
