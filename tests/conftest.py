import json
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_REPORT_ENV = (
    "REPORT_EXCLUDED_USER_IDS",
    "REPORT_CASE_INSENSITIVE_LOOKUP",
    "REPORT_BATCH_WORKERS",
    "REPORT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_report_env(monkeypatch):
    for var in _REPORT_ENV:
        monkeypatch.delenv(var, raising=False)


def make_attempts(user_id: str, step_id: str, statuses: list) -> list:
    return [{"user_id": user_id, "step_id": step_id, "status": status} for status in statuses]


def make_performance(user_id: str = "alice", **overrides) -> dict:
    row = {
        "user_id": user_id,
        "name": "Alice Example",
        "total": 40,
        "total_pct": 50.0,
        "submissions": 120,
        "unique_steps": 40,
        "correct_submissions": 60,
        "success_rate": 60.0,
        "persistence": 2.0,
        "efficiency": 0.5,
        "active_days": 20,
        "active_days_ratio": 0.5,
        "effort_index": 0.5,
        "consistency_index": 0.3,
        "struggle_index": 0.2,
        "meetings_attended": 0,
        "meetings_attended_pct": 0.0,
        "simple_segment": "Balanced",
    }
    row.update(overrides)
    return row


def make_curve(user_id: str = "alice", **overrides) -> dict:
    row = {
        "user_id": user_id,
        "name": "Alice Example",
        "t25": 0.25,
        "t50": 0.5,
        "t75": 0.75,
        "frontload_index": 0.0,
        "easing_label": "linear",
        "consistency": 0.3,
        "burstiness": 0.9,
        "total": 40,
        "total_pct": 50.0,
    }
    row.update(overrides)
    return row


def make_series(user_id: str, totals: list, start_day: int = 1) -> list:
    return [
        {"user_id": user_id, "date_iso": f"2024-03-{start_day + i:02d}", "activity_total": total}
        for i, total in enumerate(totals)
    ]


async def call_asgi(asgi_app, method: str, path: str, *, payload: Optional[dict] = None, query: Optional[dict] = None):
    """Drive one HTTP request through an ASGI app and return ``(status, json_body)``."""
    pending = json.dumps(payload).encode("utf-8") if payload is not None else b""
    headers = [(b"host", b"testserver")]
    if payload is not None:
        headers += [(b"content-type", b"application/json"), (b"content-length", str(len(pending)).encode())]
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method.upper(),
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": urlencode(query or {}, doseq=True).encode(),
        "headers": headers,
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "state": {},
    }
    sent = []

    async def receive():
        nonlocal pending
        if not pending:
            return {"type": "http.disconnect"}
        chunk, pending = pending, b""
        return {"type": "http.request", "body": chunk, "more_body": False}

    async def send(message):
        sent.append(message)

    await asgi_app(scope, receive, send)
    start = next((m for m in sent if m["type"] == "http.response.start"), {"status": 500})
    body = b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body")
    return start["status"], json.loads(body.decode("utf-8") or "{}")
