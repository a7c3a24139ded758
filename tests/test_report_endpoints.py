import asyncio
import logging
from typing import Optional

import app
from conftest import call_asgi, make_attempts, make_curve, make_performance, make_series


def _post(path: str, payload: dict):
    return asyncio.run(call_asgi(app.app, "POST", path, payload=payload))


def _get(path: str, query: Optional[dict] = None):
    return asyncio.run(call_asgi(app.app, "GET", path, query=query))


def _payload(**overrides) -> dict:
    payload = {
        "user_id": "alice",
        "performance": [make_performance("alice", success_rate=90.0), make_performance("bob")],
        "dynamic": [make_curve("alice"), make_curve("bob")],
        "series": make_series("alice", [3] * 14),
        "submissions": make_attempts("alice", "1", ["correct"]) + make_attempts("alice", "12", ["wrong", "correct"]),
    }
    payload.update(overrides)
    return payload


def test_health():
    status, data = _get("/health")

    assert status == 200
    assert data == {"status": "ok"}


def test_student_report_endpoint():
    status, data = _post("/reports/student", _payload())

    assert status == 200
    assert data["student"]["user_id"] == "alice"
    assert data["momentum"]["trend"] == "Flat"
    assert data["highlights"][0]["type"] == "win"
    assert [t["topic_title"] for t in data["topic_table"]] == ["Topic 2", "Topic 1"]


def test_unknown_student_is_404():
    status, data = _post("/reports/student", _payload(user_id="carol"))

    assert status == 404
    assert data["detail"] == "student not found"


def test_invalid_body_is_rejected():
    status, _ = _post("/reports/student", {"user_id": "alice"})

    assert status == 422


def test_environment_exclusions_apply(monkeypatch):
    monkeypatch.setenv("REPORT_EXCLUDED_USER_IDS", "someone, ALICE")

    status, data = _post("/reports/student", _payload())

    assert status == 200
    assert data["topic_table"] == []


def test_case_insensitive_lookup_flag(monkeypatch):
    status, _ = _post("/reports/student", _payload(user_id="Alice"))
    assert status == 404

    monkeypatch.setenv("REPORT_CASE_INSENSITIVE_LOOKUP", "true")
    status, data = _post("/reports/student", _payload(user_id="Alice"))
    assert status == 200
    assert data["student"]["user_id"] == "alice"


def test_invalid_configuration_is_500(monkeypatch):
    monkeypatch.setenv("REPORT_BATCH_WORKERS", "zero")

    status, data = _post("/reports/student", _payload())

    assert status == 500
    assert "REPORT_BATCH_WORKERS" in data["detail"]


def test_cohort_endpoint_defaults_to_all_performance_rows():
    payload = _payload()
    payload.pop("user_id")

    status, data = _post("/reports/cohort", payload)

    assert status == 200
    assert sorted(data["reports"]) == ["alice", "bob"]
    assert data["missing"] == []


def test_cohort_endpoint_lists_missing_students():
    payload = _payload(user_ids=["alice", "carol", "alice"])
    payload.pop("user_id")

    status, data = _post("/reports/cohort", payload)

    assert status == 200
    assert list(data["reports"]) == ["alice"]
    assert data["missing"] == ["carol"]


def test_report_logger_is_named_and_isolated():
    report_logger = logging.getLogger("ailb.reports")

    assert app._REPORT_LOGGER is report_logger
    assert report_logger.handlers
    assert report_logger.propagate is False


def test_numeric_user_ids_are_accepted():
    payload = _payload(
        user_id=7,
        performance=[make_performance(7)],
        dynamic=[make_curve(7)],
        series=make_series(7, [3] * 14),
        submissions=make_attempts(7, "1", ["correct"]),
    )

    status, data = _post("/reports/student", payload)

    assert status == 200
    assert data["student"]["user_id"] == "7"
    assert data["momentum"]["trend"] == "Flat"
