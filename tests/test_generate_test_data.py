import json

import requests

import generate_test_data
from schemas import CohortReportRequest
from student_report import generate_cohort_reports


class _FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload

    def json(self):
        return self._payload


def test_bundle_is_valid_and_reproducible():
    bundle = generate_test_data.build_bundle(seed=11, days=21)

    assert bundle == generate_test_data.build_bundle(seed=11, days=21)
    request = CohortReportRequest.model_validate(bundle)
    assert [row.user_id for row in request.performance] == list(generate_test_data.PROFILES)
    assert len(request.series) == 21 * len(generate_test_data.PROFILES)


def test_bundle_produces_a_report_per_profile():
    bundle = generate_test_data.build_bundle()
    user_ids = [row["user_id"] for row in bundle["performance"]]

    reports = generate_cohort_reports(
        user_ids, bundle["performance"], bundle["dynamic"], bundle["series"], bundle["submissions"]
    )

    assert list(reports) == user_ids
    assert all(report.momentum.trend != "Unknown" for report in reports.values())


def test_post_bundle(monkeypatch, capsys):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append(url)
        return _FakeResponse(200, {"reports": {"alice": {}}, "missing": []})

    monkeypatch.setattr(generate_test_data.requests, "post", fake_post)

    data = generate_test_data.post_bundle({"performance": []}, base_url="http://reports.local")

    assert calls == ["http://reports.local/reports/cohort"]
    assert data["missing"] == []
    assert "Reports generated: 1" in capsys.readouterr().out


def test_post_bundle_handles_errors(monkeypatch):
    def refused(url, json=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(generate_test_data.requests, "post", refused)
    assert generate_test_data.post_bundle({}) is None

    monkeypatch.setattr(
        generate_test_data.requests, "post", lambda url, json=None, timeout=None: _FakeResponse(422, {})
    )
    assert generate_test_data.post_bundle({}) is None


def test_main_writes_bundle(tmp_path):
    output = tmp_path / "bundle.json"

    assert generate_test_data.main(["--output", str(output), "--days", "14"]) == 0
    written = json.loads(output.read_text(encoding="utf-8"))
    assert len(written["performance"]) == len(generate_test_data.PROFILES)
