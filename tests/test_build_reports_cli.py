import json

from conftest import make_attempts, make_curve, make_performance, make_series
from scripts import build_reports


def _write_bundle(tmp_path, **overrides):
    bundle = {
        "performance": [make_performance("alice"), make_performance("bob")],
        "dynamic": [make_curve("alice"), make_curve("bob")],
        "series": make_series("alice", [2] * 14),
        "submissions": make_attempts("alice", "3", ["wrong", "correct"]),
        "excluded_user_ids": [],
    }
    bundle.update(overrides)
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(bundle), encoding="utf-8")
    return path


def test_builds_every_student_by_default(tmp_path, capsys):
    bundle = _write_bundle(tmp_path)
    output = tmp_path / "reports.json"

    exit_code = build_reports.main(["--input", str(bundle), "--output", str(output)])

    assert exit_code == 0
    written = json.loads(output.read_text(encoding="utf-8"))
    assert sorted(written["reports"]) == ["alice", "bob"]
    assert written["missing"] == []
    assert json.loads(capsys.readouterr().out) == written


def test_selected_student_missing_exits_with_one(tmp_path, capsys):
    bundle = _write_bundle(tmp_path)

    exit_code = build_reports.main(["--input", str(bundle), "--user-id", "alice", "--user-id", "carol"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert list(json.loads(captured.out)["reports"]) == ["alice"]
    assert "carol" in captured.err


def test_case_insensitive_flag(tmp_path, capsys):
    bundle = _write_bundle(tmp_path)

    assert build_reports.main(["--input", str(bundle), "--user-id", "ALICE"]) == 1
    capsys.readouterr()
    assert build_reports.main(["--input", str(bundle), "--user-id", "ALICE", "--case-insensitive"]) == 0


def test_unreadable_bundle_exits_with_two(tmp_path, capsys):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert build_reports.main(["--input", str(broken)]) == 2
    assert build_reports.main(["--input", str(tmp_path / "absent.json")]) == 2
    assert build_reports.main(["--input", str(_write_bundle(tmp_path, performance="nope"))]) == 2
    assert "Could not read bundle" in capsys.readouterr().err
