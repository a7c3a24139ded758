"""Build personal student reports from a JSON bundle of pre-aggregated rows."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from schemas import CohortReportRequest
from student_report import generate_cohort_reports

_LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to a JSON bundle with performance, dynamic, series and submissions rows",
    )
    parser.add_argument(
        "--user-id",
        action="append",
        dest="user_ids",
        default=None,
        help="Student to report on (repeatable; default: every performance row)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional path to write the JSON reports",
    )
    parser.add_argument(
        "--case-insensitive",
        action="store_true",
        help="Match performance and curve rows ignoring case",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size for cohort generation (default: executor default)",
    )
    return parser


def _load_bundle(path: Path) -> CohortReportRequest:
    payload = json.loads(path.read_text(encoding="utf-8"))
    return CohortReportRequest.model_validate(payload)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        bundle = _load_bundle(Path(args.input))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Could not read bundle {args.input}: {exc}", file=sys.stderr)
        return 2
    _LOGGER.info(
        "Loaded %s performance rows and %s submissions from %s",
        len(bundle.performance),
        len(bundle.submissions),
        args.input,
    )

    if args.user_ids:
        user_ids = list(dict.fromkeys(args.user_ids))
    elif bundle.user_ids is not None:
        user_ids = list(dict.fromkeys(bundle.user_ids))
    else:
        user_ids = list(dict.fromkeys(row.user_id for row in bundle.performance))

    reports = generate_cohort_reports(
        user_ids,
        bundle.performance,
        bundle.dynamic,
        bundle.series,
        bundle.submissions,
        bundle.excluded_user_ids,
        bundle.structure,
        case_insensitive_lookup=args.case_insensitive,
        max_workers=args.workers,
    )
    missing = [uid for uid in user_ids if uid not in reports]

    report = {
        "reports": {uid: r.model_dump(mode="json") for uid, r in reports.items()},
        "missing": missing,
    }
    payload = json.dumps(report, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
    print(payload)

    if missing:
        for uid in missing:
            print(f"no performance/curve rows for {uid}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
