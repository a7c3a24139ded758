# app.py: Student Report Engine v1.0.0
# - Stateless: every request carries the rows it is evaluated on
# - No persistence, no outbound calls

import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, HTTPException

from env_validation import ConfigurationError, ReportSettings, get_report_settings, validate_environment
from schemas import CohortReportRequest, CohortReportResponse, StudentReport, StudentReportRequest
from student_report import generate_cohort_reports, generate_student_report

logger = logging.getLogger(__name__)

_REPORT_LOGGER = logging.getLogger("ailb.reports")
if not _REPORT_LOGGER.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    _REPORT_LOGGER.addHandler(_handler)
_REPORT_LOGGER.setLevel(logging.INFO)
_REPORT_LOGGER.propagate = False


@asynccontextmanager
async def _lifespan(_: FastAPI):
    try:
        validate_environment()
        settings = get_report_settings()
        _REPORT_LOGGER.setLevel(settings.log_level)
        logger.info(
            "Report settings: %s excluded ids, case-insensitive lookup %s, %s batch workers",
            len(settings.excluded_user_ids),
            settings.case_insensitive_lookup,
            settings.batch_workers,
        )
        yield
    except Exception as e:
        logger.error("Failed to initialize application: %s", str(e), exc_info=True)
        raise


app = FastAPI(title="Student Report Engine v1.0.0", version="1.0.0", lifespan=_lifespan)


def _settings() -> ReportSettings:
    try:
        return get_report_settings()
    except ConfigurationError as exc:
        _REPORT_LOGGER.error("Invalid report configuration: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))


def _merged_exclusions(settings: ReportSettings, requested: List[str]) -> List[str]:
    return sorted(settings.excluded_user_ids | {uid for uid in requested if uid})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/reports/student", response_model=StudentReport)
def student_report(body: StudentReportRequest):
    settings = _settings()
    report = generate_student_report(
        body.user_id,
        body.performance,
        body.dynamic,
        body.series,
        body.submissions,
        _merged_exclusions(settings, body.excluded_user_ids),
        body.structure,
        case_insensitive_lookup=settings.case_insensitive_lookup,
    )
    if report is None:
        _REPORT_LOGGER.info("Student %s not found in performance/curve rows", body.user_id)
        raise HTTPException(status_code=404, detail="student not found")
    return report


@app.post("/reports/cohort", response_model=CohortReportResponse)
def cohort_reports(body: CohortReportRequest):
    settings = _settings()
    if body.user_ids is not None:
        user_ids = list(dict.fromkeys(body.user_ids))
    else:
        user_ids = list(dict.fromkeys(row.user_id for row in body.performance))
    reports = generate_cohort_reports(
        user_ids,
        body.performance,
        body.dynamic,
        body.series,
        body.submissions,
        _merged_exclusions(settings, body.excluded_user_ids),
        body.structure,
        case_insensitive_lookup=settings.case_insensitive_lookup,
        max_workers=settings.batch_workers,
    )
    missing = [uid for uid in user_ids if uid not in reports]
    _REPORT_LOGGER.info("Cohort request: %s reports, %s missing", len(reports), len(missing))
    return CohortReportResponse(reports=reports, missing=missing)
