"""Personal student report assembly.

``generate_student_report`` is a pure function of its inputs: it looks up
the student's performance and activity-curve rows, runs the report engines
in order and returns a :class:`schemas.StudentReport`, or ``None`` when the
student has no performance or curve row. ``generate_cohort_reports`` fans the
same function out over a thread pool for a whole cohort.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel

from engines.engagement import calculate_engagement
from engines.highlights import HighlightSynthesizer
from engines.momentum import MomentumCalculator
from engines.next_steps import NextStepPlanner
from engines.signals import SignalExtractor
from engines.templates import explain_curve
from engines.topic_table import TopicTableBuilder
from schemas import (
    CurveSummary,
    DynamicSeriesRow,
    DynamicSummaryRow,
    PerformanceRow,
    StudentIdentity,
    StudentReport,
    StudentTopic,
    TopicFocus,
    TopicSelection,
    TopicWin,
)

_LOGGER = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)
RowInput = Union[BaseModel, Mapping[str, Any]]

DISPLAY_TOPIC_LIMIT = 3


def _coerce_rows(rows: Optional[Iterable[RowInput]], model: Type[RowT]) -> List[RowT]:
    return [row if isinstance(row, model) else model.model_validate(row) for row in rows or ()]


def _same_student(candidate: str, user_id: str, case_insensitive: bool) -> bool:
    user_id = str(user_id)
    if case_insensitive:
        return candidate.lower() == user_id.lower()
    return candidate == user_id


def select_win_topics(topics: Sequence[StudentTopic], limit: int = DISPLAY_TOPIC_LIMIT) -> List[StudentTopic]:
    """Comfortable topics with enough evidence, best first-pass rate first."""
    eligible = [t for t in topics if t.label_topic == "Comfortable" and t.steps_attempted >= 2]
    eligible.sort(key=lambda t: (-t.student_first_pass_rate, t.attempts_per_step))
    return eligible[:limit]


def select_focus_topics(topics: Sequence[StudentTopic], limit: int = DISPLAY_TOPIC_LIMIT) -> List[StudentTopic]:
    focus = [t for t in topics if t.label_topic in ("Attention", "Watch")]
    focus.sort(key=lambda t: t.topic_score, reverse=True)
    return focus[:limit]


def topic_reason(topic: StudentTopic) -> str:
    extra_attempts = topic.mean_delta_attempts > 0.5
    low_first_pass = topic.mean_delta_first < -0.2
    if extra_attempts and low_first_pass:
        return "extra attempts + low first-pass rate"
    if extra_attempts:
        return "extra attempts needed"
    if low_first_pass:
        return "first-pass rate below average"
    return "needs attention"


class StudentReportEngine:
    """Wire the report engines together; holds configuration only."""

    def __init__(
        self,
        topic_builder: Optional[TopicTableBuilder] = None,
        momentum_calculator: Optional[MomentumCalculator] = None,
        signal_extractor: Optional[SignalExtractor] = None,
        highlight_synthesizer: Optional[HighlightSynthesizer] = None,
        next_step_planner: Optional[NextStepPlanner] = None,
    ) -> None:
        self.topic_builder = topic_builder or TopicTableBuilder()
        self.momentum_calculator = momentum_calculator or MomentumCalculator()
        self.signal_extractor = signal_extractor or SignalExtractor()
        self.highlight_synthesizer = highlight_synthesizer or HighlightSynthesizer()
        self.next_step_planner = next_step_planner or NextStepPlanner()

    def generate(
        self,
        user_id: str,
        performance_rows: Iterable[RowInput],
        dynamic_rows: Iterable[RowInput],
        series_rows: Iterable[RowInput],
        submissions: Iterable[Mapping[str, Any]],
        excluded_user_ids: Iterable[str] = (),
        structure: Optional[Iterable[Mapping[str, Any]]] = None,
        *,
        case_insensitive_lookup: bool = False,
    ) -> Optional[StudentReport]:
        performance = next(
            (
                row for row in _coerce_rows(performance_rows, PerformanceRow)
                if _same_student(row.user_id, user_id, case_insensitive_lookup)
            ),
            None,
        )
        curve = next(
            (
                row for row in _coerce_rows(dynamic_rows, DynamicSummaryRow)
                if _same_student(row.user_id, user_id, case_insensitive_lookup)
            ),
            None,
        )
        if performance is None or curve is None:
            _LOGGER.debug(
                "No report for %s (performance row: %s, curve row: %s)",
                user_id,
                performance is not None,
                curve is not None,
            )
            return None

        series = [
            row for row in _coerce_rows(series_rows, DynamicSeriesRow)
            if _same_student(row.user_id, user_id, case_insensitive_lookup)
        ]

        topic_table = self.topic_builder.build(user_id, submissions, excluded_user_ids, structure)
        momentum = self.momentum_calculator.calculate(series)
        engagement = calculate_engagement(performance, curve)

        wins = self.signal_extractor.extract_wins(performance, curve, topic_table)
        focus = self.signal_extractor.extract_focus(performance, curve, topic_table, momentum)
        highlights = self.highlight_synthesizer.synthesize(wins, focus)

        win_topics = select_win_topics(topic_table)
        focus_topics = select_focus_topics(topic_table)
        next_steps = self.next_step_planner.plan(performance, curve, focus_topics, momentum)

        report = StudentReport(
            student=StudentIdentity(
                user_id=performance.user_id,
                name=performance.name,
                segment=performance.simple_segment,
                easing=curve.easing_label,
            ),
            highlights=highlights,
            momentum=momentum,
            engagement=engagement,
            topics=TopicSelection(
                wins=[
                    TopicWin(
                        title=t.topic_title,
                        why="high first-pass rate" if t.student_first_pass_rate >= 0.7 else "low attempts needed",
                    )
                    for t in win_topics
                ],
                focus=[
                    TopicFocus(
                        title=t.topic_title,
                        why=topic_reason(t),
                        evidence="low evidence" if t.steps_attempted < 2 else None,
                    )
                    for t in focus_topics
                ],
            ),
            curve=CurveSummary(
                label=curve.easing_label,
                fi=curve.frontload_index,
                explain=explain_curve(curve.easing_label),
                consistency=curve.consistency,
                burstiness=curve.burstiness,
                t25=curve.t25,
                t50=curve.t50,
                t75=curve.t75,
            ),
            next_steps=next_steps,
            performance=performance,
            dynamic=curve,
            series=series,
            topic_table=topic_table,
        )
        _LOGGER.info(
            "Generated report for %s: %s topics, momentum %s, %s highlights",
            user_id,
            len(topic_table),
            momentum.trend,
            len(highlights),
        )
        return report


_DEFAULT_ENGINE = StudentReportEngine()


def generate_student_report(
    user_id: str,
    performance_rows: Iterable[RowInput],
    dynamic_rows: Iterable[RowInput],
    series_rows: Iterable[RowInput],
    submissions: Iterable[Mapping[str, Any]],
    excluded_user_ids: Iterable[str] = (),
    structure: Optional[Iterable[Mapping[str, Any]]] = None,
    *,
    case_insensitive_lookup: bool = False,
) -> Optional[StudentReport]:
    return _DEFAULT_ENGINE.generate(
        user_id,
        performance_rows,
        dynamic_rows,
        series_rows,
        submissions,
        excluded_user_ids,
        structure,
        case_insensitive_lookup=case_insensitive_lookup,
    )


def generate_cohort_reports(
    user_ids: Iterable[str],
    performance_rows: Iterable[RowInput],
    dynamic_rows: Iterable[RowInput],
    series_rows: Iterable[RowInput],
    submissions: Iterable[Mapping[str, Any]],
    excluded_user_ids: Iterable[str] = (),
    structure: Optional[Iterable[Mapping[str, Any]]] = None,
    *,
    case_insensitive_lookup: bool = False,
    max_workers: Optional[int] = None,
    engine: Optional[StudentReportEngine] = None,
) -> Dict[str, StudentReport]:
    """Build reports for many students; students without rows are omitted."""
    engine = engine or _DEFAULT_ENGINE
    ids = list(user_ids)
    # Materialise shared inputs once; workers only read them.
    performance = _coerce_rows(performance_rows, PerformanceRow)
    dynamic = _coerce_rows(dynamic_rows, DynamicSummaryRow)
    series = _coerce_rows(series_rows, DynamicSeriesRow)
    rows = list(submissions)
    excluded = list(excluded_user_ids)
    placements = list(structure) if structure is not None else None

    def _one(uid: str) -> Optional[StudentReport]:
        return engine.generate(
            uid,
            performance,
            dynamic,
            series,
            rows,
            excluded,
            placements,
            case_insensitive_lookup=case_insensitive_lookup,
        )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(_one, ids))

    reports = {uid: report for uid, report in zip(ids, results) if report is not None}
    _LOGGER.info("Generated %s of %s cohort reports", len(reports), len(ids))
    return reports
