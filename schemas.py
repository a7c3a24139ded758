"""Pydantic schemas for student report inputs, outputs and request bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "SubmissionEvent",
    "StepPlacement",
    "PerformanceRow",
    "DynamicSummaryRow",
    "DynamicSeriesRow",
    "TopicLabel",
    "MomentumTrend",
    "StudentTopic",
    "StudentMomentum",
    "StudentEngagement",
    "StudentHighlight",
    "StudentIdentity",
    "TopicWin",
    "TopicFocus",
    "TopicSelection",
    "CurveSummary",
    "StudentReport",
    "StudentReportRequest",
    "CohortReportRequest",
    "CohortReportResponse",
]

TopicLabel = Literal["Comfortable", "Watch", "Attention"]
MomentumTrend = Literal["Up", "Flat", "Down", "Unknown"]


class _InputRow(BaseModel):
    # upstream exports sometimes carry numeric user and step ids
    model_config = ConfigDict(coerce_numbers_to_str=True)


class SubmissionEvent(_InputRow):
    """A single normalised submission attempt."""
    user_id: str
    step_id: str
    status: str = ""

    @property
    def is_correct(self) -> bool:
        return self.status == "correct"


class StepPlacement(_InputRow):
    """Where a step sits in the course structure."""
    step_id: str
    lesson_id: int
    unit_id: int = 0
    course_id: int = 0


class PerformanceRow(_InputRow):
    user_id: str
    name: str = ""
    total: float = 0.0
    total_pct: float = 0.0
    submissions: int = 0
    unique_steps: int = 0
    correct_submissions: int = 0
    success_rate: float = 0.0
    persistence: float = 0.0
    efficiency: float = 0.0
    active_days: int = 0
    active_days_ratio: float = 0.0
    effort_index: float = 0.0
    consistency_index: float = 0.0
    struggle_index: float = 0.0
    meetings_attended: int = 0
    meetings_attended_pct: float = 0.0
    simple_segment: str = ""


class DynamicSummaryRow(_InputRow):
    """Activity-curve summary computed upstream for one student."""
    user_id: str
    name: str = ""
    bezier_p1x: float = 0.0
    bezier_p1y: float = 0.0
    bezier_p2x: float = 0.0
    bezier_p2y: float = 0.0
    t25: float = 0.0
    t50: float = 0.0
    t75: float = 0.0
    frontload_index: float = 0.0
    easing_label: str = "no-activity"
    consistency: float = 0.0
    burstiness: float = 0.0
    total: float = 0.0
    total_pct: float = 0.0


class DynamicSeriesRow(_InputRow):
    user_id: str = ""
    date_iso: str
    day_index: int = 0
    x_norm: float = 0.0
    activity_platform: float = 0.0
    activity_meetings: float = 0.0
    activity_total: float = 0.0
    cum_activity: float = 0.0
    y_norm: float = 0.0


class StudentTopic(BaseModel):
    topic_title: str
    steps_attempted: int
    attempts_per_step: float
    student_first_pass_rate: float
    mean_delta_attempts: float
    mean_delta_first: float
    topic_score: float = Field(ge=0.0, description="Higher means the topic needs more attention.")
    label_topic: TopicLabel
    lesson_id: int | None = None
    first_step_id: int | None = None
    unit_id: int | None = None
    course_id: int | None = None


class StudentMomentum(BaseModel):
    trend: MomentumTrend
    delta: float
    note: str


class StudentEngagement(BaseModel):
    level: Literal["High", "Medium", "Low"]
    description: str
    active_days_ratio: float


class StudentHighlight(BaseModel):
    type: Literal["win", "focus"]
    text: str
    reason: str | None = None


class StudentIdentity(BaseModel):
    user_id: str
    name: str
    segment: str
    easing: str


class TopicWin(BaseModel):
    title: str
    why: str


class TopicFocus(BaseModel):
    title: str
    why: str
    evidence: str | None = None


class TopicSelection(BaseModel):
    wins: List[TopicWin] = Field(default_factory=list, max_length=3)
    focus: List[TopicFocus] = Field(default_factory=list, max_length=3)


class CurveSummary(BaseModel):
    label: str
    fi: float
    explain: str
    consistency: float
    burstiness: float
    t25: float
    t50: float
    t75: float


class StudentReport(BaseModel):
    """Personal learning report assembled for one student."""
    student: StudentIdentity
    highlights: List[StudentHighlight] = Field(max_length=5)
    momentum: StudentMomentum
    engagement: StudentEngagement
    topics: TopicSelection
    curve: CurveSummary
    next_steps: List[str] = Field(max_length=3)
    performance: PerformanceRow
    dynamic: DynamicSummaryRow
    series: List[DynamicSeriesRow]
    topic_table: List[StudentTopic]


class StudentReportRequest(_InputRow):
    """Request body for building a single student's report."""
    user_id: str
    performance: List[PerformanceRow]
    dynamic: List[DynamicSummaryRow]
    series: List[DynamicSeriesRow] = Field(default_factory=list)
    submissions: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Raw submission rows; user/step/status columns may use any supported alias.",
    )
    excluded_user_ids: List[str] = Field(default_factory=list)
    structure: List[Dict[str, Any]] | None = Field(
        default=None,
        description="Optional course-structure rows mapping steps to lessons, units and courses.",
    )


class CohortReportRequest(_InputRow):
    user_ids: List[str] | None = Field(
        default=None,
        description="Students to report on; every performance row is used when omitted.",
    )
    performance: List[PerformanceRow]
    dynamic: List[DynamicSummaryRow]
    series: List[DynamicSeriesRow] = Field(default_factory=list)
    submissions: List[Dict[str, Any]] = Field(default_factory=list)
    excluded_user_ids: List[str] = Field(default_factory=list)
    structure: List[Dict[str, Any]] | None = None


class CohortReportResponse(BaseModel):
    reports: Dict[str, StudentReport]
    missing: List[str] = Field(default_factory=list)
