"""Recommended next actions for a student, ordered by priority."""

from __future__ import annotations

from typing import List, Sequence

from engines.templates import NextStep, render_next_step
from schemas import DynamicSummaryRow, PerformanceRow, StudentMomentum, StudentTopic


class NextStepPlanner:
    """Apply the next-step rules in order; later rules only fill gaps.

    Parameters
    ----------
    low_attendance_pct:
        Meeting attendance (percent) below which a live session is
        recommended. Students with zero attendance are not nagged.
    rhythm_consistency:
        Curve consistency at or above which the student is told to keep
        their rhythm when nothing else applies.
    understanding_success_rate:
        Success rate below which the follow-up step stresses understanding.
    """

    def __init__(
        self,
        max_steps: int = 3,
        low_attendance_pct: float = 40.0,
        rhythm_consistency: float = 0.5,
        understanding_success_rate: float = 70.0,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be positive")
        if not 0.0 <= low_attendance_pct <= 100.0:
            raise ValueError("low_attendance_pct must be a percentage between 0 and 100")
        if not 0.0 <= understanding_success_rate <= 100.0:
            raise ValueError("understanding_success_rate must be a percentage between 0 and 100")
        if not 0.0 <= rhythm_consistency <= 1.0:
            raise ValueError("rhythm_consistency must be between 0 and 1")
        self.max_steps = max_steps
        self.low_attendance_pct = low_attendance_pct
        self.rhythm_consistency = rhythm_consistency
        self.understanding_success_rate = understanding_success_rate

    def plan(
        self,
        performance: PerformanceRow,
        curve: DynamicSummaryRow,
        focus_topics: Sequence[StudentTopic],
        momentum: StudentMomentum,
    ) -> List[str]:
        steps: List[str] = []

        if focus_topics:
            steps.append(render_next_step(NextStep.REVIEW_TOPIC, topic=focus_topics[0].topic_title))

        if momentum.trend == "Down":
            steps.append(render_next_step(NextStep.SHORT_SESSIONS))

        if 0 < performance.meetings_attended_pct < self.low_attendance_pct:
            steps.append(render_next_step(NextStep.JOIN_LIVE_SESSION))

        if not steps:
            if curve.consistency >= self.rhythm_consistency:
                steps.append(render_next_step(NextStep.MAINTAIN_RHYTHM))
            else:
                steps.append(render_next_step(NextStep.SHORTER_MORE_FREQUENT))

        if len(steps) == 1:
            if performance.success_rate < self.understanding_success_rate:
                steps.append(render_next_step(NextStep.UNDERSTAND_FIRST))
            else:
                steps.append(render_next_step(NextStep.KEEP_CHALLENGING))

        return steps[: self.max_steps]
