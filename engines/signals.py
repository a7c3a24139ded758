"""Scored "win" and "focus" signals for the personal student report.

Every rule is evaluated independently and all matching rules fire. The
lists are returned in evaluation order; ranking is left to the highlight
synthesizer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from engines.templates import FocusType, WinType
from schemas import DynamicSummaryRow, PerformanceRow, StudentMomentum, StudentTopic

TOPIC_SIGNAL_LIMIT = 2


@dataclass(frozen=True)
class Signal:
    type: str
    score: float
    detail: Optional[str] = None


class SignalExtractor:
    def __init__(
        self,
        achievement_pct: float = 80.0,
        achievement_success_rate: float = 85.0,
        consistency_threshold: float = 0.5,
        steady_burstiness: float = 0.6,
        early_frontload: float = 0.10,
        topic_win_first_pass: float = 0.7,
        struggle_threshold: float = 0.6,
        low_active_days_ratio: float = 0.3,
        late_start_t25: float = 0.4,
        dropoff_t75: float = 0.6,
    ) -> None:
        for name, value in (
            ("achievement_pct", achievement_pct),
            ("achievement_success_rate", achievement_success_rate),
        ):
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be a percentage between 0 and 100")
        for name, value in (
            ("consistency_threshold", consistency_threshold),
            ("steady_burstiness", steady_burstiness),
            ("topic_win_first_pass", topic_win_first_pass),
            ("struggle_threshold", struggle_threshold),
            ("low_active_days_ratio", low_active_days_ratio),
            ("late_start_t25", late_start_t25),
            ("dropoff_t75", dropoff_t75),
        ):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")
        if not -1.0 <= early_frontload <= 1.0:
            raise ValueError("early_frontload must be between -1 and 1")
        self.achievement_pct = achievement_pct
        self.achievement_success_rate = achievement_success_rate
        self.consistency_threshold = consistency_threshold
        self.steady_burstiness = steady_burstiness
        self.early_frontload = early_frontload
        self.topic_win_first_pass = topic_win_first_pass
        self.struggle_threshold = struggle_threshold
        self.low_active_days_ratio = low_active_days_ratio
        self.late_start_t25 = late_start_t25
        self.dropoff_t75 = dropoff_t75

    def extract_wins(
        self,
        performance: PerformanceRow,
        curve: DynamicSummaryRow,
        topics: Sequence[StudentTopic],
    ) -> List[Signal]:
        wins: List[Signal] = []

        if (
            performance.total_pct >= self.achievement_pct
            or performance.success_rate >= self.achievement_success_rate
        ):
            wins.append(Signal(WinType.ACHIEVEMENT.value, max(performance.total_pct, performance.success_rate)))

        if (
            performance.consistency_index >= self.consistency_threshold
            or curve.consistency >= self.consistency_threshold
        ):
            wins.append(
                Signal(WinType.CONSISTENCY.value, max(performance.consistency_index, curve.consistency) * 100)
            )

        if curve.burstiness <= self.steady_burstiness:
            wins.append(Signal(WinType.STEADY.value, (1 - curve.burstiness) * 100))

        if curve.frontload_index >= self.early_frontload:
            wins.append(Signal(WinType.EARLY_PROGRESS.value, curve.frontload_index * 100))

        comfortable = [
            t for t in topics
            if t.label_topic == "Comfortable" and t.student_first_pass_rate >= self.topic_win_first_pass
        ]
        for topic in comfortable[:TOPIC_SIGNAL_LIMIT]:
            wins.append(Signal(WinType.TOPIC_WIN.value, topic.student_first_pass_rate * 100, topic.topic_title))

        return wins

    def extract_focus(
        self,
        performance: PerformanceRow,
        curve: DynamicSummaryRow,
        topics: Sequence[StudentTopic],
        momentum: StudentMomentum,
    ) -> List[Signal]:
        focus: List[Signal] = []

        struggling = [t for t in topics if t.label_topic in ("Attention", "Watch")]
        for topic in struggling[:TOPIC_SIGNAL_LIMIT]:
            focus.append(Signal(FocusType.TOPIC_FOCUS.value, topic.topic_score, topic.topic_title))

        if performance.struggle_index >= self.struggle_threshold:
            focus.append(Signal(FocusType.STRUGGLE.value, performance.struggle_index * 100))

        if performance.active_days_ratio < self.low_active_days_ratio:
            focus.append(Signal(FocusType.LOW_CONSISTENCY.value, (1 - performance.active_days_ratio) * 100))

        momentum_down = momentum.trend == "Down"
        if momentum_down:
            focus.append(Signal(FocusType.MOMENTUM_DOWN.value, abs(momentum.delta) * 100))

        if curve.easing_label == "ease-in" and curve.t25 > self.late_start_t25:
            focus.append(Signal(FocusType.LATE_START.value, curve.t25 * 100))

        if curve.easing_label == "ease-out" and curve.t75 < self.dropoff_t75 and momentum_down:
            focus.append(Signal(FocusType.END_DROPOFF.value, (1 - curve.t75) * 100))

        return focus
