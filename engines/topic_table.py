"""Per-student topic mastery table built from raw submission attempts.

Steps are grouped into synthetic topics (ten consecutive step numbers per
topic) because explicit topic metadata is not available at this layer.
Each topic is compared against the student's own course-wide baseline so
the resulting score reflects relative difficulty rather than absolute
performance.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from schemas import StepPlacement, StudentTopic, SubmissionEvent, TopicLabel

_LOGGER = logging.getLogger(__name__)

_USER_KEYS = ("user_id", "userid")
_STEP_KEYS = ("step_id", "stepid", "step")
_STATUS_KEYS = ("status", "result")
_NON_DIGIT = re.compile(r"[^0-9]")

STEPS_PER_TOPIC = 10


def _first_present(row: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = row.get(key)
        if value:
            return str(value).strip()
    return ""


def _as_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def normalize_submission(row: Mapping[str, Any]) -> Optional[SubmissionEvent]:
    """Resolve column aliases of a raw submission row.

    Returns ``None`` when the row has no usable step id.
    """
    step_id = _first_present(row, _STEP_KEYS)
    if not step_id:
        return None
    return SubmissionEvent(
        user_id=_first_present(row, _USER_KEYS),
        step_id=step_id,
        status=_first_present(row, _STATUS_KEYS).lower(),
    )


def normalize_structure(rows: Optional[Iterable[Mapping[str, Any]]]) -> Dict[str, StepPlacement]:
    placements: Dict[str, StepPlacement] = {}
    for row in rows or ():
        step_id = _first_present(row, _STEP_KEYS)
        lesson_id = _as_int(row.get("lesson_id") or row.get("lessonid") or 0)
        if not step_id or not lesson_id:
            continue
        placements[step_id] = StepPlacement(
            step_id=step_id,
            lesson_id=lesson_id,
            unit_id=_as_int(row.get("module_id") or row.get("moduleid") or 0),
            course_id=_as_int(row.get("course_id") or row.get("courseid") or 0),
        )
    return placements


def _step_number(digits: str) -> Optional[int]:
    try:
        return int(digits)
    except ValueError:
        # longer than the interpreter will convert
        return None


def topic_index(step_id: str) -> int:
    """Synthetic topic index of a step; ids without usable digits land in topic 0."""
    number = _step_number(_NON_DIGIT.sub("", step_id))
    return number // STEPS_PER_TOPIC if number is not None else 0


@dataclass
class StepStat:
    attempts: int = 0
    first_attempt_correct: bool = False
    any_correct: bool = False


@dataclass
class SyntheticTopic:
    first_step_id: str
    placement: Optional[StepPlacement] = None
    steps: List[str] = field(default_factory=list)
    total_attempts: int = 0
    first_pass_count: int = 0
    correct_count: int = 0


class TopicTableBuilder:
    """Compute the topic table for one student.

    Parameters
    ----------
    attention_score / watch_score:
        ``topic_score`` values above which a topic is labelled
        ``Attention`` / ``Watch``.
    attention_first_pass / watch_first_pass:
        First-pass rates below which a topic is labelled ``Attention`` /
        ``Watch`` regardless of its score.
    """

    def __init__(
        self,
        attention_score: float = 2.0,
        watch_score: float = 1.0,
        attention_first_pass: float = 0.4,
        watch_first_pass: float = 0.6,
    ) -> None:
        if watch_score > attention_score:
            raise ValueError("watch_score must not exceed attention_score")
        if not 0.0 <= attention_first_pass <= watch_first_pass <= 1.0:
            raise ValueError("first-pass thresholds must satisfy 0 <= attention <= watch <= 1")
        self.attention_score = attention_score
        self.watch_score = watch_score
        self.attention_first_pass = attention_first_pass
        self.watch_first_pass = watch_first_pass

    def label(self, topic_score: float, first_pass_rate: float) -> TopicLabel:
        if topic_score > self.attention_score or first_pass_rate < self.attention_first_pass:
            return "Attention"
        if topic_score > self.watch_score or first_pass_rate < self.watch_first_pass:
            return "Watch"
        return "Comfortable"

    def step_stats(
        self,
        user_id: str,
        submissions: Iterable[Mapping[str, Any]],
        excluded_user_ids: Iterable[str] = (),
    ) -> Dict[str, StepStat]:
        target = str(user_id).strip().lower()
        excluded = {str(uid).strip().lower() for uid in excluded_user_ids}
        stats: Dict[str, StepStat] = {}
        skipped = 0
        for row in submissions:
            event = normalize_submission(row)
            if event is None:
                skipped += 1
                continue
            row_user = event.user_id.lower()
            if row_user != target or row_user in excluded:
                continue
            stat = stats.get(event.step_id)
            if stat is None:
                stat = StepStat(
                    first_attempt_correct=event.is_correct,
                    any_correct=event.is_correct,
                )
                stats[event.step_id] = stat
            stat.attempts += 1
            if event.is_correct:
                stat.any_correct = True
        if skipped:
            _LOGGER.debug("Skipped %s submission rows without a step id", skipped)
        return stats

    def build(
        self,
        user_id: str,
        submissions: Iterable[Mapping[str, Any]],
        excluded_user_ids: Iterable[str] = (),
        structure: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> List[StudentTopic]:
        stats = self.step_stats(user_id, submissions, excluded_user_ids)
        if not stats:
            return []

        placements = normalize_structure(structure)
        topics: Dict[str, SyntheticTopic] = {}
        for step_id, stat in stats.items():
            title = f"Topic {topic_index(step_id) + 1}"
            topic = topics.get(title)
            if topic is None:
                topic = SyntheticTopic(first_step_id=step_id, placement=placements.get(step_id))
                topics[title] = topic
            topic.steps.append(step_id)
            topic.total_attempts += stat.attempts
            if stat.first_attempt_correct:
                topic.first_pass_count += 1
            if stat.any_correct:
                topic.correct_count += 1

        all_steps = list(stats.values())
        avg_attempts = sum(s.attempts for s in all_steps) / len(all_steps)
        avg_first_pass = sum(1 for s in all_steps if s.first_attempt_correct) / len(all_steps)

        table = [
            self._summarise(title, topic, avg_attempts, avg_first_pass)
            for title, topic in topics.items()
        ]
        table.sort(key=lambda t: t.topic_score, reverse=True)
        _LOGGER.debug("Built %s topics from %s steps for %s", len(table), len(all_steps), user_id)
        return table

    def _summarise(
        self,
        title: str,
        topic: SyntheticTopic,
        avg_attempts: float,
        avg_first_pass: float,
    ) -> StudentTopic:
        steps_attempted = len(topic.steps)
        attempts_per_step = topic.total_attempts / steps_attempted
        first_pass_rate = topic.first_pass_count / steps_attempted
        delta_attempts = attempts_per_step - avg_attempts
        delta_first = first_pass_rate - avg_first_pass
        topic_score = max(0.0, delta_attempts * 0.5 - delta_first * 2)

        placement = topic.placement
        first_step = topic.first_step_id
        return StudentTopic(
            topic_title=title,
            steps_attempted=steps_attempted,
            attempts_per_step=round(attempts_per_step, 2),
            student_first_pass_rate=round(first_pass_rate, 2),
            mean_delta_attempts=round(delta_attempts, 2),
            mean_delta_first=round(delta_first, 2),
            topic_score=round(topic_score, 2),
            label_topic=self.label(topic_score, first_pass_rate),
            lesson_id=placement.lesson_id if placement else None,
            first_step_id=_step_number(first_step) if first_step.isascii() and first_step.isdigit() else None,
            unit_id=placement.unit_id if placement else None,
            course_id=placement.course_id if placement else None,
        )


_DEFAULT_BUILDER = TopicTableBuilder()


def build_topic_table(
    user_id: str,
    submissions: Iterable[Mapping[str, Any]],
    excluded_user_ids: Iterable[str] = (),
    structure: Optional[Iterable[Mapping[str, Any]]] = None,
) -> List[StudentTopic]:
    return _DEFAULT_BUILDER.build(user_id, submissions, excluded_user_ids, structure)
