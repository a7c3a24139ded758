"""Fixed report sentences keyed by signal type, curve label or rule."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class WinType(str, Enum):
    ACHIEVEMENT = "achievement"
    CONSISTENCY = "consistency"
    STEADY = "steady"
    EARLY_PROGRESS = "early_progress"
    TOPIC_WIN = "topic_win"


class FocusType(str, Enum):
    TOPIC_FOCUS = "topic_focus"
    STRUGGLE = "struggle"
    LOW_CONSISTENCY = "low_consistency"
    MOMENTUM_DOWN = "momentum_down"
    LATE_START = "late_start"
    END_DROPOFF = "end_dropoff"


class NextStep(str, Enum):
    REVIEW_TOPIC = "review_topic"
    SHORT_SESSIONS = "short_sessions"
    JOIN_LIVE_SESSION = "join_live_session"
    MAINTAIN_RHYTHM = "maintain_rhythm"
    SHORTER_MORE_FREQUENT = "shorter_more_frequent"
    UNDERSTAND_FIRST = "understand_first"
    KEEP_CHALLENGING = "keep_challenging"


WIN_TEMPLATES: Dict[WinType, str] = {
    WinType.ACHIEVEMENT: "Strong overall performance: your score is well above average.",
    WinType.CONSISTENCY: "Steady engagement throughout: your consistency is strong.",
    WinType.STEADY: "Balanced work pattern: you maintain an even pace across the course.",
    WinType.EARLY_PROGRESS: "Great start: you frontloaded your efforts effectively.",
    WinType.TOPIC_WIN: "High first-pass success rate on comfortable topics.",
}

FOCUS_TEMPLATES: Dict[FocusType, str] = {
    FocusType.TOPIC_FOCUS: '"{detail}" needed extra attempts; revisiting key concepts may help.',
    FocusType.STRUGGLE: "Some topics required many retries; reviewing fundamentals could strengthen understanding.",
    FocusType.LOW_CONSISTENCY: "Overall engagement could be more regular; try establishing a consistent study schedule.",
    FocusType.MOMENTUM_DOWN: "Your activity dropped compared to the previous week; a few short sessions can get you back on track.",
    FocusType.LATE_START: "Slow start pattern; beginning new material earlier could help build understanding.",
    FocusType.END_DROPOFF: "Strong start but activity dropped off; maintaining pace through the end is beneficial.",
}

NEXT_STEP_TEMPLATES: Dict[NextStep, str] = {
    NextStep.REVIEW_TOPIC: (
        'Review "{topic}": start with the steps that took most attempts or were not solved on the first try.'
    ),
    NextStep.SHORT_SESSIONS: "Plan two short sessions (20-30 min) this week to rebuild your momentum.",
    NextStep.JOIN_LIVE_SESSION: "Join the next live session; it is a good place to clarify concepts with peers.",
    NextStep.MAINTAIN_RHYTHM: "Your consistent approach is working well; keep maintaining that rhythm.",
    NextStep.SHORTER_MORE_FREQUENT: "Try shorter, more frequent sessions to improve retention and understanding.",
    NextStep.UNDERSTAND_FIRST: "Focus on understanding core concepts before moving to new topics: quality over speed.",
    NextStep.KEEP_CHALLENGING: "Keep challenging yourself with new topics and do not hesitate to ask for help when needed.",
}

FALLBACK_WIN = "You are making progress. Keep up the good work!"

CURVE_EXPLANATIONS: Dict[str, str] = {
    "linear": "Steady pace throughout",
    "ease": "Gradual, smooth progress overall",
    "ease-in": "You ramp up later; consider an early start each week",
    "ease-out": "Strong start; keep momentum in the second half",
    "ease-in-out": "Work in waves; try to smooth dips with short sessions",
    "no-activity": "No activity pattern detected",
}
DEFAULT_CURVE_EXPLANATION = "Progress pattern varies"


def _coerce(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def render_win(win_type: str) -> Optional[str]:
    key = _coerce(WinType, win_type)
    return WIN_TEMPLATES.get(key) if key else None


def render_focus(focus_type: str, detail: Optional[str] = None) -> Optional[str]:
    """Sentence for a focus signal, or ``None`` for an unknown type."""
    key = _coerce(FocusType, focus_type)
    if key is None:
        return None
    return FOCUS_TEMPLATES[key].format(detail=detail or "")


def render_next_step(step: NextStep, **values: str) -> str:
    return NEXT_STEP_TEMPLATES[step].format(**values)


def explain_curve(easing_label: str) -> str:
    return CURVE_EXPLANATIONS.get(easing_label, DEFAULT_CURVE_EXPLANATION)
