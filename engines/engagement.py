"""Overall engagement level across the whole course period."""

from __future__ import annotations

from schemas import DynamicSummaryRow, PerformanceRow, StudentEngagement

HIGH_ENGAGEMENT = 0.6
MEDIUM_ENGAGEMENT = 0.3


def calculate_engagement(performance: PerformanceRow, curve: DynamicSummaryRow) -> StudentEngagement:
    """Blend active-day coverage with curve consistency into a level."""
    ratio = performance.active_days_ratio
    score = (ratio + curve.consistency) / 2
    active = f"active on {performance.active_days} days ({round(ratio * 100)}% of the period)"

    if score >= HIGH_ENGAGEMENT:
        level = "High"
        description = f"You've been highly engaged throughout the course, {active}."
    elif score >= MEDIUM_ENGAGEMENT:
        level = "Medium"
        description = f"You've maintained moderate engagement, {active}."
    else:
        level = "Low"
        description = f"Your overall engagement shows room for improvement: you were {active}."

    return StudentEngagement(level=level, description=description, active_days_ratio=ratio)
