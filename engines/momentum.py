"""Week-over-week activity momentum from a daily activity series."""

from __future__ import annotations

import logging
from typing import Iterable, List

from schemas import DynamicSeriesRow, StudentMomentum

_LOGGER = logging.getLogger(__name__)

WINDOW_DAYS = 7
INSUFFICIENT_DATA_NOTE = "Not enough data to calculate momentum (need at least 14 days)."


class MomentumCalculator:
    """Compare the last seven days of activity with the seven before them."""

    def __init__(self, window_days: int = WINDOW_DAYS, threshold: float = 0.15) -> None:
        if window_days < 1:
            raise ValueError("window_days must be positive")
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.window_days = window_days
        self.threshold = threshold

    @property
    def min_rows(self) -> int:
        return self.window_days * 2

    def calculate(self, series: Iterable[DynamicSeriesRow]) -> StudentMomentum:
        rows: List[DynamicSeriesRow] = sorted(series, key=lambda r: r.date_iso)
        if len(rows) < self.min_rows:
            _LOGGER.debug("Momentum unavailable: %s of %s required days", len(rows), self.min_rows)
            return StudentMomentum(trend="Unknown", delta=0.0, note=INSUFFICIENT_DATA_NOTE)

        window = self.window_days
        last_sum = sum(r.activity_total for r in rows[-window:])
        prev_sum = sum(r.activity_total for r in rows[-2 * window:-window])
        delta = (last_sum - prev_sum) / prev_sum if prev_sum > 0 else 0.0

        pct = round(abs(delta) * 100)
        if delta >= self.threshold:
            return StudentMomentum(
                trend="Up",
                delta=delta,
                note=f"Activity increased by {pct}% compared to the previous week.",
            )
        if delta <= -self.threshold:
            return StudentMomentum(
                trend="Down",
                delta=delta,
                note=f"Activity decreased by {pct}% compared to the previous week.",
            )
        return StudentMomentum(trend="Flat", delta=delta, note="Activity is similar to the previous week.")


_DEFAULT_CALCULATOR = MomentumCalculator()


def calculate_momentum(series: Iterable[DynamicSeriesRow]) -> StudentMomentum:
    return _DEFAULT_CALCULATOR.calculate(series)
