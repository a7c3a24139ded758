"""Rank signals into the short highlight list shown at the top of a report."""

from __future__ import annotations

from typing import Iterable, List

from engines.signals import Signal
from engines.templates import FALLBACK_WIN, render_focus, render_win
from schemas import StudentHighlight


class HighlightSynthesizer:
    def __init__(self, wins_shown: int = 2, focus_shown: int = 2, max_highlights: int = 5) -> None:
        if min(wins_shown, focus_shown) < 0 or max_highlights < 1:
            raise ValueError("highlight limits must be non-negative and allow at least one entry")
        self.wins_shown = wins_shown
        self.focus_shown = focus_shown
        self.max_highlights = max_highlights

    @staticmethod
    def _ranked(signals: Iterable[Signal], limit: int) -> List[Signal]:
        return sorted(signals, key=lambda s: s.score, reverse=True)[:limit]

    def synthesize(self, wins: Iterable[Signal], focus: Iterable[Signal]) -> List[StudentHighlight]:
        highlights: List[StudentHighlight] = []

        for win in self._ranked(wins, self.wins_shown):
            text = render_win(win.type)
            if text:
                highlights.append(StudentHighlight(type="win", text=text))

        for item in self._ranked(focus, self.focus_shown):
            text = render_focus(item.type, item.detail)
            if text:
                highlights.append(StudentHighlight(type="focus", text=text, reason=item.type))

        # A report never opens on a focus item.
        if not highlights or highlights[0].type != "win":
            highlights.insert(0, StudentHighlight(type="win", text=FALLBACK_WIN))

        return highlights[: self.max_highlights]
