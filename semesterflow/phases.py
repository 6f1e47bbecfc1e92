"""
Phase windowing.

Each configured phase owns a window of `week_order` weeks starting at the
cursor left by the previous phase. The last working days of that window are
reserved for assessment and event days:

    window:  [ ... ordinary ... | assessment x duration | event x event_days )

If the window holds fewer working days than the block needs, assessment days
are filled first and event days only get what is left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Set

from semesterflow.calendar_utils import add_days, date_range
from semesterflow.model import DayKind, Phase

logger = logging.getLogger(__name__)


@dataclass
class PhaseWindow:
    """
    Result of windowing one phase.

    `end` is exclusive and is the cursor for the next phase.
    """

    phase: Phase
    start: date
    end: date
    assessment_dates: Set[date] = field(default_factory=set)
    event_dates: Set[date] = field(default_factory=set)

    def dates(self) -> List[date]:
        return list(date_range(self.start, self.end))

    def classify(self, d: date) -> DayKind:
        if d in self.assessment_dates:
            return DayKind.ASSESSMENT
        if d in self.event_dates:
            return DayKind.EVENT
        return DayKind.NORMAL


def split_block(working: List[date], duration: int, event_days: int) -> tuple[List[date], List[date]]:
    """
    Split the working days of a window into (assessment days, event days).
    """
    duration = max(0, duration)
    event_days = max(0, event_days)
    block = duration + event_days

    if len(working) >= block:
        tail = working[len(working) - block:]
        return tail[:duration], tail[duration:]

    # Window too short: assessment first, events take the remainder
    assessment = working[:duration]
    events = working[len(assessment):len(assessment) + event_days]
    return assessment, events


def compute_phase_window(
    cursor: date,
    phase: Phase,
    term_end: date,
    is_working: Callable[[date], bool],
) -> PhaseWindow:
    """
    Compute the window of one phase starting at `cursor`.

    The window is clamped to the term end. A phase with week_order < 1 has an
    empty window and leaves the cursor where it is.
    """
    weeks = max(0, phase.week_order)
    end = min(add_days(cursor, 7 * weeks), add_days(term_end, 1))
    if end < cursor:
        end = cursor

    working = [d for d in date_range(cursor, end) if is_working(d)]
    assessment, events = split_block(working, phase.duration, phase.event_days)

    logger.debug(
        "Phase %s: window %s..%s, %d working days, %d assessment, %d event",
        phase.label,
        cursor,
        end,
        len(working),
        len(assessment),
        len(events),
    )

    return PhaseWindow(
        phase=phase,
        start=cursor,
        end=end,
        assessment_dates=set(assessment),
        event_dates=set(events),
    )
