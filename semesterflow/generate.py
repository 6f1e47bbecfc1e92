"""
Schedule assembly.

generate_schedule() walks the term phase by phase:

1. the cursor starts at the term start
2. each phase window is computed from the cursor and every date in it is
   materialized (assessment / event / ordinary)
3. the cursor moves to the window end
4. once phases are exhausted, the remaining dates up to the term end are
   materialized as ordinary days

The schedule is a pure function of the configuration. An invalid
configuration yields an empty list instead of an error.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional

from semesterflow.calendar_utils import DAYS_OF_WEEK, add_days, add_years, to_date
from semesterflow.materialize import LUCounters, holiday_reason_map, materialize_day
from semesterflow.model import DayKind, DayRecord, DayStatus, Phase, TermConfig, WeekNumbering
from semesterflow.phases import compute_phase_window

logger = logging.getLogger(__name__)

# Hard ceiling on materialized days per run
MAX_DAYS = 5000

MAX_TERM_YEARS = 5


def term_bounds(config: TermConfig) -> Optional[tuple[date, date]]:
    """
    Return (start, end) of the term, or None if the range is unusable.

    Unusable means: a missing or unparseable date, start after end, or an end
    more than MAX_TERM_YEARS after the start.
    """
    start = to_date(config.start_date)
    end = to_date(config.end_date)
    if start is None or end is None:
        return None
    if start > end:
        return None
    if end > add_years(start, MAX_TERM_YEARS):
        return None
    return start, end


def generate_schedule(config: TermConfig, numbering: Optional[WeekNumbering] = None) -> List[DayRecord]:
    """
    Generate the full day-by-day schedule of a term.

    `numbering` overrides config.week_numbering for this call.
    """
    bounds = term_bounds(config)
    if bounds is None:
        logger.warning(
            "Cannot generate schedule: invalid term range %r .. %r",
            config.start_date,
            config.end_date,
        )
        return []
    start, end = bounds

    policy = numbering or config.week_numbering
    holiday_reasons = holiday_reason_map(config)
    working_days = set(config.working_days)

    def is_working(d: date) -> bool:
        return DAYS_OF_WEEK[d.weekday()] in working_days and d.isoformat() not in holiday_reasons

    # Fresh counters per run, never shared
    counters = LUCounters()
    rows: List[DayRecord] = []

    def emit(d: date, kind: DayKind, phase: Optional[Phase], anchor: date) -> bool:
        if len(rows) >= MAX_DAYS:
            return False
        rows.append(materialize_day(d, kind, phase, config, counters, anchor, holiday_reasons))
        return True

    cursor = start
    truncated = False

    for phase in config.phases:
        if cursor > end or truncated:
            break
        window = compute_phase_window(cursor, phase, end, is_working)
        anchor = window.start if policy is WeekNumbering.PER_PHASE else start
        for d in window.dates():
            if not emit(d, window.classify(d), phase, anchor):
                truncated = True
                break
        cursor = window.end

    anchor = cursor if policy is WeekNumbering.PER_PHASE else start
    while cursor <= end and not truncated:
        if not emit(cursor, DayKind.NORMAL, None, anchor):
            truncated = True
            break
        cursor = add_days(cursor, 1)

    if truncated:
        logger.warning("Schedule truncated at %d days (ceiling reached)", MAX_DAYS)

    return rows


def first_assessment_dates(schedule: List[DayRecord], phases: List[Phase]) -> Dict[str, Optional[str]]:
    """
    Map each phase id to the first assessment date tagged with it (or None).
    """
    out: Dict[str, Optional[str]] = {p.id: None for p in phases}
    for row in schedule:
        if row.status is DayStatus.CA and row.phase_id in out and out[row.phase_id] is None:
            out[row.phase_id] = row.date
    return out
