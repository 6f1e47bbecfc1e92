"""
Day materialization and learning-unit (LU) sequencing.

materialize_day() turns one calendar date into one DayRecord. Precedence:

    holiday > rest day > assessment > event > ordinary working day

On ordinary working days every slot is resolved through the weekly pattern.
Tracked subjects (total_lus > 0) consume one LU per occupied slot, counted by
an LUCounters table that lives for exactly one generation run.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from semesterflow.calendar_utils import DAYS_OF_WEEK, parse_flexible_date
from semesterflow.model import (
    DayKind,
    DayRecord,
    DayStatus,
    Phase,
    SlotKind,
    SlotOccupancy,
    Subject,
    TermConfig,
)

COMPLETED_COLOR = "#94a3b8"

ASSESSMENT_LABEL = "ASSESSMENT"
EVENT_LABEL = "EVENT"


class LUCounters:
    """
    Per-subject LU counters for one generation run.

    Never share an instance between runs: create a new one (or reset()) so
    that counts from one schedule do not leak into the next.
    """

    def __init__(self) -> None:
        self._counts: Dict[str, int] = defaultdict(int)

    def next(self, subject_id: str) -> int:
        self._counts[subject_id] += 1
        return self._counts[subject_id]

    def current(self, subject_id: str) -> int:
        return self._counts.get(subject_id, 0)

    def reset(self) -> None:
        self._counts.clear()


def week_position(day: date, anchor: date) -> tuple[int, int]:
    """
    Return (week_number, day_in_week), both 1-based, relative to `anchor`.
    """
    diff = (day - anchor).days
    return diff // 7 + 1, diff % 7 + 1


def resolve_subject_slot(subject: Subject, counters: LUCounters) -> SlotOccupancy:
    """
    Build the occupancy of one slot held by `subject` on an ordinary day.
    """
    if not subject.tracked:
        return SlotOccupancy(
            kind=SlotKind.SUBJECT,
            label=subject.name,
            color=subject.color,
            subject_id=subject.id,
            course_id=subject.course_id,
        )

    lu = counters.next(subject.id)
    if lu > subject.total_lus:
        return SlotOccupancy(
            kind=SlotKind.SUBJECT,
            label=f"{subject.name} - completed",
            color=COMPLETED_COLOR,
            subject_id=subject.id,
            completed=True,
        )

    module = subject.module_for(lu)
    return SlotOccupancy(
        kind=SlotKind.SUBJECT,
        label=f"{subject.name} - LU {lu}",
        color=module.color if module else subject.color,
        subject_id=subject.id,
        lu_number=lu,
        course_id=subject.course_id_map.get(lu) or subject.course_id,
    )


def _day_status(
    day_str: str,
    name: str,
    kind: DayKind,
    phase: Optional[Phase],
    config: TermConfig,
    holiday_reasons: Dict[str, str],
) -> tuple[DayStatus, str]:
    if day_str in holiday_reasons:
        return DayStatus.HOLIDAY, holiday_reasons[day_str] or "Holiday"
    if name not in config.working_days:
        return DayStatus.WEEKEND, "Rest Day"
    if kind is DayKind.ASSESSMENT:
        return DayStatus.CA, phase.label if phase else "Assessment"
    if kind is DayKind.EVENT:
        return DayStatus.EVENT, f"Event ({phase.label if phase else ''})"
    return DayStatus.WORKING, ""


def materialize_day(
    day: date,
    kind: DayKind,
    phase: Optional[Phase],
    config: TermConfig,
    counters: LUCounters,
    anchor: date,
    holiday_reasons: Optional[Dict[str, str]] = None,
) -> DayRecord:
    """
    Materialize one date into a DayRecord.

    `holiday_reasons` maps normalized holiday dates to reasons; callers that
    materialize many days pass it in once instead of rebuilding it per day.
    """
    if holiday_reasons is None:
        holiday_reasons = holiday_reason_map(config)

    day_str = day.isoformat()
    name = DAYS_OF_WEEK[day.weekday()]
    status, reason = _day_status(day_str, name, kind, phase, config, holiday_reasons)

    slots: Dict[str, SlotOccupancy] = {}
    for slot in config.slots:
        if status is DayStatus.CA:
            slots[slot.id] = SlotOccupancy(kind=SlotKind.CA, label=ASSESSMENT_LABEL)
        elif status is DayStatus.EVENT:
            slots[slot.id] = SlotOccupancy(kind=SlotKind.EVENT, label=EVENT_LABEL)
        elif status is DayStatus.WORKING:
            subject = config.subject_by_id(config.pattern_subject_id(name, slot.id))
            if subject is None:
                slots[slot.id] = SlotOccupancy(kind=SlotKind.EMPTY)
            else:
                slots[slot.id] = resolve_subject_slot(subject, counters)
        elif status in (DayStatus.HOLIDAY, DayStatus.WEEKEND, DayStatus.BLOCKED):
            slots[slot.id] = SlotOccupancy(kind=SlotKind.EMPTY)
        else:
            raise ValueError(f"Unhandled day status: {status!r}")

    week_number, day_in_week = week_position(day, anchor)
    return DayRecord(
        date=day_str,
        day_name=name,
        week_number=week_number,
        day_in_week=day_in_week,
        status=status,
        reason=reason,
        phase_id=phase.id if phase else None,
        slots=slots,
    )


def holiday_reason_map(config: TermConfig) -> Dict[str, str]:
    """
    Map normalized holiday dates ("YYYY-MM-DD") to their reasons.
    """
    out: Dict[str, str] = {}
    for h in config.holidays:
        key = parse_flexible_date(h.date)
        if isinstance(key, str) and key:
            out[key] = (h.reason or "").strip()
    return out
