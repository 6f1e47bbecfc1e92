"""
Statistics over a generated schedule.

All functions are pure reducers: they read the schedule (and the
configuration where needed) and never modify them.

"Completed" overflow occupancies (a tracked subject past its last LU) are
not learning: they are excluded from learning days, utilization and phasing.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Union

from semesterflow.generate import first_assessment_dates
from semesterflow.model import DayRecord, DayStatus, TermConfig


@dataclass
class ProgramStats:
    total_days: int = 0
    rest_days: int = 0
    rest_days_by_weekday: Dict[str, int] = field(default_factory=dict)
    sundays: int = 0
    holidays: int = 0
    assessment_days: int = 0
    event_days: int = 0
    working_days: int = 0
    blocked_days: int = 0
    learning_days: int = 0


@dataclass
class UtilizationStats:
    subject_id: str
    subject_name: str
    available: int
    utilized: int
    unutilized: int


@dataclass
class PhaseProgress:
    phase_id: str
    phase_label: str
    planned: Union[int, str]
    completed_before: int


@dataclass
class PhasingStats:
    subject_id: str
    subject_name: str
    phases: List[PhaseProgress]


def program_stats(schedule: List[DayRecord]) -> ProgramStats:
    """
    Count days per status plus learning days.
    """
    stats = ProgramStats(total_days=len(schedule))
    rest_by_day: Counter[str] = Counter()

    for row in schedule:
        if row.day_name == "Sunday":
            stats.sundays += 1

        status = row.status
        if status is DayStatus.WORKING:
            stats.working_days += 1
            if any(occ.counts_as_learning for occ in row.slots.values()):
                stats.learning_days += 1
        elif status is DayStatus.WEEKEND:
            stats.rest_days += 1
            rest_by_day[row.day_name] += 1
        elif status is DayStatus.HOLIDAY:
            stats.holidays += 1
        elif status is DayStatus.CA:
            stats.assessment_days += 1
        elif status is DayStatus.EVENT:
            stats.event_days += 1
        elif status is DayStatus.BLOCKED:
            stats.blocked_days += 1
        else:
            raise ValueError(f"Unhandled day status: {status!r}")

    stats.rest_days_by_weekday = dict(rest_by_day)
    return stats


def utilization_stats(config: TermConfig, schedule: List[DayRecord]) -> List[UtilizationStats]:
    """
    Per tracked subject: slots the weekly pattern offers on working days
    versus slots that actually delivered an LU.
    """
    out: List[UtilizationStats] = []
    for subject in config.subjects:
        if not subject.tracked:
            continue

        available = 0
        utilized = 0
        for row in schedule:
            if row.status is not DayStatus.WORKING:
                continue
            for slot_id, occ in row.slots.items():
                if config.pattern_subject_id(row.day_name, slot_id) != subject.id:
                    continue
                available += 1
                if occ.counts_as_learning and occ.subject_id == subject.id:
                    utilized += 1

        out.append(
            UtilizationStats(
                subject_id=subject.id,
                subject_name=subject.name,
                available=available,
                utilized=utilized,
                unutilized=max(0, available - utilized),
            )
        )
    return out


def phasing_stats(config: TermConfig, schedule: List[DayRecord]) -> List[PhasingStats]:
    """
    Per tracked subject and phase: the planned cumulative LU (end LU of the
    i-th module) against LUs delivered before the phase's first assessment day.
    """
    ca_dates = first_assessment_dates(schedule, config.phases)
    out: List[PhasingStats] = []

    for subject in config.subjects:
        if not subject.tracked:
            continue

        progress: List[PhaseProgress] = []
        for i, phase in enumerate(config.phases):
            planned: Union[int, str] = subject.modules[i].end_lu if i < len(subject.modules) else "N/A"
            cutoff = ca_dates.get(phase.id)
            completed = 0
            if cutoff is not None:
                # ISO dates compare correctly as strings
                for row in schedule:
                    if row.date >= cutoff:
                        break
                    completed += sum(
                        1
                        for occ in row.slots.values()
                        if occ.counts_as_learning and occ.subject_id == subject.id
                    )
            progress.append(
                PhaseProgress(
                    phase_id=phase.id,
                    phase_label=phase.label,
                    planned=planned,
                    completed_before=completed,
                )
            )

        out.append(PhasingStats(subject_id=subject.id, subject_name=subject.name, phases=progress))
    return out
