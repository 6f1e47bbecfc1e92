"""
Central data model definitions used across the project.

This module defines the canonical structure of a term configuration and of
the generated schedule so that:
- generation, statistics, import and export share the same field names
- statuses and slot kinds are closed enumerations instead of loose strings
- a configuration is a plain value that can be copied and regenerated freely
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class DayStatus(str, Enum):
    """
    Status of one calendar date in the generated schedule.

    BLOCKED is reserved: no generation path produces it yet.
    """

    WORKING = "working"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"
    BLOCKED = "blocked"
    CA = "ca"
    EVENT = "event"


class SlotKind(str, Enum):
    SUBJECT = "subject"
    CA = "ca"
    EVENT = "event"
    EMPTY = "empty"


class DayKind(str, Enum):
    """
    Classification a phase window assigns to a date before it is materialized.
    """

    NORMAL = "normal"
    ASSESSMENT = "assessment"
    EVENT = "event"


class WeekNumbering(str, Enum):
    """
    How week / day-in-week numbers are anchored.

    CONTINUOUS counts from the term start, PER_PHASE restarts at every
    phase window (and at the trailing block after the last phase).
    """

    CONTINUOUS = "continuous"
    PER_PHASE = "per-phase"


@dataclass
class Slot:
    """
    One recurring daily period, e.g. "Period 1, 09:00-10:30".
    """

    id: str
    label: str
    start_time: str
    end_time: str


@dataclass
class Module:
    """
    A named, coloured, contiguous range of a subject's LU numbers.
    """

    id: str
    name: str
    start_lu: int
    end_lu: int
    color: str

    def contains(self, lu_number: int) -> bool:
        return self.start_lu <= lu_number <= self.end_lu


@dataclass
class Subject:
    """
    One subject of the roster.

    total_lus == 0 means the subject is untracked: it is shown by name and
    never consumes learning units.
    """

    id: str
    name: str
    color: str
    total_lus: int = 0
    modules: List[Module] = field(default_factory=list)
    course_id: Optional[str] = None
    mentor_id: Optional[str] = None
    default_lu_id: Optional[str] = None
    lu_id_map: Dict[int, str] = field(default_factory=dict)
    course_id_map: Dict[int, str] = field(default_factory=dict)

    @property
    def tracked(self) -> bool:
        return self.total_lus > 0

    def module_for(self, lu_number: int) -> Optional[Module]:
        for module in self.modules:
            if module.contains(lu_number):
                return module
        return None


@dataclass
class Holiday:
    id: str
    date: str
    reason: str


@dataclass
class Phase:
    """
    One assessment/event cycle.

    week_order is the window length in weeks counted from the end of the
    previous phase; duration and event_days are working days reserved at the
    end of that window.
    """

    id: str
    label: str
    week_order: int
    duration: int
    event_days: int = 0


@dataclass
class TermConfig:
    """
    Everything needed to generate one term schedule.
    """

    name: str = "Academic Phased Plan"
    squad_number: str = ""
    start_date: str = ""
    end_date: str = ""
    working_days: List[str] = field(default_factory=list)
    slots: List[Slot] = field(default_factory=list)
    subjects: List[Subject] = field(default_factory=list)
    weekly_pattern: Dict[str, Dict[str, str]] = field(default_factory=dict)
    holidays: List[Holiday] = field(default_factory=list)
    phases: List[Phase] = field(default_factory=list)
    week_numbering: WeekNumbering = WeekNumbering.CONTINUOUS

    def subject_by_id(self, subject_id: Optional[str]) -> Optional[Subject]:
        if not subject_id:
            return None
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        return None

    def pattern_subject_id(self, day_name: str, slot_id: str) -> Optional[str]:
        return self.weekly_pattern.get(day_name, {}).get(slot_id)


@dataclass
class SlotOccupancy:
    """
    What one slot shows on one day.

    For kind == SUBJECT, lu_number is set only for tracked subjects inside
    their LU range; completed marks an occupancy past total_lus.
    """

    kind: SlotKind
    label: str = ""
    color: Optional[str] = None
    subject_id: Optional[str] = None
    lu_number: Optional[int] = None
    course_id: Optional[str] = None
    completed: bool = False

    @property
    def counts_as_learning(self) -> bool:
        return self.kind is SlotKind.SUBJECT and not self.completed


@dataclass
class DayRecord:
    """
    One calendar date of the generated schedule.
    """

    date: str
    day_name: str
    week_number: int
    day_in_week: int
    status: DayStatus
    reason: str = ""
    phase_id: Optional[str] = None
    slots: Dict[str, SlotOccupancy] = field(default_factory=dict)

    @property
    def position_label(self) -> str:
        return f"W{self.week_number}D{self.day_in_week}"
