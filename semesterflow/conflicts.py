"""
Slot conflict detection.

Given the period slots of a configuration, detect slots whose time ranges
overlap. Every slot repeats every day, so the date plays no role.
Overlap rule:
    start < other_end AND end > other_start
"""

from __future__ import annotations

from typing import List, Tuple

from semesterflow.model import Slot


def time_to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    parts = hhmm.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def find_slot_overlaps(slots: List[Slot]) -> List[Tuple[Slot, Slot]]:
    """
    Find overlapping slot pairs (A,B), each pair once, in definition order.
    Slots with unreadable or inverted times are skipped.
    """
    parsed: List[Tuple[int, int, Slot]] = []
    for slot in slots:
        try:
            start = time_to_minutes(slot.start_time)
            end = time_to_minutes(slot.end_time)
        except ValueError:
            continue
        if end <= start:
            continue
        parsed.append((start, end, slot))

    conflicts: List[Tuple[Slot, Slot]] = []
    for i in range(len(parsed)):
        s1, e1, a = parsed[i]
        for j in range(i + 1, len(parsed)):
            s2, e2, b = parsed[j]
            if _overlaps(s1, e1, s2, e2):
                conflicts.append((a, b))
    return conflicts


def invalid_slots(slots: List[Slot]) -> List[Slot]:
    """
    Return slots whose times cannot be read or end before they start.
    """
    bad: List[Slot] = []
    for slot in slots:
        try:
            if time_to_minutes(slot.end_time) <= time_to_minutes(slot.start_time):
                bad.append(slot)
        except ValueError:
            bad.append(slot)
    return bad
