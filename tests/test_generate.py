"""
Tests for schedule generation.

Properties checked here:
- one record per date, ascending, no gaps
- holiday precedence over assessment/event placement
- LU numbers run 1..N per subject, then "completed"
- generation is idempotent and degrades to [] on bad input
"""

import unittest
from datetime import date, timedelta
from unittest import mock

import semesterflow.generate as generate_mod
from semesterflow.generate import first_assessment_dates, generate_schedule
from semesterflow.model import (
    DayStatus,
    Holiday,
    Module,
    Phase,
    Slot,
    SlotKind,
    Subject,
    TermConfig,
    WeekNumbering,
)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def base_config(start: str = "2025-01-06", end: str = "2025-01-10", **kwargs) -> TermConfig:
    subject_a = Subject(
        id="a",
        name="Subject A",
        color="#6366f1",
        total_lus=3,
        modules=[Module(id="m1", name="Module 1", start_lu=1, end_lu=3, color="red")],
    )
    config = TermConfig(
        start_date=start,
        end_date=end,
        working_days=list(WEEKDAYS),
        slots=[Slot(id="s1", label="Slot 1", start_time="09:00", end_time="10:30")],
        subjects=[subject_a],
        weekly_pattern={"Monday": {"s1": "a"}},
    )
    for k, v in kwargs.items():
        setattr(config, k, v)
    return config


class TestMinimalScenario(unittest.TestCase):
    def test_single_week_single_subject(self) -> None:
        schedule = generate_schedule(base_config())

        self.assertEqual(len(schedule), 5)
        self.assertTrue(all(r.status is DayStatus.WORKING for r in schedule))

        monday = schedule[0].slots["s1"]
        self.assertEqual(schedule[0].day_name, "Monday")
        self.assertIs(monday.kind, SlotKind.SUBJECT)
        self.assertEqual(monday.lu_number, 1)
        self.assertEqual(monday.label, "Subject A - LU 1")
        self.assertEqual(monday.color, "red")

        for row in schedule[1:]:
            self.assertIs(row.slots["s1"].kind, SlotKind.EMPTY)

    def test_dates_are_contiguous_and_ascending(self) -> None:
        schedule = generate_schedule(
            base_config(end="2025-03-02", phases=[Phase(id="p1", label="CA 1", week_order=3, duration=2, event_days=1)])
        )
        start = date(2025, 1, 6)
        expected = [(start + timedelta(days=i)).isoformat() for i in range(56)]
        self.assertEqual([r.date for r in schedule], expected)


class TestPhases(unittest.TestCase):
    def test_assessment_then_event_at_end_of_window(self) -> None:
        config = base_config(end="2025-01-17", phases=[Phase(id="p1", label="CA 1", week_order=1, duration=2, event_days=1)])
        by_date = {r.date: r for r in generate_schedule(config)}

        self.assertIs(by_date["2025-01-08"].status, DayStatus.CA)
        self.assertIs(by_date["2025-01-09"].status, DayStatus.CA)
        self.assertEqual(by_date["2025-01-09"].reason, "CA 1")
        self.assertIs(by_date["2025-01-10"].status, DayStatus.EVENT)
        self.assertEqual(by_date["2025-01-10"].reason, "Event (CA 1)")
        self.assertIs(by_date["2025-01-07"].status, DayStatus.WORKING)

        # phase tag inside the window only
        self.assertEqual(by_date["2025-01-12"].phase_id, "p1")
        self.assertIsNone(by_date["2025-01-13"].phase_id)
        self.assertIs(by_date["2025-01-13"].status, DayStatus.WORKING)

    def test_short_window_has_no_event_days(self) -> None:
        config = base_config(end="2025-01-07", phases=[Phase(id="p1", label="CA 1", week_order=1, duration=2, event_days=1)])
        schedule = generate_schedule(config)
        self.assertEqual([r.status for r in schedule], [DayStatus.CA, DayStatus.CA])

    def test_holiday_precedence(self) -> None:
        config = base_config(
            end="2025-01-12",
            holidays=[Holiday(id="h1", date="2025-01-08", reason="Founders Day")],
            phases=[Phase(id="p1", label="CA 1", week_order=1, duration=2, event_days=1)],
        )
        by_date = {r.date: r for r in generate_schedule(config)}

        self.assertIs(by_date["2025-01-08"].status, DayStatus.HOLIDAY)
        self.assertEqual(by_date["2025-01-08"].reason, "Founders Day")
        # block moved onto the remaining working days: Tue, Thu, Fri
        self.assertIs(by_date["2025-01-07"].status, DayStatus.CA)
        self.assertIs(by_date["2025-01-09"].status, DayStatus.CA)
        self.assertIs(by_date["2025-01-10"].status, DayStatus.EVENT)
        self.assertIs(by_date["2025-01-11"].status, DayStatus.WEEKEND)
        self.assertEqual(by_date["2025-01-11"].reason, "Rest Day")

    def test_phases_beyond_term_end_are_ignored(self) -> None:
        config = base_config(
            end="2025-01-12",
            phases=[
                Phase(id="p1", label="CA 1", week_order=2, duration=1),
                Phase(id="p2", label="CA 2", week_order=2, duration=1),
            ],
        )
        schedule = generate_schedule(config)
        self.assertEqual(len(schedule), 7)
        self.assertEqual({r.phase_id for r in schedule}, {"p1"})

    def test_first_assessment_dates(self) -> None:
        config = base_config(
            end="2025-01-24",
            phases=[
                Phase(id="p1", label="CA 1", week_order=1, duration=2),
                Phase(id="p2", label="CA 2", week_order=1, duration=0, event_days=1),
            ],
        )
        dates = first_assessment_dates(generate_schedule(config), config.phases)
        self.assertEqual(dates, {"p1": "2025-01-09", "p2": None})

    def test_later_phase_counts_from_previous_window_end(self) -> None:
        config = base_config(
            end="2025-01-31",
            phases=[
                Phase(id="p1", label="CA 1", week_order=1, duration=1),
                Phase(id="p2", label="CA 2", week_order=2, duration=1, event_days=1),
            ],
        )
        by_date = {r.date: r for r in generate_schedule(config)}

        self.assertIs(by_date["2025-01-10"].status, DayStatus.CA)
        self.assertEqual(by_date["2025-01-10"].phase_id, "p1")

        # p2 window is 2025-01-13..2025-01-26; block on its last two working days
        placed = {d: (r.status, r.phase_id) for d, r in by_date.items() if r.status in (DayStatus.CA, DayStatus.EVENT)}
        self.assertEqual(
            placed,
            {
                "2025-01-10": (DayStatus.CA, "p1"),
                "2025-01-23": (DayStatus.CA, "p2"),
                "2025-01-24": (DayStatus.EVENT, "p2"),
            },
        )
        self.assertEqual(by_date["2025-01-13"].phase_id, "p2")
        self.assertIs(by_date["2025-01-26"].status, DayStatus.WEEKEND)
        self.assertEqual(by_date["2025-01-26"].phase_id, "p2")
        self.assertIs(by_date["2025-01-27"].status, DayStatus.WORKING)
        self.assertIsNone(by_date["2025-01-27"].phase_id)


class TestLUSequencing(unittest.TestCase):
    def test_lu_numbers_then_completed(self) -> None:
        config = base_config(
            end="2025-01-08",
            slots=[
                Slot(id="s1", label="Slot 1", start_time="09:00", end_time="10:30"),
                Slot(id="s2", label="Slot 2", start_time="11:00", end_time="12:30"),
            ],
            weekly_pattern={day: {"s1": "a", "s2": "a"} for day in WEEKDAYS},
        )
        config.subjects[0].total_lus = 4
        schedule = generate_schedule(config)

        labels = [r.slots[s].label for r in schedule for s in ("s1", "s2")]
        self.assertEqual(
            labels,
            [
                "Subject A - LU 1",
                "Subject A - LU 2",
                "Subject A - LU 3",
                "Subject A - LU 4",
                "Subject A - completed",
                "Subject A - completed",
            ],
        )

    def test_counters_do_not_leak_between_runs(self) -> None:
        config = base_config()
        first = generate_schedule(config)
        second = generate_schedule(config)
        self.assertEqual(first, second)
        self.assertEqual(second[0].slots["s1"].lu_number, 1)


class TestNumbering(unittest.TestCase):
    def test_continuous_and_per_phase(self) -> None:
        config = base_config(end="2025-01-19", phases=[Phase(id="p1", label="CA 1", week_order=1, duration=1)])

        continuous = {r.date: r for r in generate_schedule(config)}
        self.assertEqual(continuous["2025-01-13"].position_label, "W2D1")

        per_phase = {r.date: r for r in generate_schedule(config, WeekNumbering.PER_PHASE)}
        self.assertEqual(per_phase["2025-01-13"].position_label, "W1D1")
        self.assertEqual(per_phase["2025-01-19"].position_label, "W1D7")

    def test_policy_from_config(self) -> None:
        config = base_config(
            end="2025-01-19",
            phases=[Phase(id="p1", label="CA 1", week_order=1, duration=1)],
            week_numbering=WeekNumbering.PER_PHASE,
        )
        by_date = {r.date: r for r in generate_schedule(config)}
        self.assertEqual(by_date["2025-01-14"].position_label, "W1D2")


class TestDegenerateConfigs(unittest.TestCase):
    def test_invalid_ranges_give_empty_schedule(self) -> None:
        self.assertEqual(generate_schedule(base_config(start="", end="")), [])
        self.assertEqual(generate_schedule(base_config(start="garbage")), [])
        self.assertEqual(generate_schedule(base_config(start="2025-01-10", end="2025-01-06")), [])
        self.assertEqual(generate_schedule(base_config(end="2031-01-07")), [])

    def test_single_day_term(self) -> None:
        schedule = generate_schedule(base_config(end="2025-01-06"))
        self.assertEqual(len(schedule), 1)

    def test_iteration_ceiling_truncates(self) -> None:
        with mock.patch.object(generate_mod, "MAX_DAYS", 3):
            schedule = generate_schedule(
                base_config(phases=[Phase(id="p1", label="CA 1", week_order=1, duration=1)])
            )
        self.assertEqual(len(schedule), 3)

    def test_flexible_date_encodings(self) -> None:
        schedule = generate_schedule(base_config(start="6/1/2025", end="10-01-2025"))
        self.assertEqual(len(schedule), 5)
        self.assertEqual(schedule[0].date, "2025-01-06")


if __name__ == "__main__":
    unittest.main()
