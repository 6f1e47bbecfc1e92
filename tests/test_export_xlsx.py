"""
Tests for spreadsheet export.

Structured matrix contract:
- row 1: squad number (stripped), row 2: fixed header
- one row per delivered subject slot, times as HHmm
- lu_id: per-LU map, then default LU id, then LU_<n>
"""

import tempfile
import unittest
from pathlib import Path

from openpyxl import load_workbook

from semesterflow.export_xlsx import (
    MATRIX_HEADER,
    SCHEDULE_SHEET,
    STATS_SHEET,
    TEMPLATE_SHEETS,
    compact_time,
    export_report,
    export_structured_matrix,
    matrix_rows,
    read_structured_matrix,
    report_filename,
    resolve_lu_id,
    write_template,
)
from semesterflow.generate import generate_schedule
from semesterflow.model import Module, Phase, Slot, Subject, TermConfig

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def make_config() -> TermConfig:
    physics = Subject(
        id="phy",
        name="Physics",
        color="#6366f1",
        total_lus=3,
        modules=[Module(id="m1", name="Module 1", start_lu=1, end_lu=3, color="#ef4444")],
        course_id="C-1",
        mentor_id="M-9",
        lu_id_map={1: "LU-A1"},
        course_id_map={2: "C-2"},
    )
    elective = Subject(id="el", name="Elective", color="#ec4899", total_lus=0, course_id="EL-1", default_lu_id="EL-LU")
    return TermConfig(
        name="Spring Plan 2025",
        squad_number="  SQ-7 ",
        start_date="2025-01-06",
        end_date="2025-01-19",
        working_days=list(WEEKDAYS),
        slots=[
            Slot(id="s1", label="Period 1", start_time="09:00", end_time="10:30"),
            Slot(id="s2", label="Period 2", start_time="11:00", end_time="12:30"),
        ],
        subjects=[physics, elective],
        weekly_pattern={"Monday": {"s1": "phy"}, "Tuesday": {"s1": "phy", "s2": "el"}},
        phases=[Phase(id="p1", label="CA 1", week_order=1, duration=1, event_days=1)],
    )


class TestHelpers(unittest.TestCase):
    def test_compact_time(self) -> None:
        self.assertEqual(compact_time("09:00"), "0900")
        self.assertEqual(compact_time(""), "")

    def test_resolve_lu_id_fallbacks(self) -> None:
        s = Subject(id="x", name="X", color="", total_lus=5, lu_id_map={1: "X-1"})
        self.assertEqual(resolve_lu_id(s, 1), "X-1")
        self.assertEqual(resolve_lu_id(s, 2), "LU_2")
        s.default_lu_id = "X-DEF"
        self.assertEqual(resolve_lu_id(s, 2), "X-DEF")

    def test_report_filename(self) -> None:
        self.assertEqual(report_filename(make_config()), "Spring_Plan_2025_Academic_Report.xlsx")


class TestStructuredMatrix(unittest.TestCase):
    def test_rows_follow_generated_slots(self) -> None:
        config = make_config()
        rows = matrix_rows(config, generate_schedule(config))

        # Mon 6 LU1, Tue 7 LU2 + elective, Mon 13 LU3, Tue 14 completed (skipped) + elective
        self.assertEqual(len(rows), 5)
        first = rows[0]
        self.assertEqual(
            first.as_list(), [1, "2025-01-06", "0900", "1030", "C-1", "LU-A1", "M-9"]
        )
        self.assertEqual(rows[1].course_id, "C-2")
        self.assertEqual(rows[1].lu_id, "LU_2")
        self.assertEqual(rows[2].as_list(), [2, "2025-01-07", "1100", "1230", "EL-1", "EL-LU", ""])
        self.assertEqual([r.date for r in rows][-1], "2025-01-14")

    def test_roundtrip_matches_generator(self) -> None:
        config = make_config()
        schedule = generate_schedule(config)

        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "matrix.xlsx"
            n = export_structured_matrix(config, schedule, out)

            wb = load_workbook(out)
            ws = wb.active
            self.assertEqual(ws.cell(row=1, column=1).value, "SQ-7")
            self.assertEqual([c.value for c in ws[2]], MATRIX_HEADER)
            wb.close()

            squad, rows = read_structured_matrix(out)

        self.assertEqual(squad, "SQ-7")
        self.assertEqual(n, len(rows))

        expected = set()
        for day in schedule:
            for slot in config.slots:
                occ = day.slots[slot.id]
                if not occ.counts_as_learning:
                    continue
                subject = config.subject_by_id(occ.subject_id)
                expected.add(
                    (
                        day.date,
                        slot.start_time.replace(":", ""),
                        slot.end_time.replace(":", ""),
                        occ.course_id or "",
                        resolve_lu_id(subject, occ.lu_number),
                    )
                )
        self.assertEqual({(r.date, r.start, r.end, r.course_id, r.lu_id) for r in rows}, expected)


class TestReport(unittest.TestCase):
    def test_report_sheets(self) -> None:
        config = make_config()
        schedule = generate_schedule(config)

        with tempfile.TemporaryDirectory() as d:
            out = export_report(config, schedule, Path(d) / "report.xlsx")
            wb = load_workbook(out)

            self.assertEqual(wb.sheetnames, [SCHEDULE_SHEET, STATS_SHEET])
            ws = wb[SCHEDULE_SHEET]
            header = [c.value for c in ws[1]]
            self.assertEqual(header, ["Phase Wk/D", "Date", "Day", "Status", "Reason", "Period 1", "Period 2"])
            self.assertEqual(ws.max_row, len(schedule) + 1)

            monday = [c.value for c in ws[2]]
            self.assertEqual(monday[:4], ["W1D1", "2025-01-06", "Monday", "working"])
            self.assertFalse(monday[4])
            self.assertEqual(monday[5], "Physics - LU 1")
            self.assertTrue(ws.cell(row=2, column=6).fill.fgColor.rgb.endswith("EF4444"))

            # Thu 9: assessment, Fri 10: event
            self.assertEqual(ws.cell(row=5, column=6).value, "ASSESSMENT")
            self.assertEqual(ws.cell(row=6, column=6).value, "EVENT")

            labels = [r[0] for r in wb[STATS_SHEET].iter_rows(values_only=True) if r and r[0]]
            self.assertIn("Total Learning Days", labels)
            self.assertIn("Physics", labels)
            wb.close()


class TestTemplate(unittest.TestCase):
    def test_template_has_all_sheets(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = write_template(Path(d) / "template.xlsx")
            wb = load_workbook(out)
            self.assertEqual(wb.sheetnames, [title for title, _ in TEMPLATE_SHEETS])
            self.assertEqual(len(wb.sheetnames), 9)
            wb.close()


if __name__ == "__main__":
    unittest.main()
