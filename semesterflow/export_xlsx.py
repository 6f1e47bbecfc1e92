"""
Spreadsheet (.xlsx) export.

Three workbooks are produced here:
- the human-readable report: one row per date plus a statistics sheet
- the structured matrix: one row per delivered subject slot, for upload
  into an external course system
- the blank import template understood by semesterflow.import_xlsx
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from semesterflow.model import DayRecord, SlotKind, Subject, TermConfig
from semesterflow.stats import phasing_stats, program_stats, utilization_stats


SCHEDULE_SHEET = "Master Schedule"
STATS_SHEET = "Reports & Statistics"

MATRIX_HEADER = ["slot_number", "date", "from", "to", "course_id", "lu_id", "mentor_id"]

HEADER_FONT = Font(bold=True)


@dataclass(frozen=True)
class MatrixRow:
    """
    One row of the structured matrix workbook.
    """

    slot_number: int
    date: str
    start: str
    end: str
    course_id: str
    lu_id: str
    mentor_id: str

    def as_list(self) -> List[Any]:
        return [self.slot_number, self.date, self.start, self.end, self.course_id, self.lu_id, self.mentor_id]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def compact_time(hhmm: str) -> str:
    """
    "09:00" -> "0900".
    """
    return str(hhmm or "").replace(":", "").strip()


def resolve_lu_id(subject: Subject, lu_number: Optional[int]) -> str:
    """
    LU id for the external system: per-LU map, then the subject default,
    then a synthesized "LU_<n>".
    """
    if lu_number is not None and lu_number in subject.lu_id_map:
        return subject.lu_id_map[lu_number]
    if subject.default_lu_id:
        return subject.default_lu_id
    if lu_number is not None:
        return f"LU_{lu_number}"
    return ""


def _fill(color: Optional[str]) -> Optional[PatternFill]:
    hexcolor = (color or "").lstrip("#")
    if not re.fullmatch(r"[0-9A-Fa-f]{6}", hexcolor):
        return None
    return PatternFill(start_color=hexcolor.upper(), end_color=hexcolor.upper(), fill_type="solid")


def _bold_row(ws: Any, row_idx: int) -> None:
    for cell in ws[row_idx]:
        cell.font = HEADER_FONT


def _autosize(ws: Any, max_width: int = 40) -> None:
    widths: dict[int, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for col_idx, width in widths.items():
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_width, width + 2)


# ---------------------------------------------------------------------------
# Report workbook
# ---------------------------------------------------------------------------


def report_filename(config: TermConfig) -> str:
    name = re.sub(r"\s+", "_", (config.name or "Schedule").strip())
    return f"{name}_Academic_Report.xlsx"


def _slot_cell_text(kind: SlotKind, label: str) -> str:
    if kind is SlotKind.SUBJECT:
        return label
    if kind is SlotKind.CA:
        return "ASSESSMENT"
    if kind is SlotKind.EVENT:
        return "EVENT"
    if kind is SlotKind.EMPTY:
        return ""
    raise ValueError(f"Unhandled slot kind: {kind!r}")


def _write_schedule_sheet(ws: Any, config: TermConfig, schedule: List[DayRecord]) -> None:
    ws.append(["Phase Wk/D", "Date", "Day", "Status", "Reason"] + [s.label for s in config.slots])
    _bold_row(ws, 1)

    first_slot_col = 6
    for row in schedule:
        values: List[Any] = [row.position_label, row.date, row.day_name, row.status.value, row.reason]
        for slot in config.slots:
            occ = row.slots.get(slot.id)
            values.append(_slot_cell_text(occ.kind, occ.label) if occ else "")
        ws.append(values)

        # colour subject cells like the on-screen table
        for offset, slot in enumerate(config.slots):
            occ = row.slots.get(slot.id)
            if occ is None or occ.kind is not SlotKind.SUBJECT:
                continue
            fill = _fill(occ.color)
            if fill is not None:
                ws.cell(row=ws.max_row, column=first_slot_col + offset).fill = fill

    ws.freeze_panes = "A2"
    _autosize(ws)


def _write_stats_sheet(ws: Any, config: TermConfig, schedule: List[DayRecord]) -> None:
    program = program_stats(schedule)
    utilization = utilization_stats(config, schedule)
    phasing = phasing_stats(config, schedule)

    ws.append(["PROGRAM-LEVEL STATISTICS"])
    _bold_row(ws, ws.max_row)
    ws.append(["Metric", "Value"])
    ws.append(["Total Semester Days", program.total_days])
    ws.append(["Total Rest Days", program.rest_days])
    for day, count in program.rest_days_by_weekday.items():
        ws.append([f"Rest Days ({day})", count])
    ws.append(["Total Sundays", program.sundays])
    ws.append(["Total Public Holidays", program.holidays])
    ws.append(["Total Assessment Days", program.assessment_days])
    ws.append(["Total Event Days", program.event_days])
    ws.append(["Total Working Days", program.working_days])
    ws.append(["Total Learning Days", program.learning_days])
    ws.append([])

    ws.append(["SUBJECT SLOT UTILIZATION"])
    _bold_row(ws, ws.max_row)
    ws.append(["Subject Name", "Total Available Slots", "Utilized Slots", "Unutilized Slots"])
    for u in utilization:
        ws.append([u.subject_name, u.available, u.utilized, u.unutilized])
    ws.append([])

    ws.append(["SUBJECT PHASING STATISTICS (Tracked Only)"])
    _bold_row(ws, ws.max_row)
    header = ["Subject Name"]
    for i in range(1, len(config.phases) + 1):
        header += [f"Planned till Mod {i}", f"Completed before CA {i}"]
    ws.append(header)
    for s in phasing:
        values: List[Any] = [s.subject_name]
        for p in s.phases:
            values += [p.planned, p.completed_before]
        ws.append(values)

    _autosize(ws)


def export_report(config: TermConfig, schedule: List[DayRecord], out_path: str | Path) -> Path:
    """
    Write the report workbook (schedule sheet + statistics sheet).
    Returns the written path.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws_schedule = wb.active
    ws_schedule.title = SCHEDULE_SHEET
    _write_schedule_sheet(ws_schedule, config, schedule)
    _write_stats_sheet(wb.create_sheet(STATS_SHEET), config, schedule)

    wb.save(out)
    return out


# ---------------------------------------------------------------------------
# Structured matrix
# ---------------------------------------------------------------------------


def matrix_rows(config: TermConfig, schedule: List[DayRecord]) -> List[MatrixRow]:
    """
    Derive structured-matrix rows: one per slot that delivers a subject.

    "Completed" overflow slots deliver nothing and are skipped.
    """
    rows: List[MatrixRow] = []
    for day in schedule:
        for number, slot in enumerate(config.slots, start=1):
            occ = day.slots.get(slot.id)
            if occ is None or not occ.counts_as_learning:
                continue
            subject = config.subject_by_id(occ.subject_id)
            if subject is None:
                continue
            rows.append(
                MatrixRow(
                    slot_number=number,
                    date=day.date,
                    start=compact_time(slot.start_time),
                    end=compact_time(slot.end_time),
                    course_id=occ.course_id or "",
                    lu_id=resolve_lu_id(subject, occ.lu_number),
                    mentor_id=subject.mentor_id or "",
                )
            )
    return rows


def export_structured_matrix(config: TermConfig, schedule: List[DayRecord], out_path: str | Path) -> int:
    """
    Write the structured matrix workbook. Returns the number of slot rows.

    Row 1 holds the squad number, row 2 the fixed header.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Matrix"
    ws.append([(config.squad_number or "").strip()])
    ws.append(MATRIX_HEADER)
    _bold_row(ws, 2)

    rows = matrix_rows(config, schedule)
    for r in rows:
        ws.append(r.as_list())

    wb.save(out)
    return len(rows)


def read_structured_matrix(path: str | Path) -> Tuple[str, List[MatrixRow]]:
    """
    Read a structured matrix workbook back into (squad_number, rows).
    """
    wb = load_workbook(Path(path), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        values = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()

    squad = str(values[0][0] or "").strip() if values and values[0] else ""
    rows: List[MatrixRow] = []
    for raw in values[2:]:
        if not raw or raw[0] is None:
            continue
        cells = ["" if v is None else v for v in list(raw) + [None] * (7 - len(raw))]
        rows.append(
            MatrixRow(
                slot_number=int(cells[0]),
                date=str(cells[1]),
                start=str(cells[2]),
                end=str(cells[3]),
                course_id=str(cells[4]),
                lu_id=str(cells[5]),
                mentor_id=str(cells[6]),
            )
        )
    return squad, rows


# ---------------------------------------------------------------------------
# Import template
# ---------------------------------------------------------------------------

TEMPLATE_SHEETS: List[Tuple[str, List[List[str]]]] = [
    (
        "1. Settings",
        [
            ["Property", "Value", "Format"],
            ["Semester Name", "Academic Plan", "Text"],
            ["Squad Number", "SQ-01", "Text"],
            ["Start Date", "2025-12-15", "YYYY-MM-DD or DD/MM/YYYY"],
            ["End Date", "2026-04-21", "YYYY-MM-DD or DD/MM/YYYY"],
            ["Working Days", "Monday, Tuesday, Wednesday, Thursday, Friday", "Comma separated"],
        ],
    ),
    (
        "2. Subjects",
        [
            ["Name", "Total LUs", "Base Color (Hex Code)"],
            ["Applied Physics", "20", "#6366f1"],
            ["General Elective", "0", "#ec4899"],
        ],
    ),
    (
        "3. Slots",
        [
            ["Slot Label", "Start Time", "End Time"],
            ["Period 1", "09:00", "10:30"],
        ],
    ),
    (
        "4. Weekly Pattern",
        [
            ["Day", "Period 1"],
            ["Monday", "Applied Physics"],
            ["Tuesday", "General Elective"],
        ],
    ),
    (
        "5. Holidays",
        [
            ["Date", "Reason"],
            ["2026-01-01", "New Year"],
        ],
    ),
    (
        "6. Assessments",
        [
            ["CA Label", "Target Week (Relative)", "CA Duration", "Event Days"],
            ["CA 1", "4", "2", "1"],
        ],
    ),
    (
        "7. Modules",
        [
            ["Subject Name", "Module Name", "Start LU", "End LU", "Color (Hex)"],
            ["Applied Physics", "Module 1", "1", "10", "#ef4444"],
            ["Applied Physics", "Module 2", "11", "20", "#3b82f6"],
        ],
    ),
    (
        "8. ID Mapping",
        [
            ["Subject Name", "Course ID", "Mentor ID", "Default LU ID"],
            ["Applied Physics", "PHY-101", "M-001", "LU-PHY"],
        ],
    ),
    (
        "9. LU ID Mapping",
        [
            ["Subject Name", "LU Number", "LU ID", "Course ID"],
            ["Applied Physics", "1", "PHY-LU-001", ""],
        ],
    ),
]


def write_template(out_path: str | Path) -> Path:
    """
    Write the blank nine-sheet import template.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in TEMPLATE_SHEETS:
        ws = wb.create_sheet(title)
        for r in rows:
            ws.append(r)
        _bold_row(ws, 1)
        _autosize(ws)

    wb.save(out)
    return out
