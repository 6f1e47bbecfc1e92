"""
Spreadsheet (.xlsx) import.

Reads a workbook laid out like the template from export_xlsx.write_template()
back into configuration fields. Matching is lenient:

- sheets are found by name, ignoring a numeric prefix like "3. "
- column headers are matched through alias tables after folding case and
  punctuation ("Start LU", "start_lu" and "START-LU" are the same header)
- every date goes through parse_flexible_date()

Only the sheets present in the workbook produce fields. Any failure is
reported as one WorkbookImportError for the whole import.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from datetime import datetime, time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import load_workbook

from semesterflow.calendar_utils import DAYS_OF_WEEK, parse_flexible_date
from semesterflow.model import Holiday, Module, Phase, Slot, Subject, TermConfig

logger = logging.getLogger(__name__)


class WorkbookImportError(ValueError):
    """
    Raised when a workbook cannot be imported. Wraps the original cause.
    """


# ---------------------------------------------------------------------------
# Alias tables
# ---------------------------------------------------------------------------

SHEET_ALIASES: Dict[str, set[str]] = {
    "settings": {"settings", "setting", "general"},
    "subjects": {"subjects", "subject", "courses"},
    "slots": {"slots", "slot", "periods"},
    "weekly_pattern": {"weeklypattern", "pattern", "timetable", "weekly"},
    "holidays": {"holidays", "holiday"},
    "phases": {"assessments", "assessmentphases", "phases", "cas", "ca"},
    "modules": {"modules", "module"},
    "id_mapping": {"idmapping", "ids", "mapping"},
    "lu_id_mapping": {"luidmapping", "luids", "lumapping"},
}

SETTINGS_ALIASES: Dict[str, set[str]] = {
    "name": {"semestername", "name", "termname", "programname"},
    "squad_number": {"squadnumber", "squad", "squadid", "cohort"},
    "start_date": {"startdate", "start", "termstart"},
    "end_date": {"enddate", "end", "termend"},
    "working_days": {"workingdays", "days", "activedays"},
}

COLUMN_ALIASES: Dict[str, Dict[str, set[str]]] = {
    "subjects": {
        "name": {"name", "subject", "subjectname"},
        "total_lus": {"totallus", "totallu", "lus", "learningunits"},
        "color": {"basecolorhexcode", "basecolor", "color", "colour", "colorhex"},
        "course_id": {"courseid", "course"},
        "mentor_id": {"mentorid", "mentor"},
        "default_lu_id": {"defaultluid", "defaultlu"},
    },
    "slots": {
        "label": {"slotlabel", "label", "slot", "name", "period"},
        "start_time": {"starttime", "start", "from"},
        "end_time": {"endtime", "end", "to"},
    },
    "weekly_pattern": {
        "day": {"day", "weekday", "dayname"},
    },
    "holidays": {
        "date": {"date", "holidaydate"},
        "reason": {"reason", "description", "name"},
    },
    "phases": {
        "label": {"calabel", "label", "phase", "name"},
        "week_order": {"targetweekrelative", "targetweek", "weekorder", "weeks"},
        "duration": {"caduration", "duration", "assessmentdays"},
        "event_days": {"eventdays", "events"},
    },
    "modules": {
        "subject": {"subjectname", "subject"},
        "name": {"modulename", "module", "name"},
        "start_lu": {"startlu", "start", "from"},
        "end_lu": {"endlu", "end", "to"},
        "color": {"colorhex", "color", "colour"},
    },
    "id_mapping": {
        "subject": {"subjectname", "subject"},
        "course_id": {"courseid", "course"},
        "mentor_id": {"mentorid", "mentor"},
        "default_lu_id": {"defaultluid", "defaultlu", "luid"},
    },
    "lu_id_mapping": {
        "subject": {"subjectname", "subject"},
        "lu_number": {"lunumber", "lu", "lunum", "sequence"},
        "lu_id": {"luid"},
        "course_id": {"courseid", "course"},
    },
}


def fold(text: Any) -> str:
    """
    Fold a header or sheet name for matching: lowercase, alphanumerics only.
    """
    return re.sub(r"[^a-z0-9]", "", str(text or "").lower())


def fold_sheet_name(title: str) -> str:
    # "3. Slots" -> "slots"
    return fold(re.sub(r"^\s*\d+\s*[.)\-:]?\s*", "", title))


def resolve_columns(header: Sequence[Any], aliases: Dict[str, set[str]]) -> Dict[str, int]:
    """
    Map canonical field names to column indexes, first matching column wins.
    """
    out: Dict[str, int] = {}
    for idx, cell in enumerate(header):
        key = fold(cell)
        if not key:
            continue
        for field_name, spellings in aliases.items():
            if field_name not in out and key in spellings:
                out[field_name] = idx
                break
    return out


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def _cell(row: Sequence[Any], columns: Dict[str, int], field_name: str) -> Any:
    idx = columns.get(field_name)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s if s else default


def _int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    m = re.match(r"^\s*(-?\d+)", str(value))
    return int(m.group(1)) if m else default


def _time_text(value: Any, default: str) -> str:
    if isinstance(value, (datetime, time)):
        return value.strftime("%H:%M")
    return _text(value, default)


def _day(value: Any) -> str:
    text = _text(value)
    for name in DAYS_OF_WEEK:
        if name.lower() == text.lower():
            return name
    return text


def _rows(ws: Any) -> List[tuple]:
    return [r for r in ws.iter_rows(values_only=True) if r and any(v is not None and str(v).strip() for v in r)]


def _table(ws: Any, aliases: Dict[str, set[str]]) -> tuple[Dict[str, int], List[tuple], tuple]:
    rows = _rows(ws)
    if not rows:
        return {}, [], ()
    header = rows[0]
    return resolve_columns(header, aliases), rows[1:], header


# ---------------------------------------------------------------------------
# Sheet parsers
# ---------------------------------------------------------------------------


def _parse_settings(ws: Any, out: Dict[str, Any]) -> None:
    for row in _rows(ws):
        if len(row) < 2:
            continue
        key = fold(row[0])
        value = row[1]
        for field_name, spellings in SETTINGS_ALIASES.items():
            if key not in spellings:
                continue
            if field_name in ("start_date", "end_date"):
                out[field_name] = parse_flexible_date(value)
            elif field_name == "working_days":
                out[field_name] = [_day(d) for d in _text(value).split(",") if d.strip()]
            else:
                out[field_name] = _text(value)
            break


def _parse_subjects(ws: Any) -> List[Subject]:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["subjects"])
    subjects: List[Subject] = []
    for i, row in enumerate(rows):
        subjects.append(
            Subject(
                id=f"subj_{i}",
                name=_text(_cell(row, columns, "name"), "Unnamed Subject"),
                total_lus=max(0, _int(_cell(row, columns, "total_lus"), 0)),
                color=_text(_cell(row, columns, "color"), "#6366f1"),
                course_id=_text(_cell(row, columns, "course_id")) or None,
                mentor_id=_text(_cell(row, columns, "mentor_id")) or None,
                default_lu_id=_text(_cell(row, columns, "default_lu_id")) or None,
            )
        )
    return subjects


def _parse_slots(ws: Any) -> List[Slot]:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["slots"])
    return [
        Slot(
            id=f"slot_{i}",
            label=_text(_cell(row, columns, "label"), f"Slot {i + 1}"),
            start_time=_time_text(_cell(row, columns, "start_time"), "09:00"),
            end_time=_time_text(_cell(row, columns, "end_time"), "10:00"),
        )
        for i, row in enumerate(rows)
    ]


def _parse_weekly_pattern(
    ws: Any, slots: Iterable[Slot], subjects_by_name: Dict[str, Subject]
) -> Dict[str, Dict[str, str]]:
    columns, rows, header = _table(ws, COLUMN_ALIASES["weekly_pattern"])
    day_col = columns.get("day", 0)
    slot_by_label = {fold(s.label): s.id for s in slots}

    pattern: Dict[str, Dict[str, str]] = {}
    for row in rows:
        day = _day(row[day_col] if day_col < len(row) else None)
        if not day:
            continue
        day_map = pattern.setdefault(day, {})
        for idx, head in enumerate(header):
            if idx == day_col or idx >= len(row):
                continue
            slot_id = slot_by_label.get(fold(head))
            subject = _lookup_subject(subjects_by_name, row[idx])
            if slot_id and subject:
                day_map[slot_id] = subject.id
    return pattern


def _parse_holidays(ws: Any) -> List[Holiday]:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["holidays"])
    return [
        Holiday(
            id=f"hol_{i}",
            date=parse_flexible_date(_cell(row, columns, "date")),
            reason=_text(_cell(row, columns, "reason"), "Holiday"),
        )
        for i, row in enumerate(rows)
    ]


def _parse_phases(ws: Any) -> List[Phase]:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["phases"])
    return [
        Phase(
            id=f"ca_{i}",
            label=_text(_cell(row, columns, "label"), "Assessment"),
            week_order=max(1, _int(_cell(row, columns, "week_order"), 1)),
            duration=max(0, _int(_cell(row, columns, "duration"), 1)),
            event_days=max(0, _int(_cell(row, columns, "event_days"), 0)),
        )
        for i, row in enumerate(rows)
    ]


def _lookup_subject(subjects_by_name: Dict[str, Subject], name: Any) -> Optional[Subject]:
    text = _text(name)
    if not text:
        return None
    return subjects_by_name.get(text) or subjects_by_name.get(fold(text))


def _parse_modules(ws: Any, subjects_by_name: Dict[str, Subject]) -> None:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["modules"])
    for row in rows:
        subject = _lookup_subject(subjects_by_name, _cell(row, columns, "subject"))
        if subject is None:
            continue
        n = len(subject.modules)
        subject.modules.append(
            Module(
                id=f"{subject.id}_mod_{n}",
                name=_text(_cell(row, columns, "name"), f"Module {n + 1}"),
                start_lu=_int(_cell(row, columns, "start_lu"), 1) or 1,
                end_lu=_int(_cell(row, columns, "end_lu"), 1) or 1,
                color=_text(_cell(row, columns, "color"), "#6366f1"),
            )
        )


def _parse_id_mapping(ws: Any, subjects_by_name: Dict[str, Subject]) -> None:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["id_mapping"])
    for row in rows:
        subject = _lookup_subject(subjects_by_name, _cell(row, columns, "subject"))
        if subject is None:
            continue
        subject.course_id = _text(_cell(row, columns, "course_id")) or subject.course_id
        subject.mentor_id = _text(_cell(row, columns, "mentor_id")) or subject.mentor_id
        subject.default_lu_id = _text(_cell(row, columns, "default_lu_id")) or subject.default_lu_id


def _parse_lu_id_mapping(ws: Any, subjects_by_name: Dict[str, Subject]) -> None:
    columns, rows, _ = _table(ws, COLUMN_ALIASES["lu_id_mapping"])
    for row in rows:
        subject = _lookup_subject(subjects_by_name, _cell(row, columns, "subject"))
        lu_number = _int(_cell(row, columns, "lu_number"), 0)
        if subject is None or lu_number <= 0:
            continue
        lu_id = _text(_cell(row, columns, "lu_id"))
        course_id = _text(_cell(row, columns, "course_id"))
        if lu_id:
            subject.lu_id_map[lu_number] = lu_id
        if course_id:
            subject.course_id_map[lu_number] = course_id


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _find_sheets(sheetnames: Iterable[str]) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for title in sheetnames:
        key = fold_sheet_name(title)
        for canonical, spellings in SHEET_ALIASES.items():
            if canonical not in found and key in spellings:
                found[canonical] = title
                break
    return found


def _parse_loaded(wb: Any) -> Dict[str, Any]:
    sheets = _find_sheets(wb.sheetnames)
    logger.debug("Import sheets matched: %s", sheets)
    out: Dict[str, Any] = {}

    if "settings" in sheets:
        _parse_settings(wb[sheets["settings"]], out)

    subjects_by_name: Dict[str, Subject] = {}
    if "subjects" in sheets:
        subjects = _parse_subjects(wb[sheets["subjects"]])
        for s in subjects:
            subjects_by_name.setdefault(s.name, s)
            subjects_by_name.setdefault(fold(s.name), s)
        out["subjects"] = subjects

    if "modules" in sheets:
        _parse_modules(wb[sheets["modules"]], subjects_by_name)
    if "id_mapping" in sheets:
        _parse_id_mapping(wb[sheets["id_mapping"]], subjects_by_name)
    if "lu_id_mapping" in sheets:
        _parse_lu_id_mapping(wb[sheets["lu_id_mapping"]], subjects_by_name)

    slots: List[Slot] = []
    if "slots" in sheets:
        slots = _parse_slots(wb[sheets["slots"]])
        out["slots"] = slots

    if "weekly_pattern" in sheets:
        out["weekly_pattern"] = _parse_weekly_pattern(wb[sheets["weekly_pattern"]], slots, subjects_by_name)

    if "holidays" in sheets:
        out["holidays"] = _parse_holidays(wb[sheets["holidays"]])

    if "phases" in sheets:
        out["phases"] = _parse_phases(wb[sheets["phases"]])

    return out


def parse_workbook(path: str | Path) -> Dict[str, Any]:
    """
    Parse an import workbook into a dict of TermConfig field values.

    Only fields backed by a sheet in the workbook are present.
    Raises WorkbookImportError on any failure.
    """
    try:
        wb = load_workbook(Path(path), data_only=True)
    except Exception as err:
        raise WorkbookImportError(f"Cannot read workbook {path}: {err}") from err

    try:
        return _parse_loaded(wb)
    except Exception as err:
        raise WorkbookImportError(f"Malformed workbook {path}: {err}") from err
    finally:
        wb.close()


def merge_imported(base: TermConfig, imported: Dict[str, Any]) -> TermConfig:
    """
    Overlay imported fields on an existing configuration (returns a new one).
    """
    known = {f.name for f in dataclasses.fields(TermConfig)}
    updates = {k: v for k, v in imported.items() if k in known and v is not None}
    return dataclasses.replace(base, **updates)
