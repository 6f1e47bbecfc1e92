"""
Persistent storage for term configurations.

A configuration is stored as one JSON file (UTF-8, snake_case keys):

    {
      "name": "...", "squad_number": "...",
      "start_date": "2025-01-06", "end_date": "2025-05-30",
      "working_days": ["Monday", ...],
      "slots": [...], "subjects": [...], "weekly_pattern": {...},
      "holidays": [...], "phases": [...],
      "week_numbering": "continuous"
    }

The generated schedule is never stored: it is recomputed from the
configuration every time.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from semesterflow.model import (
    Holiday,
    Module,
    Phase,
    Slot,
    Subject,
    TermConfig,
    WeekNumbering,
)


def _str(x: Any, default: str = "") -> str:
    return default if x is None else str(x)


def _opt_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _int_keyed(raw: Any) -> Dict[int, str]:
    # JSON object keys are always strings
    out: Dict[int, str] = {}
    if not isinstance(raw, dict):
        return out
    for k, v in raw.items():
        try:
            out[int(k)] = str(v)
        except (TypeError, ValueError):
            continue
    return out


def config_to_dict(config: TermConfig) -> Dict[str, Any]:
    """
    Convert a TermConfig into a JSON-serializable dict.
    """
    return {
        "name": config.name,
        "squad_number": config.squad_number,
        "start_date": config.start_date,
        "end_date": config.end_date,
        "working_days": list(config.working_days),
        "slots": [
            {"id": s.id, "label": s.label, "start_time": s.start_time, "end_time": s.end_time}
            for s in config.slots
        ],
        "subjects": [
            {
                "id": s.id,
                "name": s.name,
                "color": s.color,
                "total_lus": s.total_lus,
                "modules": [
                    {"id": m.id, "name": m.name, "start_lu": m.start_lu, "end_lu": m.end_lu, "color": m.color}
                    for m in s.modules
                ],
                "course_id": s.course_id,
                "mentor_id": s.mentor_id,
                "default_lu_id": s.default_lu_id,
                "lu_id_map": {str(k): v for k, v in sorted(s.lu_id_map.items())},
                "course_id_map": {str(k): v for k, v in sorted(s.course_id_map.items())},
            }
            for s in config.subjects
        ],
        "weekly_pattern": {day: dict(slots) for day, slots in config.weekly_pattern.items()},
        "holidays": [{"id": h.id, "date": h.date, "reason": h.reason} for h in config.holidays],
        "phases": [
            {
                "id": p.id,
                "label": p.label,
                "week_order": p.week_order,
                "duration": p.duration,
                "event_days": p.event_days,
            }
            for p in config.phases
        ],
        "week_numbering": config.week_numbering.value,
    }


def config_from_dict(data: Dict[str, Any]) -> TermConfig:
    """
    Build a TermConfig from a dict (as produced by config_to_dict).

    Missing fields fall back to defaults; ids are generated from positions
    when absent.
    """
    slots = [
        Slot(
            id=_str(s.get("id"), f"slot_{i}"),
            label=_str(s.get("label"), f"Slot {i + 1}"),
            start_time=_str(s.get("start_time")),
            end_time=_str(s.get("end_time")),
        )
        for i, s in enumerate(data.get("slots") or [])
    ]

    subjects = []
    for i, s in enumerate(data.get("subjects") or []):
        modules = [
            Module(
                id=_str(m.get("id"), f"mod_{i}_{j}"),
                name=_str(m.get("name"), f"Module {j + 1}"),
                start_lu=_int(m.get("start_lu"), 1),
                end_lu=_int(m.get("end_lu"), 1),
                color=_str(m.get("color")),
            )
            for j, m in enumerate(s.get("modules") or [])
        ]
        subjects.append(
            Subject(
                id=_str(s.get("id"), f"subj_{i}"),
                name=_str(s.get("name"), "Unnamed Subject"),
                color=_str(s.get("color")),
                total_lus=max(0, _int(s.get("total_lus"))),
                modules=modules,
                course_id=_opt_str(s.get("course_id")),
                mentor_id=_opt_str(s.get("mentor_id")),
                default_lu_id=_opt_str(s.get("default_lu_id")),
                lu_id_map=_int_keyed(s.get("lu_id_map")),
                course_id_map=_int_keyed(s.get("course_id_map")),
            )
        )

    holidays = [
        Holiday(id=_str(h.get("id"), f"hol_{i}"), date=_str(h.get("date")), reason=_str(h.get("reason"), "Holiday"))
        for i, h in enumerate(data.get("holidays") or [])
    ]

    phases = [
        Phase(
            id=_str(p.get("id"), f"ca_{i}"),
            label=_str(p.get("label"), f"CA {i + 1}"),
            week_order=_int(p.get("week_order"), 1),
            duration=max(0, _int(p.get("duration"))),
            event_days=max(0, _int(p.get("event_days"))),
        )
        for i, p in enumerate(data.get("phases") or [])
    ]

    pattern_raw = data.get("weekly_pattern") or {}
    weekly_pattern = {
        str(day): {str(k): str(v) for k, v in slots_map.items() if v}
        for day, slots_map in pattern_raw.items()
        if isinstance(slots_map, dict)
    }

    try:
        numbering = WeekNumbering(data.get("week_numbering") or WeekNumbering.CONTINUOUS.value)
    except ValueError:
        numbering = WeekNumbering.CONTINUOUS

    return TermConfig(
        name=_str(data.get("name"), "Academic Phased Plan"),
        squad_number=_str(data.get("squad_number")),
        start_date=_str(data.get("start_date")),
        end_date=_str(data.get("end_date")),
        working_days=[str(d).strip() for d in data.get("working_days") or [] if str(d).strip()],
        slots=slots,
        subjects=subjects,
        weekly_pattern=weekly_pattern,
        holidays=holidays,
        phases=phases,
        week_numbering=numbering,
    )


def load_config(path: str | Path) -> Optional[TermConfig]:
    """
    Load a configuration from a JSON file.

    Returns None if the file does not exist or is invalid, so that callers
    (the CLI) can report it instead of crashing.
    """
    config_path = Path(path)
    if not config_path.exists():
        return None

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return None
        return config_from_dict(data)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError, TypeError):
        return None


def save_config(config: TermConfig, path: str | Path) -> None:
    """
    Save a configuration to a JSON file, creating parent directories if needed.
    """
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = config_to_dict(config)
    config_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
