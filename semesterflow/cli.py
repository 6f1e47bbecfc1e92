"""
CLI (Command Line Interface).

Quick terminal commands around one configuration file, e.g.:

    semesterflow show term.json
    semesterflow stats term.json
    semesterflow export term.json [report.xlsx]
    semesterflow matrix term.json matrix.xlsx
    semesterflow import plan.xlsx term.json [--base old.json]
    semesterflow template template.xlsx
    semesterflow check term.json

The schedule is regenerated from the configuration on every command.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from semesterflow.conflicts import find_slot_overlaps, invalid_slots
from semesterflow.export_xlsx import (
    export_report,
    export_structured_matrix,
    report_filename,
    write_template,
)
from semesterflow.generate import generate_schedule
from semesterflow.import_xlsx import WorkbookImportError, merge_imported, parse_workbook
from semesterflow.model import DayRecord, DayStatus, SlotKind, TermConfig, WeekNumbering
from semesterflow.stats import phasing_stats, program_stats, utilization_stats
from semesterflow.storage import load_config, save_config

console = Console()

STATUS_STYLES = {
    DayStatus.WORKING: "",
    DayStatus.HOLIDAY: "red",
    DayStatus.WEEKEND: "dim",
    DayStatus.BLOCKED: "dim",
    DayStatus.CA: "bold magenta",
    DayStatus.EVENT: "bold yellow",
}


def _load(path: str) -> Optional[TermConfig]:
    """
    Load a configuration, printing a message if it cannot be read.
    """
    config = load_config(path)
    if config is None:
        console.print(f"Could not read configuration: {path}")
    return config


def _schedule(config: TermConfig, args: argparse.Namespace) -> List[DayRecord]:
    numbering = WeekNumbering(args.numbering) if getattr(args, "numbering", None) else None
    return generate_schedule(config, numbering)


def _cmd_show(args: argparse.Namespace) -> int:
    """
    Print the generated schedule as a table.
    """
    config = _load(args.config)
    if config is None:
        return 1

    schedule = _schedule(config, args)
    if not schedule:
        console.print("Schedule cannot be generated yet (check start/end dates).")
        return 1

    table = Table(title=config.name, box=box.SIMPLE_HEAVY)
    for col in ("Wk/D", "Date", "Day", "Status", "Reason"):
        table.add_column(col)
    for slot in config.slots:
        table.add_column(f"{slot.label}\n{slot.start_time}-{slot.end_time}")

    rows = schedule[: args.limit] if args.limit else schedule
    for row in rows:
        cells = []
        for slot in config.slots:
            occ = row.slots.get(slot.id)
            if occ is None or occ.kind is SlotKind.EMPTY:
                cells.append("")
            elif occ.kind is SlotKind.SUBJECT and occ.color:
                cells.append(f"[{occ.color}]{escape(occ.label)}[/]")
            else:
                cells.append(escape(occ.label))
        table.add_row(
            row.position_label,
            row.date,
            row.day_name,
            row.status.value,
            row.reason,
            *cells,
            style=STATUS_STYLES[row.status],
        )

    console.print(table)
    if args.limit and len(schedule) > args.limit:
        console.print(f"... and {len(schedule) - args.limit} more days")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    """
    Print program, utilization and phasing statistics.
    """
    config = _load(args.config)
    if config is None:
        return 1

    schedule = _schedule(config, args)
    program = program_stats(schedule)

    t = Table(title="Program", box=box.SIMPLE)
    t.add_column("Metric")
    t.add_column("Value", justify="right")
    t.add_row("Total days", str(program.total_days))
    t.add_row("Rest days", str(program.rest_days))
    t.add_row("Sundays", str(program.sundays))
    t.add_row("Holidays", str(program.holidays))
    t.add_row("Assessment days", str(program.assessment_days))
    t.add_row("Event days", str(program.event_days))
    t.add_row("Working days", str(program.working_days))
    t.add_row("Learning days", str(program.learning_days))
    console.print(t)

    t = Table(title="Slot utilization", box=box.SIMPLE)
    for col in ("Subject", "Available", "Utilized", "Unutilized"):
        t.add_column(col)
    for u in utilization_stats(config, schedule):
        t.add_row(u.subject_name, str(u.available), str(u.utilized), str(u.unutilized))
    console.print(t)

    phasing = phasing_stats(config, schedule)
    if phasing:
        t = Table(title="Phasing (tracked subjects)", box=box.SIMPLE)
        t.add_column("Subject")
        for phase in config.phases:
            t.add_column(f"{phase.label}\nplanned / done")
        for s in phasing:
            t.add_row(s.subject_name, *[f"{p.planned} / {p.completed_before}" for p in s.phases])
        console.print(t)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    """
    Write the report workbook.
    """
    config = _load(args.config)
    if config is None:
        return 1

    schedule = _schedule(config, args)
    out = args.out or report_filename(config)
    path = export_report(config, schedule, out)
    console.print(f"Exported {len(schedule)} days to: {path}")
    return 0


def _cmd_matrix(args: argparse.Namespace) -> int:
    """
    Write the structured matrix workbook.
    """
    config = _load(args.config)
    if config is None:
        return 1

    if not config.squad_number.strip():
        console.print("Warning: squad number is empty.")

    schedule = _schedule(config, args)
    n = export_structured_matrix(config, schedule, args.out)
    console.print(f"Exported {n} slot rows to: {args.out}")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    """
    Import a workbook into a JSON configuration file.
    """
    base = TermConfig()
    if args.base:
        loaded = _load(args.base)
        if loaded is None:
            return 1
        base = loaded

    try:
        imported = parse_workbook(args.workbook)
    except WorkbookImportError as err:
        console.print(f"Error: invalid file format ({err})")
        return 1

    config = merge_imported(base, imported)
    save_config(config, args.out)
    console.print(f"Imported {', '.join(sorted(imported)) or 'nothing'} into: {args.out}")
    return 0


def _cmd_template(args: argparse.Namespace) -> int:
    path = write_template(args.out)
    console.print(f"Template written to: {path}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """
    Report slot overlaps and unusable slot times.
    """
    config = _load(args.config)
    if config is None:
        return 1

    problems = 0
    for slot in invalid_slots(config.slots):
        console.print(f"- Invalid time range: {slot.label} ({slot.start_time}-{slot.end_time})")
        problems += 1
    for a, b in find_slot_overlaps(config.slots):
        console.print(
            f"- Overlap: {a.label} {a.start_time}-{a.end_time}  <->  {b.label} {b.start_time}-{b.end_time}"
        )
        problems += 1

    if not generate_schedule(config):
        console.print("- Term dates are missing or invalid")
        problems += 1

    if not problems:
        console.print("No problems found.")
        return 0
    console.print(f"Problems found: {problems}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="semesterflow", description="SemesterFlow CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    numbering_choices = [n.value for n in WeekNumbering]

    p_show = sub.add_parser("show", help="Show the generated schedule")
    p_show.add_argument("config", type=str, help="Configuration JSON file")
    p_show.add_argument("--limit", type=int, default=0, help="Show only the first N days")
    p_show.add_argument("--numbering", choices=numbering_choices, help="Week numbering policy")

    p_stats = sub.add_parser("stats", help="Show schedule statistics")
    p_stats.add_argument("config", type=str, help="Configuration JSON file")

    p_export = sub.add_parser("export", help="Export the report workbook (.xlsx)")
    p_export.add_argument("config", type=str, help="Configuration JSON file")
    p_export.add_argument("out", type=str, nargs="?", default=None, help="Output .xlsx path")
    p_export.add_argument("--numbering", choices=numbering_choices, help="Week numbering policy")

    p_matrix = sub.add_parser("matrix", help="Export the structured matrix workbook (.xlsx)")
    p_matrix.add_argument("config", type=str, help="Configuration JSON file")
    p_matrix.add_argument("out", type=str, help="Output .xlsx path")

    p_import = sub.add_parser("import", help="Import a workbook into a configuration file")
    p_import.add_argument("workbook", type=str, help="Input .xlsx path")
    p_import.add_argument("out", type=str, help="Output configuration JSON file")
    p_import.add_argument("--base", type=str, default=None, help="Existing configuration to merge into")

    p_template = sub.add_parser("template", help="Write a blank import template (.xlsx)")
    p_template.add_argument("out", type=str, help="Output .xlsx path")

    p_check = sub.add_parser("check", help="Check slots and term dates")
    p_check.add_argument("config", type=str, help="Configuration JSON file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    handlers = {
        "show": _cmd_show,
        "stats": _cmd_stats,
        "export": _cmd_export,
        "matrix": _cmd_matrix,
        "import": _cmd_import,
        "template": _cmd_template,
        "check": _cmd_check,
    }
    handler = handlers.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args))
