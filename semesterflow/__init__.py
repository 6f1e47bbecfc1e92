"""
SemesterFlow: turn a compact academic-term configuration into a
day-by-day, slot-by-slot schedule with statistics and spreadsheet exports.
"""

from semesterflow.generate import generate_schedule
from semesterflow.model import TermConfig

__all__ = ["generate_schedule", "TermConfig"]
