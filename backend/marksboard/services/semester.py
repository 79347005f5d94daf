"""
Semester Calculator - derives a student's current semester.

Semesters are not stored; they follow from the graduation year and today's
date. Calendar semesters flip at mid-year: January to June is the even
(second) semester of an academic year, July to December the odd one.

    years_to_graduation = graduation_year - today.year
    raw = (4 - years_to_graduation) * 2, minus 1 from July onwards
    semester = clamp(raw, 1, 8)

Out-of-range graduation years are absorbed by the clamp.
"""

from datetime import date
from typing import Optional

FIRST_SEMESTER = 1
LAST_SEMESTER = 8
PROGRAM_YEARS = 4
LAST_MONTH_OF_FIRST_HALF = 6


def raw_semester(graduation_year: int, today: Optional[date] = None) -> int:
    """Unclamped semester number; may fall outside 1..8."""
    today = today or date.today()
    years_to_graduation = graduation_year - today.year
    semester = (PROGRAM_YEARS - years_to_graduation) * 2
    if today.month > LAST_MONTH_OF_FIRST_HALF:
        semester -= 1
    return semester


def current_semester(graduation_year: int, today: Optional[date] = None) -> int:
    """Current semester in [1, 8] for a student graduating in ``graduation_year``."""
    return min(max(raw_semester(graduation_year, today), FIRST_SEMESTER), LAST_SEMESTER)
