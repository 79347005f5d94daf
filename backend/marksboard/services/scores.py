"""
Score Validator - per-exam-type score bounds.

Rule table:
    IA1       0..20
    IA2       0..20
    Semester  0..80

Any other exam type is invalid. The same table drives request validation
and the CHECK constraint on the score_entries table.
"""

from enum import Enum


class ExamType(str, Enum):
    """Assessment categories with distinct score ceilings."""
    IA1 = "IA1"
    IA2 = "IA2"
    SEMESTER = "Semester"


SCORE_BOUNDS = {
    ExamType.IA1.value: (0, 20),
    ExamType.IA2.value: (0, 20),
    ExamType.SEMESTER.value: (0, 80),
}


def _exam_key(exam_type) -> str:
    if isinstance(exam_type, ExamType):
        return exam_type.value
    return exam_type


def max_score(exam_type) -> int:
    """Return the ceiling for an exam type; KeyError for unknown types."""
    return SCORE_BOUNDS[_exam_key(exam_type)][1]


def is_valid_score(exam_type, score) -> bool:
    """
    True when ``score`` is an integer within the bounds of ``exam_type``.

    Booleans and floats are rejected even when numerically in range.
    """
    bounds = SCORE_BOUNDS.get(_exam_key(exam_type))
    if bounds is None:
        return False
    if isinstance(score, bool) or not isinstance(score, int):
        return False
    low, high = bounds
    return low <= score <= high


def score_error_message(exam_type, score) -> str:
    """Human-readable rejection message for an invalid (exam_type, score)."""
    key = _exam_key(exam_type)
    if key not in SCORE_BOUNDS:
        allowed = ", ".join(SCORE_BOUNDS)
        return f"{key} is not a valid exam type. Allowed: {allowed}."
    return (
        f"{score} is invalid for {key}. "
        f"Max marks: IA1/IA2 = {max_score(ExamType.IA1)}, "
        f"Semester = {max_score(ExamType.SEMESTER)}."
    )


def score_check_sql(exam_column: str = "exam_type", score_column: str = "score") -> str:
    """SQL boolean expression enforcing the rule table at storage level."""
    clauses = [
        f"({exam_column} = '{exam}' AND {score_column} BETWEEN {low} AND {high})"
        for exam, (low, high) in SCORE_BOUNDS.items()
    ]
    return " OR ".join(clauses)
