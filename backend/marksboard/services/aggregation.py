"""
Marks Aggregator - derived views over a snapshot of students, subjects and marks.

Every function here is pure: it reads only its arguments, performs no
database access and returns a fresh mapping. Dashboards recompute the
whole snapshot on every request instead of maintaining aggregates
incrementally, so derived numbers cannot drift from the source records.

Averaging units:
- branch views average the per-mark-document means (one mean per
  (student, subject) record, over its score entries)
- subject views average individual score entries

Grouping keys with no contributing data are omitted, never reported as 0.
Sums use math.fsum so results do not depend on input order.
"""

import math
import time
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from marksboard.services.scores import ExamType
from marksboard.services.semester import current_semester
from marksboard.logging_config import get_logger, log_with_context

logger = get_logger("aggregation")


def _exam_key(exam_type) -> str:
    return exam_type.value if isinstance(exam_type, ExamType) else exam_type


def document_mean(record) -> Optional[float]:
    """Mean of a marks record's score entries, None when it has none."""
    scores = [entry.score for entry in record.scores]
    if not scores:
        return None
    return math.fsum(scores) / len(scores)


def _means_by_branch(students, marks) -> Dict[str, List[float]]:
    branch_of = {student.id: student.student_branch for student in students}
    means = defaultdict(list)
    for record in marks:
        branch = branch_of.get(record.student_id)
        if branch is None:
            # Orphaned or filtered-out student
            continue
        mean = document_mean(record)
        if mean is not None:
            means[branch].append(mean)
    return means


def branch_average(students, marks) -> Dict[str, float]:
    """Branch -> average of per-mark-document means for that branch's students."""
    means = _means_by_branch(students, marks)
    return {
        branch: math.fsum(values) / len(values)
        for branch, values in sorted(means.items())
    }


def subject_average(subjects, marks) -> Dict[str, float]:
    """Subject id -> mean of every score entry recorded against the subject."""
    wanted = {subject.id for subject in subjects}
    scores = defaultdict(list)
    for record in marks:
        if record.subject_id not in wanted:
            continue
        scores[record.subject_id].extend(entry.score for entry in record.scores)
    return {
        subject_id: math.fsum(values) / len(values)
        for subject_id, values in sorted(scores.items())
        if values
    }


def _count_by(items: Iterable, attribute: str) -> Dict[str, int]:
    counts = defaultdict(int)
    for item in items:
        counts[getattr(item, attribute)] += 1
    return dict(sorted(counts.items()))


def branch_distribution(students) -> Dict[str, int]:
    return _count_by(students, "student_branch")


def batch_distribution(students) -> Dict[str, int]:
    return _count_by(students, "student_batch")


def per_student_subject_score(marks, exam_type) -> Dict[Tuple[str, str], int]:
    """
    (student_id, subject_id) -> score for a single exam type.

    Pairs with no entry of that exam type are absent; callers render the
    "not available" marker themselves. If legacy data holds more than one
    entry of the exam type for a pair, the first one in record order wins.
    """
    key = _exam_key(exam_type)
    result = {}
    for record in marks:
        pair = (record.student_id, record.subject_id)
        if pair in result:
            continue
        for entry in record.scores:
            if entry.exam_type == key:
                result[pair] = entry.score
                break
    return result


def branch_performance_stats(students, marks) -> Dict[str, dict]:
    """Branch -> {average, highest, lowest} over per-mark-document means."""
    stats = {}
    for branch, values in sorted(_means_by_branch(students, marks).items()):
        stats[branch] = {
            "average": math.fsum(values) / len(values),
            "highest": max(values),
            "lowest": min(values),
        }
    return stats


def filter_students(students, branch: Optional[str] = None,
                    semester: Optional[int] = None,
                    batch: Optional[str] = None,
                    today: Optional[date] = None) -> list:
    """Students matching branch, derived current semester and batch (each optional)."""
    today = today or date.today()
    selected = []
    for student in students:
        if branch is not None and student.student_branch != branch:
            continue
        if batch is not None and student.student_batch != batch:
            continue
        if semester is not None and current_semester(student.student_graduation_year, today) != semester:
            continue
        selected.append(student)
    return selected


def build_dashboard(students, subjects, marks) -> dict:
    """Recompute every dashboard view from one snapshot."""
    start_time = time.time()
    students = list(students)
    subjects = list(subjects)
    marks = list(marks)

    dashboard = {
        "total_students": len(students),
        "total_subjects": len(subjects),
        "total_marks_records": len(marks),
        "branch_distribution": branch_distribution(students),
        "batch_distribution": batch_distribution(students),
        "branch_average": branch_average(students, marks),
        "subject_average": subject_average(subjects, marks),
        "branch_performance": branch_performance_stats(students, marks),
    }

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "DEBUG",
        "Dashboard recomputed over {} students, {} subjects, {} marks records".format(
            len(students), len(subjects), len(marks)),
        extra_data={"duration_ms": round(duration_ms, 2)})
    return dashboard
