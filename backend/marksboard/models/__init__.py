from marksboard.models.student import Student
from marksboard.models.subject import Subject
from marksboard.models.marks import MarksRecord, ScoreEntry

__all__ = ["Student", "Subject", "MarksRecord", "ScoreEntry"]
