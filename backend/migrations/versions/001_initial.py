"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-20

Creates the Marksboard schema:
- students: unique registration and roll numbers
- subjects: unique subject codes, semester 1-8
- student_marks: one record per (student, subject); no foreign keys so
  deleting a student or subject leaves marks orphaned
- score_entries: per-exam scores with bounds CHECK and a unique
  (student_id, subject_id, exam_type) constraint
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCORE_BOUNDS_SQL = (
    "(exam_type = 'IA1' AND score BETWEEN 0 AND 20) OR "
    "(exam_type = 'IA2' AND score BETWEEN 0 AND 20) OR "
    "(exam_type = 'Semester' AND score BETWEEN 0 AND 80)"
)


def upgrade() -> None:
    # ── Students ──────────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_reg', sa.String(64), nullable=False, unique=True),
        sa.Column('student_name', sa.Text(), nullable=False),
        sa.Column('student_branch', sa.Text(), nullable=False),
        sa.Column('student_graduation_year', sa.Integer(), nullable=False),
        sa.Column('student_batch', sa.String(16), nullable=False),
        sa.Column('student_rollno', sa.Integer(), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_students_student_branch', 'students', ['student_branch'])

    # ── Subjects ──────────────────────────────────────────────
    op.create_table(
        'subjects',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('subject_name', sa.Text(), nullable=False),
        sa.Column('branch', sa.Text(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('subject_code', sa.String(32), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('semester BETWEEN 1 AND 8', name='ck_subjects_semester_range'),
    )
    op.create_index('ix_subjects_branch', 'subjects', ['branch'])

    # ── Marks records ─────────────────────────────────────────
    op.create_table(
        'student_marks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36), nullable=False),
        sa.Column('subject_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_student_marks_student_subject', 'student_marks',
                    ['student_id', 'subject_id'])

    # ── Score entries ─────────────────────────────────────────
    op.create_table(
        'score_entries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('marks_id', sa.String(36),
                  sa.ForeignKey('student_marks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.String(36), nullable=False),
        sa.Column('subject_id', sa.String(36), nullable=False),
        sa.Column('exam_type', sa.String(16), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'subject_id', 'exam_type',
                            name='uq_score_entries_student_subject_exam'),
        sa.CheckConstraint(SCORE_BOUNDS_SQL, name='ck_score_entries_bounds'),
    )
    op.create_index('ix_score_entries_marks_id', 'score_entries', ['marks_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_score_entries_marks_id', table_name='score_entries')
    op.drop_table('score_entries')
    op.drop_index('ix_student_marks_student_subject', table_name='student_marks')
    op.drop_table('student_marks')
    op.drop_index('ix_subjects_branch', table_name='subjects')
    op.drop_table('subjects')
    op.drop_index('ix_students_student_branch', table_name='students')
    op.drop_table('students')
