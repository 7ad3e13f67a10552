"""Subjects, subject choices, grade items and grades (all per year)."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    text,
)

from ecole_manager.core.enums import LanguageType, Term, check_in
from ecole_manager.db.session import Base


class Subject(Base):
    __tablename__ = "subjects"
    __table_args__ = (
        UniqueConstraint("year_id", "name", name="uq_subjects_year_name"),
        CheckConstraint(check_in("language_type", LanguageType), name="ck_subjects_language_type"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String, nullable=False)
    coefficient = Column(Numeric(3, 1, asdecimal=False), nullable=False, server_default=text("1.0"))
    is_optional = Column(Boolean, nullable=False, server_default=text("0"))
    language_type = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class SubjectEnrollment(Base):
    """Optional-subject choice of a student for one semester."""

    __tablename__ = "subject_enrollments"
    __table_args__ = (
        ForeignKeyConstraint(
            ["subject_id", "year_id"], ["subjects.id", "subjects.year_id"], ondelete="CASCADE"
        ),
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        CheckConstraint(check_in("semester", Term), name="ck_subject_enrollments_semester"),
    )

    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)
    subject_id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    semester = Column(String, primary_key=True)
    class_id = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class GradeItem(Base):
    """An evaluation (test, homework, ...) graded out of max_points."""

    __tablename__ = "grade_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["subject_id", "year_id"], ["subjects.id", "subjects.year_id"], ondelete="CASCADE"
        ),
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        CheckConstraint(check_in("term", Term), name="ck_grade_items_term"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    subject_id = Column(String, nullable=False)
    class_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    max_points = Column(Numeric(5, 2, asdecimal=False), nullable=False, server_default=text("20.0"))
    weight = Column(Numeric(3, 1, asdecimal=False), nullable=False, server_default=text("1.0"))
    term = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class Grade(Base):
    __tablename__ = "grades"
    __table_args__ = (
        ForeignKeyConstraint(
            ["grade_item_id", "year_id"], ["grade_items.id", "grade_items.year_id"], ondelete="CASCADE"
        ),
        UniqueConstraint("year_id", "grade_item_id", "student_id", name="uq_grades_year_item_student"),
        Index("idx_grades_year_student", "year_id", "student_id"),
        Index("idx_grades_year_class", "year_id", "grade_item_id"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    grade_item_id = Column(String, nullable=False)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    score = Column(Numeric(5, 2, asdecimal=False), nullable=True)  # null = not graded yet
    date = Column(Date, server_default=text("CURRENT_DATE"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
