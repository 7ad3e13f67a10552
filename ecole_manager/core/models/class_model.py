"""Per-year classes, enrollments and teacher assignments. Model named SchoolClass to avoid Python 'class' keyword."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)

from ecole_manager.core.enums import EnrollmentStatus, check_in
from ecole_manager.db.session import Base


class SchoolClass(Base):
    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("year_id", "name", name="uq_classes_year_name"),)

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String, nullable=False)
    level = Column(String, nullable=True)
    description = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False, server_default=text("30"))
    main_teacher_id = Column(String, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class Enrollment(Base):
    """One class assignment per student per year."""

    __tablename__ = "enrollments"
    __table_args__ = (
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        UniqueConstraint("year_id", "student_id", name="uq_enrollments_year_student"),
        CheckConstraint(check_in("status", EnrollmentStatus), name="ck_enrollments_status"),
        Index("idx_enrollments_year_student", "year_id", "student_id"),
        Index("idx_enrollments_year_class", "year_id", "class_id"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(String, nullable=False)
    status = Column(String, nullable=False, server_default=text("'active'"))
    enrollment_date = Column(Date, server_default=text("CURRENT_DATE"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        ForeignKeyConstraint(
            ["subject_id", "year_id"], ["subjects.id", "subjects.year_id"], ondelete="CASCADE"
        ),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    teacher_id = Column(String, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(String, nullable=True)
    subject_id = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
