"""Timetable blocks. One block per class/subject/teacher/day/time range."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    Time,
    text,
)

from ecole_manager.core.enums import Weekday, check_in
from ecole_manager.db.session import Base


class TimetableBlock(Base):
    __tablename__ = "timetable"
    __table_args__ = (
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        ForeignKeyConstraint(
            ["subject_id", "year_id"], ["subjects.id", "subjects.year_id"], ondelete="CASCADE"
        ),
        CheckConstraint(check_in("day_of_week", Weekday), name="ck_timetable_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_timetable_time_range"),
        Index("idx_timetable_year_class", "year_id", "class_id"),
        Index("idx_timetable_year_teacher", "year_id", "teacher_id"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    class_id = Column(String, nullable=False)
    subject_id = Column(String, nullable=False)
    teacher_id = Column(String, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(String, nullable=False)  # Lundi .. Samedi
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    room = Column(String, nullable=True)
    color = Column(String, nullable=False, server_default=text("'#3B82F6'"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
