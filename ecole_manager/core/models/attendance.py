"""Attendance: one session per class/date/timetable block, one record per student in a session."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    UniqueConstraint,
    text,
)

from ecole_manager.core.enums import AttendanceStatus, TeacherAttendanceStatus, check_in
from ecole_manager.db.session import Base


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"
    __table_args__ = (
        ForeignKeyConstraint(
            ["class_id", "year_id"], ["classes.id", "classes.year_id"], ondelete="CASCADE"
        ),
        ForeignKeyConstraint(
            ["timetable_block_id", "year_id"], ["timetable.id", "timetable.year_id"], ondelete="CASCADE"
        ),
        UniqueConstraint(
            "year_id", "class_id", "date", "timetable_block_id", name="uq_attendance_sessions_slot"
        ),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    class_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    timetable_block_id = Column(String, nullable=False)
    locked = Column(Boolean, nullable=False, server_default=text("0"))
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        ForeignKeyConstraint(
            ["session_id", "year_id"],
            ["attendance_sessions.id", "attendance_sessions.year_id"],
            ondelete="CASCADE",
        ),
        UniqueConstraint("year_id", "session_id", "student_id", name="uq_attendance_records_student"),
        CheckConstraint(check_in("status", AttendanceStatus), name="ck_attendance_records_status"),
        Index("idx_attendance_year_date", "year_id", "created_at"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    session_id = Column(String, nullable=False)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False, server_default=text("'present'"))
    comment = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class TeacherAttendance(Base):
    __tablename__ = "teacher_attendance"
    __table_args__ = (
        ForeignKeyConstraint(
            ["timetable_block_id", "year_id"], ["timetable.id", "timetable.year_id"], ondelete="CASCADE"
        ),
        UniqueConstraint(
            "year_id", "teacher_id", "date", "timetable_block_id", name="uq_teacher_attendance_slot"
        ),
        CheckConstraint(check_in("status", TeacherAttendanceStatus), name="ck_teacher_attendance_status"),
    )

    id = Column(String, primary_key=True)
    year_id = Column(String, ForeignKey("academic_years.id", ondelete="CASCADE"), primary_key=True)
    teacher_id = Column(String, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    timetable_block_id = Column(String, nullable=False)
    status = Column(String, nullable=False, server_default=text("'aucun'"))
    comment = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
