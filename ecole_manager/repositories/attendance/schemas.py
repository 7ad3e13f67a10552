import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from ecole_manager.core.enums import AttendanceStatus, TeacherAttendanceStatus


class AttendanceSessionSave(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    class_id: str
    date: dt.date
    timetable_block_id: str
    locked: bool = False


class AttendanceSessionRead(BaseModel):
    id: str
    year_id: str
    class_id: str
    date: dt.date
    timetable_block_id: str
    locked: bool
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class AttendanceRecordSave(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    session_id: str
    student_id: str
    status: AttendanceStatus = AttendanceStatus.PRESENT
    comment: Optional[str] = None

    class Config:
        use_enum_values = True


class AttendanceRecordRead(BaseModel):
    id: str
    year_id: str
    session_id: str
    student_id: str
    status: str
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class SessionAttendanceEntry(AttendanceRecordRead):
    first_name: str
    last_name: str


class TeacherAttendanceSave(BaseModel):
    id: str = Field(..., min_length=1)
    year_id: str
    teacher_id: str
    date: dt.date
    timetable_block_id: str
    status: TeacherAttendanceStatus = TeacherAttendanceStatus.NONE
    comment: Optional[str] = None

    class Config:
        use_enum_values = True


class TeacherAttendanceRead(BaseModel):
    id: str
    year_id: str
    teacher_id: str
    date: dt.date
    timetable_block_id: str
    status: str
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class AttendanceCount(BaseModel):
    """Row of the attendance_summary view."""

    student_id: str
    year_id: str
    status: str
    count: int
