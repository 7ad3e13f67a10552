from datetime import date
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select, text

from ecole_manager.core.models import AttendanceRecord, AttendanceSession, Student, TeacherAttendance
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    AttendanceCount,
    AttendanceRecordRead,
    AttendanceRecordSave,
    AttendanceSessionRead,
    AttendanceSessionSave,
    SessionAttendanceEntry,
    TeacherAttendanceRead,
    TeacherAttendanceSave,
)


class AttendanceRepository(Repository):
    # Sessions

    async def save_session(self, data: Union[AttendanceSessionSave, Mapping[str, Any]]) -> AttendanceSessionRead:
        """Create the session, or update the one with the same (id, year)."""
        payload = validate_payload(AttendanceSessionSave, data, "attendance session")
        return await self._upsert(
            AttendanceSession, AttendanceSessionRead, payload.model_dump(), ("id", "year_id"), "Attendance session"
        )

    async def get_session(self, session_id: str, year_id: str) -> Optional[AttendanceSessionRead]:
        return await self._get(AttendanceSession, AttendanceSessionRead, id=session_id, year_id=year_id)

    async def find_session(
        self, year_id: str, class_id: str, on_date: date, timetable_block_id: str
    ) -> Optional[AttendanceSessionRead]:
        stmt = select(AttendanceSession).where(
            AttendanceSession.year_id == year_id,
            AttendanceSession.class_id == class_id,
            AttendanceSession.date == on_date,
            AttendanceSession.timetable_block_id == timetable_block_id,
        )
        rows = await self._list(stmt, AttendanceSessionRead)
        return rows[0] if rows else None

    async def delete_session(self, session_id: str, year_id: str) -> int:
        return await self._delete(AttendanceSession, "Attendance session", id=session_id, year_id=year_id)

    async def next_session_id(self, year_id: str) -> str:
        return await self._next_id(AttendanceSession, year_id)

    # Student records

    async def save_record(self, data: Union[AttendanceRecordSave, Mapping[str, Any]]) -> AttendanceRecordRead:
        """One record per student per session; saving again overwrites status and comment."""
        payload = validate_payload(AttendanceRecordSave, data, "attendance record")
        return await self._upsert(
            AttendanceRecord,
            AttendanceRecordRead,
            payload.model_dump(),
            ("year_id", "session_id", "student_id"),
            "Attendance record",
        )

    async def get_record(self, record_id: str, year_id: str) -> Optional[AttendanceRecordRead]:
        return await self._get(AttendanceRecord, AttendanceRecordRead, id=record_id, year_id=year_id)

    async def list_records_by_session(self, session_id: str, year_id: str) -> List[SessionAttendanceEntry]:
        stmt = (
            select(AttendanceRecord, Student.first_name, Student.last_name)
            .join(Student, AttendanceRecord.student_id == Student.id)
            .where(AttendanceRecord.session_id == session_id, AttendanceRecord.year_id == year_id)
            .order_by(Student.last_name, Student.first_name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                SessionAttendanceEntry(
                    **AttendanceRecordRead.model_validate(record).model_dump(),
                    first_name=first_name,
                    last_name=last_name,
                )
                for record, first_name, last_name in result.all()
            ]

    async def student_summary(self, student_id: str, year_id: str) -> List[AttendanceCount]:
        stmt = text(
            "SELECT * FROM attendance_summary WHERE student_id = :student_id AND year_id = :year_id ORDER BY status"
        ).bindparams(student_id=student_id, year_id=year_id)
        return [AttendanceCount(**row) for row in await self._rows(stmt)]

    async def next_record_id(self, year_id: str) -> str:
        return await self._next_id(AttendanceRecord, year_id)

    # Teacher attendance

    async def save_teacher_attendance(
        self, data: Union[TeacherAttendanceSave, Mapping[str, Any]]
    ) -> TeacherAttendanceRead:
        payload = validate_payload(TeacherAttendanceSave, data, "teacher attendance")
        return await self._upsert(
            TeacherAttendance,
            TeacherAttendanceRead,
            payload.model_dump(),
            ("year_id", "teacher_id", "date", "timetable_block_id"),
            "Teacher attendance",
        )

    async def get_teacher_attendance(self, attendance_id: str, year_id: str) -> Optional[TeacherAttendanceRead]:
        return await self._get(TeacherAttendance, TeacherAttendanceRead, id=attendance_id, year_id=year_id)

    async def find_teacher_attendance(
        self, year_id: str, teacher_id: str, on_date: date, timetable_block_id: str
    ) -> Optional[TeacherAttendanceRead]:
        stmt = select(TeacherAttendance).where(
            TeacherAttendance.year_id == year_id,
            TeacherAttendance.teacher_id == teacher_id,
            TeacherAttendance.date == on_date,
            TeacherAttendance.timetable_block_id == timetable_block_id,
        )
        rows = await self._list(stmt, TeacherAttendanceRead)
        return rows[0] if rows else None

    async def next_teacher_attendance_id(self, year_id: str) -> str:
        return await self._next_id(TeacherAttendance, year_id)
