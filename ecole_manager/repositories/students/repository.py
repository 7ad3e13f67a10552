from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select, text

from ecole_manager.core.models import Enrollment, Student
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    EnrollmentCreate,
    EnrollmentRead,
    StudentCreate,
    StudentHistoryEntry,
    StudentInClass,
    StudentRead,
    StudentUpdate,
)

MUTABLE_FIELDS = ("first_name", "last_name", "birth_date", "birth_place", "gender", "student_number")


class StudentsRepository(Repository):
    async def create(self, data: Union[StudentCreate, Mapping[str, Any]]) -> StudentRead:
        payload = validate_payload(StudentCreate, data, "student")
        return await self._insert(Student, StudentRead, payload.model_dump(), "Student")

    async def get_by_id(self, student_id: str) -> Optional[StudentRead]:
        return await self._get(Student, StudentRead, id=student_id)

    async def list(self) -> List[StudentRead]:
        stmt = select(Student).order_by(Student.last_name, Student.first_name)
        return await self._list(stmt, StudentRead)

    async def update(self, student_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(Student, StudentUpdate, {"id": student_id}, fields, MUTABLE_FIELDS, "Student")

    async def delete(self, student_id: str) -> int:
        return await self._delete(Student, "Student", id=student_id)

    async def next_id(self) -> str:
        return await self._next_id(Student)

    # Enrollments

    async def enroll(self, data: Union[EnrollmentCreate, Mapping[str, Any]]) -> EnrollmentRead:
        """Assign a student to a class for a year. A second call for the same (year, student) overwrites the first."""
        payload = validate_payload(EnrollmentCreate, data, "enrollment")
        return await self._upsert(
            Enrollment, EnrollmentRead, payload.model_dump(), ("year_id", "student_id"), "Enrollment"
        )

    async def get_enrollment(self, enrollment_id: str, year_id: str) -> Optional[EnrollmentRead]:
        return await self._get(Enrollment, EnrollmentRead, id=enrollment_id, year_id=year_id)

    async def list_enrollments_by_year(self, year_id: str) -> List[EnrollmentRead]:
        stmt = select(Enrollment).where(Enrollment.year_id == year_id).order_by(Enrollment.enrollment_date)
        return await self._list(stmt, EnrollmentRead)

    async def list_enrollments_by_student(self, student_id: str) -> List[EnrollmentRead]:
        stmt = select(Enrollment).where(Enrollment.student_id == student_id).order_by(Enrollment.year_id)
        return await self._list(stmt, EnrollmentRead)

    async def delete_enrollment(self, enrollment_id: str, year_id: str) -> int:
        return await self._delete(Enrollment, "Enrollment", id=enrollment_id, year_id=year_id)

    async def list_students_in_class(self, class_id: str, year_id: str) -> List[StudentInClass]:
        stmt = (
            select(Student, Enrollment.enrollment_date, Enrollment.status)
            .join(Enrollment, Enrollment.student_id == Student.id)
            .where(Enrollment.class_id == class_id, Enrollment.year_id == year_id)
            .order_by(Student.last_name, Student.first_name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                StudentInClass(
                    **StudentRead.model_validate(student).model_dump(),
                    enrollment_date=enrollment_date,
                    status=status,
                )
                for student, enrollment_date, status in result.all()
            ]

    async def history(self, student_id: str) -> List[StudentHistoryEntry]:
        """Class placement of a student across every year, from the student_history view."""
        stmt = text(
            "SELECT * FROM student_history WHERE student_id = :student_id "
            "ORDER BY year_id, enrollment_date"
        ).bindparams(student_id=student_id)
        return [StudentHistoryEntry(**row) for row in await self._rows(stmt)]

    async def next_enrollment_id(self, year_id: str) -> str:
        return await self._next_id(Enrollment, year_id)
