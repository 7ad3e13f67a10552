from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import exists, func, select

from ecole_manager.core.models import Teacher, TeacherAssignment
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    TeacherAssignmentCreate,
    TeacherAssignmentRead,
    TeacherCreate,
    TeacherRead,
    TeacherUpdate,
)

MUTABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "subject",
    "hire_date",
    "payment_type",
    "salary",
    "hourly_rate",
    "residence",
    "contact_type",
    "years_experience",
    "nationality",
    "emergency_contact",
    "emergency_phone",
)


class TeachersRepository(Repository):
    async def create(self, data: Union[TeacherCreate, Mapping[str, Any]]) -> TeacherRead:
        payload = validate_payload(TeacherCreate, data, "teacher")
        return await self._insert(Teacher, TeacherRead, payload.model_dump(), "Teacher")

    async def get_by_id(self, teacher_id: str) -> Optional[TeacherRead]:
        return await self._get(Teacher, TeacherRead, id=teacher_id)

    async def list(self) -> List[TeacherRead]:
        stmt = select(Teacher).order_by(Teacher.last_name, Teacher.first_name)
        return await self._list(stmt, TeacherRead)

    async def update(self, teacher_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(Teacher, TeacherUpdate, {"id": teacher_id}, fields, MUTABLE_FIELDS, "Teacher")

    async def delete(self, teacher_id: str) -> int:
        return await self._delete(Teacher, "Teacher", id=teacher_id)

    async def next_id(self) -> str:
        return await self._next_id(Teacher)

    # Assignments (per year)

    async def assign(self, data: Union[TeacherAssignmentCreate, Mapping[str, Any]]) -> TeacherAssignmentRead:
        payload = validate_payload(TeacherAssignmentCreate, data, "teacher assignment")
        return await self._insert(TeacherAssignment, TeacherAssignmentRead, payload.model_dump(), "Teacher assignment")

    async def get_assignment(self, assignment_id: str, year_id: str) -> Optional[TeacherAssignmentRead]:
        return await self._get(TeacherAssignment, TeacherAssignmentRead, id=assignment_id, year_id=year_id)

    async def list_assignments(self, year_id: str) -> List[TeacherAssignmentRead]:
        stmt = select(TeacherAssignment).where(TeacherAssignment.year_id == year_id).order_by(TeacherAssignment.id)
        return await self._list(stmt, TeacherAssignmentRead)

    async def list_assigned_teachers(self, year_id: str) -> List[TeacherRead]:
        assigned = exists().where(
            TeacherAssignment.teacher_id == Teacher.id,
            TeacherAssignment.year_id == year_id,
        )
        stmt = select(Teacher).where(assigned).order_by(Teacher.last_name, Teacher.first_name)
        return await self._list(stmt, TeacherRead)

    async def is_assigned(self, teacher_id: str, year_id: str) -> bool:
        stmt = select(func.count()).select_from(TeacherAssignment).where(
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.year_id == year_id,
        )
        async with self.database.session() as session:
            return (await session.execute(stmt)).scalar_one() > 0

    async def next_assignment_id(self, year_id: str) -> str:
        return await self._next_id(TeacherAssignment, year_id)
