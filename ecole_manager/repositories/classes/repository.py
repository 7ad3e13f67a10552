from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import and_, func, select

from ecole_manager.core.enums import EnrollmentStatus
from ecole_manager.core.models import Enrollment, SchoolClass
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import ClassCreate, ClassRead, ClassUpdate, ClassWithStudentCount

MUTABLE_FIELDS = ("name", "level", "description", "capacity", "main_teacher_id")


class ClassesRepository(Repository):
    async def create(self, data: Union[ClassCreate, Mapping[str, Any]]) -> ClassRead:
        payload = validate_payload(ClassCreate, data, "class")
        return await self._insert(SchoolClass, ClassRead, payload.model_dump(), "Class")

    async def get_by_id(self, class_id: str, year_id: str) -> Optional[ClassRead]:
        return await self._get(SchoolClass, ClassRead, id=class_id, year_id=year_id)

    async def list(self, year_id: str) -> List[ClassRead]:
        stmt = select(SchoolClass).where(SchoolClass.year_id == year_id).order_by(SchoolClass.name)
        return await self._list(stmt, ClassRead)

    async def update(self, class_id: str, year_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(
            SchoolClass, ClassUpdate, {"id": class_id, "year_id": year_id}, fields, MUTABLE_FIELDS, "Class"
        )

    async def delete(self, class_id: str, year_id: str) -> int:
        return await self._delete(SchoolClass, "Class", id=class_id, year_id=year_id)

    async def list_with_student_count(self, year_id: str) -> List[ClassWithStudentCount]:
        """Classes of a year with the number of active enrollments in each."""
        active_enrollment = and_(
            Enrollment.class_id == SchoolClass.id,
            Enrollment.year_id == SchoolClass.year_id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        stmt = (
            select(SchoolClass, func.count(Enrollment.student_id))
            .outerjoin(Enrollment, active_enrollment)
            .where(SchoolClass.year_id == year_id)
            .group_by(SchoolClass.id, SchoolClass.year_id)
            .order_by(SchoolClass.name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                ClassWithStudentCount(**ClassRead.model_validate(cls).model_dump(), student_count=count)
                for cls, count in result.all()
            ]

    async def next_id(self, year_id: str) -> str:
        return await self._next_id(SchoolClass, year_id)
