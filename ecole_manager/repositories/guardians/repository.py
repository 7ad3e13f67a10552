from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select

from ecole_manager.core.models import Guardian, StudentGuardian
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import GuardianCreate, GuardianRead, GuardianUpdate, StudentGuardianEntry, StudentGuardianRead

MUTABLE_FIELDS = ("first_name", "last_name", "phone", "email", "relationship", "address")


class GuardiansRepository(Repository):
    async def create(self, data: Union[GuardianCreate, Mapping[str, Any]]) -> GuardianRead:
        payload = validate_payload(GuardianCreate, data, "guardian")
        return await self._insert(Guardian, GuardianRead, payload.model_dump(), "Guardian")

    async def get_by_id(self, guardian_id: str) -> Optional[GuardianRead]:
        return await self._get(Guardian, GuardianRead, id=guardian_id)

    async def list(self) -> List[GuardianRead]:
        stmt = select(Guardian).order_by(Guardian.last_name, Guardian.first_name)
        return await self._list(stmt, GuardianRead)

    async def update(self, guardian_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(
            Guardian, GuardianUpdate, {"id": guardian_id}, fields, MUTABLE_FIELDS, "Guardian"
        )

    async def delete(self, guardian_id: str) -> int:
        return await self._delete(Guardian, "Guardian", id=guardian_id)

    async def next_id(self) -> str:
        return await self._next_id(Guardian)

    async def link_student(self, student_id: str, guardian_id: str, is_primary: bool = False) -> StudentGuardianRead:
        values = {"student_id": student_id, "guardian_id": guardian_id, "is_primary": is_primary}
        return await self._upsert(
            StudentGuardian, StudentGuardianRead, values, ("student_id", "guardian_id"), "Student guardian link"
        )

    async def unlink_student(self, student_id: str, guardian_id: str) -> int:
        return await self._delete(
            StudentGuardian, "Student guardian link", student_id=student_id, guardian_id=guardian_id
        )

    async def list_for_student(self, student_id: str) -> List[StudentGuardianEntry]:
        """Guardians of a student, primary guardian first."""
        stmt = (
            select(Guardian, StudentGuardian.is_primary)
            .join(StudentGuardian, StudentGuardian.guardian_id == Guardian.id)
            .where(StudentGuardian.student_id == student_id)
            .order_by(StudentGuardian.is_primary.desc(), Guardian.last_name, Guardian.first_name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                StudentGuardianEntry(**GuardianRead.model_validate(guardian).model_dump(), is_primary=is_primary)
                for guardian, is_primary in result.all()
            ]
