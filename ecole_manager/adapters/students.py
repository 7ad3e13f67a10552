"""Student and enrollment calls in the legacy record shape, backed by either store."""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ecole_manager.adapters.base import Degraded, FallbackAdapter
from ecole_manager.adapters.field_maps import ENROLLMENT_FIELDS, STUDENT_FIELDS
from ecole_manager.core.enums import EnrollmentStatus
from ecole_manager.db.session import Database
from ecole_manager.migration.legacy_store import LegacyStore
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository
from ecole_manager.repositories.students.repository import StudentsRepository


class StudentsAdapter(FallbackAdapter):
    def __init__(self, database: Optional[Database], legacy_store: LegacyStore) -> None:
        super().__init__(database, legacy_store)
        self.students = StudentsRepository(database) if database is not None else None
        self.years = AcademicYearsRepository(database) if database is not None else None

    async def list_students(self) -> List[Dict[str, Any]]:
        async def primary():
            return [STUDENT_FIELDS.to_external(s.model_dump(mode="json")) for s in await self.students.list()]

        return await self._serve("list_students", primary, lambda: self._legacy_list("students"))

    async def upsert_student(self, student: Mapping[str, Any]) -> None:
        async def primary():
            values = STUDENT_FIELDS.to_internal(student)
            student_id = values["id"]
            if await self.students.get_by_id(student_id) is not None:
                await self.students.update(student_id, {k: v for k, v in values.items() if k != "id"})
            else:
                await self.students.create(values)

        def fallback():
            students = self._legacy_list("students")
            for index, existing in enumerate(students):
                if isinstance(existing, dict) and existing.get("id") == student.get("id"):
                    students[index] = {**existing, **student}
                    break
            else:
                students.append(dict(student))
            self.legacy_store.write_json("students", students)

        await self._serve("upsert_student", primary, fallback)

    async def list_enrollments(self, year_id: Optional[str] = None) -> List[Dict[str, Any]]:
        async def primary():
            year = year_id or await self._current_year_id()
            enrollments = await self.students.list_enrollments_by_year(year)
            return [ENROLLMENT_FIELDS.to_external(e.model_dump(mode="json")) for e in enrollments]

        def fallback():
            year = year_id or self._legacy_active_year_id()
            return self._legacy_list(f"enrollments__{year}")

        return await self._serve("list_enrollments", primary, fallback)

    async def enroll_student(self, student_id: str, class_id: str, year_id: Optional[str] = None) -> Dict[str, Any]:
        today = date.today().isoformat()

        async def primary():
            year = year_id or await self._current_year_id()
            enrollment = await self.students.enroll(
                {
                    "id": f"{student_id}-{year}",
                    "student_id": student_id,
                    "class_id": class_id,
                    "year_id": year,
                    "status": EnrollmentStatus.ACTIVE.value,
                    "enrollment_date": today,
                }
            )
            return ENROLLMENT_FIELDS.to_external(enrollment.model_dump(mode="json"))

        def fallback():
            year = year_id or self._legacy_active_year_id()
            key = f"enrollments__{year}"
            entry = {
                "studentId": student_id,
                "yearId": year,
                "classId": class_id,
                "status": EnrollmentStatus.ACTIVE.value,
                "date": today,
            }
            enrollments = [
                e for e in self._legacy_list(key) if not (isinstance(e, dict) and e.get("studentId") == student_id)
            ]
            enrollments.append(entry)
            self.legacy_store.write_json(key, enrollments)
            return entry

        return await self._serve("enroll_student", primary, fallback)

    async def student_history(self, student_id: str) -> List[Dict[str, Any]]:
        async def primary():
            return [entry.model_dump(mode="json") for entry in await self.students.history(student_id)]

        def fallback():
            history = []
            for year in self._legacy_list("academicYears"):
                if not isinstance(year, dict):
                    continue
                for enrollment in self._legacy_list(f"enrollments__{year.get('id')}"):
                    if isinstance(enrollment, dict) and enrollment.get("studentId") == student_id:
                        history.append(
                            {
                                "student_id": student_id,
                                "year_id": year.get("id"),
                                "class_id": enrollment.get("classId"),
                                "class_name": "",
                                "year_name": year.get("nom") or year.get("name"),
                                "status": enrollment.get("status") or EnrollmentStatus.ACTIVE.value,
                                "enrollment_date": enrollment.get("date"),
                            }
                        )
                        break
            return history

        return await self._serve("student_history", primary, fallback)

    async def _current_year_id(self) -> str:
        current = await self.years.get_current()
        if current is None:
            raise Degraded("no current academic year")
        return current.id
