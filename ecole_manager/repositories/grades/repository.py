from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import and_, select, text

from ecole_manager.core.enums import Term
from ecole_manager.core.models import Grade, GradeItem, Student, Subject, SubjectEnrollment
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    ClassGradeEntry,
    GradeItemCreate,
    GradeItemRead,
    GradeRead,
    GradeSave,
    StudentGradeEntry,
    SubjectAverage,
    SubjectCreate,
    SubjectEnrollmentCreate,
    SubjectEnrollmentRead,
    SubjectRead,
)

# Grade items and subjects live in the same year as the grade: join on both id and year_id.
_ITEM_JOIN = and_(Grade.grade_item_id == GradeItem.id, Grade.year_id == GradeItem.year_id)
_SUBJECT_JOIN = and_(GradeItem.subject_id == Subject.id, GradeItem.year_id == Subject.year_id)


def _term_value(term: Union[Term, str]) -> str:
    return term.value if isinstance(term, Term) else Term(term).value


class GradesRepository(Repository):
    # Subjects

    async def create_subject(self, data: Union[SubjectCreate, Mapping[str, Any]]) -> SubjectRead:
        payload = validate_payload(SubjectCreate, data, "subject")
        return await self._insert(Subject, SubjectRead, payload.model_dump(), "Subject")

    async def get_subject(self, subject_id: str, year_id: str) -> Optional[SubjectRead]:
        return await self._get(Subject, SubjectRead, id=subject_id, year_id=year_id)

    async def list_subjects(self, year_id: str) -> List[SubjectRead]:
        stmt = select(Subject).where(Subject.year_id == year_id).order_by(Subject.name)
        return await self._list(stmt, SubjectRead)

    async def delete_subject(self, subject_id: str, year_id: str) -> int:
        return await self._delete(Subject, "Subject", id=subject_id, year_id=year_id)

    async def next_subject_id(self, year_id: str) -> str:
        return await self._next_id(Subject, year_id)

    # Subject choices

    async def enroll_in_subject(
        self, data: Union[SubjectEnrollmentCreate, Mapping[str, Any]]
    ) -> SubjectEnrollmentRead:
        payload = validate_payload(SubjectEnrollmentCreate, data, "subject enrollment")
        return await self._upsert(
            SubjectEnrollment,
            SubjectEnrollmentRead,
            payload.model_dump(),
            ("student_id", "subject_id", "year_id", "semester"),
            "Subject enrollment",
        )

    async def list_student_subjects(
        self, student_id: str, year_id: str, semester: Union[Term, str]
    ) -> List[SubjectRead]:
        stmt = (
            select(Subject)
            .join(
                SubjectEnrollment,
                and_(SubjectEnrollment.subject_id == Subject.id, SubjectEnrollment.year_id == Subject.year_id),
            )
            .where(
                SubjectEnrollment.student_id == student_id,
                SubjectEnrollment.year_id == year_id,
                SubjectEnrollment.semester == _term_value(semester),
            )
            .order_by(Subject.name)
        )
        return await self._list(stmt, SubjectRead)

    # Grade items

    async def create_grade_item(self, data: Union[GradeItemCreate, Mapping[str, Any]]) -> GradeItemRead:
        payload = validate_payload(GradeItemCreate, data, "grade item")
        return await self._insert(GradeItem, GradeItemRead, payload.model_dump(), "Grade item")

    async def get_grade_item(self, item_id: str, year_id: str) -> Optional[GradeItemRead]:
        return await self._get(GradeItem, GradeItemRead, id=item_id, year_id=year_id)

    async def list_grade_items(self, class_id: str, year_id: str, term: Union[Term, str]) -> List[GradeItemRead]:
        stmt = (
            select(GradeItem)
            .where(
                GradeItem.class_id == class_id,
                GradeItem.year_id == year_id,
                GradeItem.term == _term_value(term),
            )
            .order_by(GradeItem.subject_id, GradeItem.name)
        )
        return await self._list(stmt, GradeItemRead)

    async def delete_grade_item(self, item_id: str, year_id: str) -> int:
        return await self._delete(GradeItem, "Grade item", id=item_id, year_id=year_id)

    async def next_grade_item_id(self, year_id: str) -> str:
        return await self._next_id(GradeItem, year_id)

    # Grades

    async def save_grade(self, data: Union[GradeSave, Mapping[str, Any]]) -> GradeRead:
        """Record a student's score on a grade item; re-saving overwrites the previous score."""
        payload = validate_payload(GradeSave, data, "grade")
        values = payload.model_dump()
        return await self._upsert(
            Grade, GradeRead, values, ("year_id", "grade_item_id", "student_id"), "Grade"
        )

    async def get_grade(self, grade_id: str, year_id: str) -> Optional[GradeRead]:
        return await self._get(Grade, GradeRead, id=grade_id, year_id=year_id)

    async def list_student_grades(self, student_id: str, year_id: str) -> List[StudentGradeEntry]:
        stmt = (
            select(
                Grade,
                GradeItem.name.label("grade_item_name"),
                GradeItem.max_points,
                GradeItem.weight,
                Subject.name.label("subject_name"),
            )
            .join(GradeItem, _ITEM_JOIN)
            .join(Subject, _SUBJECT_JOIN)
            .where(Grade.student_id == student_id, Grade.year_id == year_id)
            .order_by(Subject.name, GradeItem.name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                StudentGradeEntry(
                    **GradeRead.model_validate(grade).model_dump(),
                    grade_item_name=item_name,
                    max_points=max_points,
                    weight=weight,
                    subject_name=subject_name,
                )
                for grade, item_name, max_points, weight, subject_name in result.all()
            ]

    async def list_class_grades(self, class_id: str, year_id: str, term: Union[Term, str]) -> List[ClassGradeEntry]:
        stmt = (
            select(
                Grade,
                GradeItem.name.label("grade_item_name"),
                GradeItem.max_points,
                GradeItem.weight,
                Subject.name.label("subject_name"),
                Student.first_name,
                Student.last_name,
            )
            .join(GradeItem, _ITEM_JOIN)
            .join(Subject, _SUBJECT_JOIN)
            .join(Student, Grade.student_id == Student.id)
            .where(
                GradeItem.class_id == class_id,
                Grade.year_id == year_id,
                GradeItem.term == _term_value(term),
            )
            .order_by(Student.last_name, Student.first_name, Subject.name, GradeItem.name)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                ClassGradeEntry(
                    **GradeRead.model_validate(grade).model_dump(),
                    grade_item_name=item_name,
                    max_points=max_points,
                    weight=weight,
                    subject_name=subject_name,
                    first_name=first_name,
                    last_name=last_name,
                )
                for grade, item_name, max_points, weight, subject_name, first_name, last_name in result.all()
            ]

    async def student_averages(self, student_id: str, year_id: str) -> List[SubjectAverage]:
        stmt = text(
            "SELECT * FROM student_grades_summary WHERE student_id = :student_id AND year_id = :year_id"
        ).bindparams(student_id=student_id, year_id=year_id)
        return [SubjectAverage(**row) for row in await self._rows(stmt)]

    async def next_grade_id(self, year_id: str) -> str:
        return await self._next_id(Grade, year_id)
