from datetime import time
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import and_, case, select

from ecole_manager.core.enums import Weekday
from ecole_manager.core.exceptions import ConstraintViolationError
from ecole_manager.core.models import SchoolClass, Subject, Teacher, TimetableBlock
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    ClassTimetableEntry,
    TeacherTimetableEntry,
    TimetableBlockCreate,
    TimetableBlockRead,
    TimetableBlockUpdate,
    parse_time_24,
)

MUTABLE_FIELDS = (
    "class_id",
    "subject_id",
    "teacher_id",
    "day_of_week",
    "start_time",
    "end_time",
    "room",
    "color",
)

# Lundi=1 .. Samedi=6; a plain ORDER BY day_of_week would sort alphabetically.
WEEKDAY_ORDER = case(
    {day.value: position for position, day in enumerate(Weekday, start=1)},
    value=TimetableBlock.day_of_week,
)

_SUBJECT_JOIN = and_(TimetableBlock.subject_id == Subject.id, TimetableBlock.year_id == Subject.year_id)


class TimetableRepository(Repository):
    async def create(self, data: Union[TimetableBlockCreate, Mapping[str, Any]]) -> TimetableBlockRead:
        payload = validate_payload(TimetableBlockCreate, data, "timetable block")
        return await self._insert(TimetableBlock, TimetableBlockRead, payload.model_dump(), "Timetable block")

    async def get_by_id(self, block_id: str, year_id: str) -> Optional[TimetableBlockRead]:
        return await self._get(TimetableBlock, TimetableBlockRead, id=block_id, year_id=year_id)

    async def list_by_class(self, class_id: str, year_id: str) -> List[ClassTimetableEntry]:
        stmt = (
            select(
                TimetableBlock,
                Subject.name.label("subject_name"),
                Teacher.first_name.label("teacher_first_name"),
                Teacher.last_name.label("teacher_last_name"),
            )
            .join(Subject, _SUBJECT_JOIN)
            .join(Teacher, TimetableBlock.teacher_id == Teacher.id)
            .where(TimetableBlock.class_id == class_id, TimetableBlock.year_id == year_id)
            .order_by(WEEKDAY_ORDER, TimetableBlock.start_time)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                ClassTimetableEntry(
                    **TimetableBlockRead.model_validate(block).model_dump(),
                    subject_name=subject_name,
                    teacher_first_name=first_name,
                    teacher_last_name=last_name,
                )
                for block, subject_name, first_name, last_name in result.all()
            ]

    async def list_by_teacher(self, teacher_id: str, year_id: str) -> List[TeacherTimetableEntry]:
        stmt = (
            select(TimetableBlock, Subject.name.label("subject_name"), SchoolClass.name.label("class_name"))
            .join(Subject, _SUBJECT_JOIN)
            .join(
                SchoolClass,
                and_(TimetableBlock.class_id == SchoolClass.id, TimetableBlock.year_id == SchoolClass.year_id),
            )
            .where(TimetableBlock.teacher_id == teacher_id, TimetableBlock.year_id == year_id)
            .order_by(WEEKDAY_ORDER, TimetableBlock.start_time)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [
                TeacherTimetableEntry(
                    **TimetableBlockRead.model_validate(block).model_dump(),
                    subject_name=subject_name,
                    class_name=class_name,
                )
                for block, subject_name, class_name in result.all()
            ]

    async def update(self, block_id: str, year_id: str, fields: Mapping[str, Any]) -> bool:
        times = {k: fields[k] for k in ("start_time", "end_time") if fields.get(k) is not None}
        if times:
            current = await self.get_by_id(block_id, year_id)
            if current is not None:
                moved = validate_payload(TimetableBlockUpdate, times, "timetable block")
                start = moved.start_time or current.start_time
                end = moved.end_time or current.end_time
                if end <= start:
                    raise ConstraintViolationError("end_time must be after start_time")
        return await self._update(
            TimetableBlock,
            TimetableBlockUpdate,
            {"id": block_id, "year_id": year_id},
            fields,
            MUTABLE_FIELDS,
            "Timetable block",
        )

    async def delete(self, block_id: str, year_id: str) -> int:
        return await self._delete(TimetableBlock, "Timetable block", id=block_id, year_id=year_id)

    async def find_conflicts(
        self,
        year_id: str,
        day_of_week: Union[Weekday, str],
        start_time: Union[str, time],
        end_time: Union[str, time],
        teacher_id: Optional[str] = None,
        class_id: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> List[TimetableBlockRead]:
        """
        Blocks of ``year_id`` on ``day_of_week`` whose range overlaps [start_time, end_time),
        optionally limited to one teacher and/or class. ``exclude_id`` skips the block
        being edited.
        """
        try:
            start = parse_time_24(start_time)
            end = parse_time_24(end_time)
            day = Weekday(day_of_week).value
        except ValueError as exc:
            raise ConstraintViolationError(f"Invalid conflict query: {exc}") from exc
        stmt = select(TimetableBlock).where(
            TimetableBlock.year_id == year_id,
            TimetableBlock.day_of_week == day,
            TimetableBlock.start_time < end,
            TimetableBlock.end_time > start,
        )
        if teacher_id:
            stmt = stmt.where(TimetableBlock.teacher_id == teacher_id)
        if class_id:
            stmt = stmt.where(TimetableBlock.class_id == class_id)
        if exclude_id:
            stmt = stmt.where(TimetableBlock.id != exclude_id)
        stmt = stmt.order_by(TimetableBlock.start_time)
        return await self._list(stmt, TimetableBlockRead)

    async def next_id(self, year_id: str) -> str:
        return await self._next_id(TimetableBlock, year_id)
