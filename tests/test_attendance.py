from datetime import date

import pytest

from ecole_manager.core.exceptions import ConstraintViolationError
from ecole_manager.repositories.attendance.repository import AttendanceRepository
from ecole_manager.repositories.timetables.repository import TimetableRepository
from tests.factories import CURRENT_YEAR_ID, make_class, make_student, make_subject, make_teacher

MONDAY = date(2025, 10, 6)


@pytest.fixture()
async def attendance(database) -> AttendanceRepository:
    await make_teacher(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    await make_subject(database, CURRENT_YEAR_ID, "1")
    await make_student(database, "1", "Ada", "Lovelace")
    await make_student(database, "2", "Charles", "Babbage")
    await TimetableRepository(database).create(
        {
            "id": "1",
            "year_id": CURRENT_YEAR_ID,
            "class_id": "1",
            "subject_id": "1",
            "teacher_id": "1",
            "day_of_week": "Lundi",
            "start_time": "08:00",
            "end_time": "09:00",
        }
    )
    repo = AttendanceRepository(database)
    await repo.save_session(
        {"id": "1", "year_id": CURRENT_YEAR_ID, "class_id": "1", "date": MONDAY, "timetable_block_id": "1"}
    )
    return repo


@pytest.mark.asyncio
async def test_one_record_per_student_and_session(attendance) -> None:
    await attendance.save_record({"id": "1", "year_id": CURRENT_YEAR_ID, "session_id": "1", "student_id": "1", "status": "absent"})
    await attendance.save_record(
        {"id": "1", "year_id": CURRENT_YEAR_ID, "session_id": "1", "student_id": "1", "status": "retard", "comment": "bus"}
    )
    await attendance.save_record({"id": "2", "year_id": CURRENT_YEAR_ID, "session_id": "1", "student_id": "2"})

    records = await attendance.list_records_by_session("1", CURRENT_YEAR_ID)
    assert [(r.last_name, r.status, r.comment) for r in records] == [
        ("Babbage", "present", None),
        ("Lovelace", "retard", "bus"),
    ]
    summary = await attendance.student_summary("1", CURRENT_YEAR_ID)
    assert [(s.status, s.count) for s in summary] == [("retard", 1)]


@pytest.mark.asyncio
async def test_find_session_by_slot(attendance) -> None:
    found = await attendance.find_session(CURRENT_YEAR_ID, "1", MONDAY, "1")
    assert found.id == "1"
    assert await attendance.find_session(CURRENT_YEAR_ID, "1", date(2025, 10, 13), "1") is None
    assert await attendance.next_session_id(CURRENT_YEAR_ID) == "2"


@pytest.mark.asyncio
async def test_unknown_status_rejected(attendance) -> None:
    with pytest.raises(ConstraintViolationError):
        await attendance.save_record(
            {"id": "1", "year_id": CURRENT_YEAR_ID, "session_id": "1", "student_id": "1", "status": "malade"}
        )


@pytest.mark.asyncio
async def test_teacher_attendance_overwrites_slot(attendance) -> None:
    slot = {"year_id": CURRENT_YEAR_ID, "teacher_id": "1", "date": MONDAY, "timetable_block_id": "1"}
    await attendance.save_teacher_attendance({"id": "1", **slot, "status": "present"})
    await attendance.save_teacher_attendance({"id": "1", **slot, "status": "absent", "comment": "malade"})

    found = await attendance.find_teacher_attendance(CURRENT_YEAR_ID, "1", MONDAY, "1")
    assert (found.status, found.comment) == ("absent", "malade")
