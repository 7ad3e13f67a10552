import json

import pytest
from sqlalchemy import func, select, text

from ecole_manager.core.config import Settings
from ecole_manager.core.exceptions import LegacyStoreError
from ecole_manager.core.models import Student
from ecole_manager.migration.legacy_store import MemoryLegacyStore
from ecole_manager.services import DatabaseService
from tests.factories import CURRENT_YEAR_ID, make_class, make_student

LEGACY_ITEMS = {
    "students": [
        {"id": "1", "firstName": "Ada", "lastName": "Lovelace", "classId": "1"},
        {"id": "2", "firstName": "Grace", "lastName": "Hopper", "gender": "inconnu"},
    ],
    "classes": [{"id": "1", "nom": "6e A"}],
    "sidebarHidden": "false",
    "activeYearId": CURRENT_YEAR_ID,
}


class BrokenLegacyStore(MemoryLegacyStore):
    def keys(self):
        raise LegacyStoreError("storage is locked")


@pytest.mark.asyncio
async def test_is_healthy(database, legacy_store) -> None:
    assert await DatabaseService(database, legacy_store).is_healthy() is True


@pytest.mark.asyncio
async def test_migrate_reports_warnings_and_keeps_legacy_store(database) -> None:
    store = MemoryLegacyStore(LEGACY_ITEMS)
    service = DatabaseService(database, store)

    result = await service.migrate()

    assert result.success is True
    assert result.reason is None
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("students 2:")
    assert result.backup["students"][0]["firstName"] == "Ada"
    assert result.report.category("enrollments").succeeded[0].record_id == "1"
    # Clearing is a separate call.
    assert "students" in store.keys()

    removed = service.clear_legacy_store()
    assert sorted(removed) == ["classes", "students"]
    assert sorted(store.keys()) == ["activeYearId", "sidebarHidden"]


@pytest.mark.asyncio
async def test_migrate_failure_is_a_result_not_an_exception(database) -> None:
    result = await DatabaseService(database, BrokenLegacyStore()).migrate()
    assert result.success is False
    assert "storage is locked" in result.reason


@pytest.mark.asyncio
async def test_backup_json_is_pretty_printed(database) -> None:
    service = DatabaseService(database, MemoryLegacyStore({"activeYearId": CURRENT_YEAR_ID}))
    dumped = service.backup_json()
    assert json.loads(dumped) == {"activeYearId": CURRENT_YEAR_ID}
    assert dumped.startswith("{\n  \"activeYearId\"")


@pytest.mark.asyncio
async def test_export_sections(database, legacy_store) -> None:
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    service = DatabaseService(database, legacy_store)

    result = await service.export()

    assert result.success is True
    document = result.document
    assert list(document) == ["academic_years", "students", "teachers", "guardians", "classes", "enrollments"]
    assert [y["id"] for y in document["academic_years"]] == [CURRENT_YEAR_ID]
    assert document["students"][0]["first_name"] == "Ada"
    assert document["classes"][0]["year_id"] == CURRENT_YEAR_ID
    assert json.loads((await service.export_json()).text) == document


@pytest.mark.asyncio
async def test_stats(database, legacy_store) -> None:
    service = DatabaseService(database, legacy_store)
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    await service.students.enroll({"id": "1", "student_id": "1", "class_id": "1", "year_id": CURRENT_YEAR_ID})

    result = await service.stats()
    assert result.success is True
    stats = result.stats
    assert (stats.students, stats.teachers, stats.academic_years) == (1, 0, 1)
    assert (stats.current_year_id, stats.classes, stats.active_enrollments) == (CURRENT_YEAR_ID, 1, 1)


@pytest.mark.asyncio
async def test_storage_errors_come_back_as_failed_results(database, legacy_store) -> None:
    await make_student(database, "1")
    async with database.transaction() as session:
        await session.execute(text("ALTER TABLE students RENAME TO students_archive"))
    service = DatabaseService(database, legacy_store)

    for result in (await service.export(), await service.export_json(), await service.stats()):
        assert result.success is False
        assert "no such table: students" in result.reason
        assert result.document is None
        assert result.stats is None


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(database, legacy_store) -> None:
    service = DatabaseService(database, legacy_store)
    with pytest.raises(RuntimeError):
        async with service.transaction() as session:
            session.add(Student(id="1", first_name="Ada", last_name="Lovelace"))
            await session.flush()
            raise RuntimeError("abort")

    async with database.session() as session:
        assert (await session.execute(select(func.count()).select_from(Student))).scalar_one() == 0


@pytest.mark.asyncio
async def test_from_settings(tmp_path) -> None:
    settings = Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'school.db'}",
        LEGACY_STORE_PATH=str(tmp_path / "legacy.json"),
    )
    service = await DatabaseService.from_settings(settings)
    try:
        assert await service.is_healthy() is True
        assert service.backup() == {}
    finally:
        await service.close()
