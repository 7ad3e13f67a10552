import json
from datetime import date

import pytest

from ecole_manager.core.exceptions import LegacyStoreError, MigrationError
from ecole_manager.migration import legacy_records
from ecole_manager.migration.legacy_records import LegacyFieldError
from ecole_manager.migration.legacy_store import JsonFileLegacyStore, MemoryLegacyStore
from ecole_manager.migration.service import KEEP_KEYS, MigrationService
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository
from ecole_manager.repositories.classes.repository import ClassesRepository
from ecole_manager.repositories.payments.repository import PaymentsRepository
from ecole_manager.repositories.students.repository import StudentsRepository
from ecole_manager.repositories.teachers.repository import TeachersRepository
from tests.factories import CURRENT_YEAR_ID, TODAY

MIGRATION_DAY = date(2025, 10, 15)


class UnreadableLegacyStore(MemoryLegacyStore):
    def get_item(self, key):
        raise LegacyStoreError("storage is locked")


def _service(database, items):
    return MigrationService(database, MemoryLegacyStore(items), today=MIGRATION_DAY)


def test_canonical_spelling_wins() -> None:
    year = legacy_records.academic_year(
        {"id": "2024-2025", "nom": "Ancien nom", "name": "Nouveau nom", "debut": "2024-09-01", "fin": "2025-08-31"}
    )
    assert year["name"] == "Nouveau nom"
    assert year["start_date"] == "2024-09-01"


def test_localized_spelling_used_when_canonical_missing() -> None:
    values = legacy_records.priced_item({"nom": "Cantine", "montant": 25}, CURRENT_YEAR_ID, "1")
    assert (values["name"], values["amount"]) == ("Cantine", 25)


def test_dates_keep_only_the_day() -> None:
    assert legacy_records.date_part("2025-09-12T08:30:00.000Z") == "2025-09-12"
    assert legacy_records.date_part("") is None


def test_missing_required_field() -> None:
    with pytest.raises(LegacyFieldError):
        legacy_records.payment({"amount": 10, "type": "frais"}, CURRENT_YEAR_ID, "1", TODAY)


@pytest.mark.asyncio
async def test_student_with_only_names(database) -> None:
    report = await _service(database, {"students": [{"id": "1", "firstName": "Ada", "lastName": "Lovelace"}]}).migrate()

    students = await StudentsRepository(database).list()
    assert [(s.id, s.first_name, s.last_name) for s in students] == [("1", "Ada", "Lovelace")]
    assert students[0].birth_date is None
    assert report.category("students").failed == []


@pytest.mark.asyncio
async def test_failed_records_do_not_abort_the_category(database) -> None:
    items = {
        "students": [
            {"id": "1", "firstName": "Ada", "lastName": "Lovelace"},
            {"id": "1", "firstName": "Ada", "lastName": "Byron"},
            {"firstName": "Sans", "lastName": "Identifiant"},
            {"id": "2", "firstName": "Grace", "lastName": "Hopper", "gender": "inconnu"},
            {"id": "3", "prenom": "Marie", "nom": "Curie", "gender": "femme", "birthDate": "1867-11-07T00:00:00"},
        ],
    }
    report = await _service(database, items).migrate()

    result = report.category("students")
    assert [o.record_id for o in result.succeeded] == ["1", "3"]
    assert [o.record_id for o in result.failed] == ["1", None, "2"]
    assert all(o.reason for o in result.failed)
    assert "already exists" in result.failed[0].reason
    curie = await StudentsRepository(database).get_by_id("3")
    assert (curie.first_name, curie.gender, curie.birth_date) == ("Marie", "femme", date(1867, 11, 7))
    assert len(report.warnings()) == 3


@pytest.mark.asyncio
async def test_categories_run_in_dependency_order_with_progress(database) -> None:
    items = {
        "academicYears": [{"id": "2026-2027", "nom": "2026-2027", "debut": "2026-09-01", "fin": "2027-08-31"}],
        "students": [{"id": "1", "firstName": "Ada", "lastName": "Lovelace", "classId": "1"}],
        "teachers": [{"id": "1", "firstName": "Alan", "lastName": "Turing", "paymentType": "horaire", "hourlyRate": 12}],
        "classes": [{"id": "1", "nom": "6e A"}],
    }
    calls = []
    report = await _service(database, items).migrate(progress=lambda *args: calls.append(args))

    assert [c.category for c in report.categories] == [
        "academic_years",
        "students",
        "teachers",
        "classes",
        "enrollments",
        "fees_per_class",
        "extra_fees",
        "services",
        "payments",
    ]
    assert ("academic_years", 1, 1) in calls
    assert ("classes", 1, 1) in calls
    # The migrated year is now the latest open one, so per-year data lands in it.
    assert [c.name for c in await ClassesRepository(database).list("2026-2027")] == ["6e A"]
    teacher = await TeachersRepository(database).get_by_id("1")
    assert (teacher.payment_type, teacher.hourly_rate) == ("horaire", 12)


@pytest.mark.asyncio
async def test_year_scoped_enrollments_take_precedence(database) -> None:
    items = {
        "students": [
            {"id": "1", "firstName": "Ada", "lastName": "Lovelace", "classId": "1"},
            {"id": "2", "firstName": "Grace", "lastName": "Hopper", "classId": "1"},
        ],
        "classes": [{"id": "1", "name": "6e A"}, {"id": "2", "name": "6e B"}],
        f"enrollments__{CURRENT_YEAR_ID}": [{"studentId": "1", "classId": "2", "date": "2025-09-02T07:00:00Z"}],
    }
    report = await _service(database, items).migrate()

    enrollments = await StudentsRepository(database).list_enrollments_by_year(CURRENT_YEAR_ID)
    assert [(e.id, e.student_id, e.class_id) for e in enrollments] == [(f"1-{CURRENT_YEAR_ID}", "1", "2")]
    assert enrollments[0].enrollment_date == date(2025, 9, 2)
    assert len(report.category("enrollments").succeeded) == 1


@pytest.mark.asyncio
async def test_enrollments_fall_back_to_student_class(database) -> None:
    items = {
        "students": [
            {"id": "1", "firstName": "Ada", "lastName": "Lovelace", "classId": "1"},
            {"id": "2", "firstName": "Grace", "lastName": "Hopper"},
        ],
        "classes": [{"id": "1", "name": "6e A"}],
    }
    await _service(database, items).migrate()

    enrollments = await StudentsRepository(database).list_enrollments_by_year(CURRENT_YEAR_ID)
    assert [(e.student_id, e.class_id, e.status) for e in enrollments] == [("1", "1", "active")]
    assert enrollments[0].enrollment_date == MIGRATION_DAY


@pytest.mark.asyncio
async def test_billing_configuration_and_payments(database) -> None:
    items = {
        "students": [{"id": "1", "firstName": "Ada", "lastName": "Lovelace"}],
        "classes": [{"id": "1", "name": "6e A"}],
        # Empty scoped value: the unscoped key is used.
        f"studentFees__{CURRENT_YEAR_ID}": {},
        "studentFees": {"1": {"inscription": 150, "mensualite": 60}},
        f"studentsExtraFees__{CURRENT_YEAR_ID}": [{"nom": "Tenue", "montant": 40}, {"id": "7", "name": "Livres", "amount": 80}],
        "studentsServices": [{"id": "1", "nom": "Cantine", "montant": 30}],
        f"studentPayments__{CURRENT_YEAR_ID}": [
            {"studentId": "1", "type": "mensualite", "classeId": "1", "mois": "09", "amount": 60, "date": "2025-09-05T10:00:00Z"},
            {"id": "9", "studentId": "1", "type": "inscription", "classId": "1", "amount": 150},
            {"id": "10", "studentId": "1", "type": "cadeau", "amount": 1},
        ],
    }
    report = await _service(database, items).migrate()
    payments = PaymentsRepository(database)

    fees = await payments.get_fees_per_class(CURRENT_YEAR_ID, "1")
    assert (fees.inscription, fees.mensualite) == (150, 60)
    extra = {f.name: f.id for f in await payments.list_extra_fees(CURRENT_YEAR_ID)}
    # The fee without an id got the next sequence number.
    assert extra == {"Tenue": "1", "Livres": "7"}
    services = await payments.list_services(CURRENT_YEAR_ID)
    assert [(s.name, s.periodicity) for s in services] == [("Cantine", "monthly")]

    paid = {p.id: p for p in await payments.list_student_payments("1", CURRENT_YEAR_ID)}
    assert set(paid) == {"1", "9"}
    assert (paid["1"].class_id, paid["1"].month, paid["1"].payment_date) == ("1", "09", date(2025, 9, 5))
    assert paid["9"].payment_date == MIGRATION_DAY
    assert [o.record_id for o in report.category("payments").failed] == ["10"]


@pytest.mark.asyncio
async def test_dependent_categories_skipped_without_current_year(database) -> None:
    await AcademicYearsRepository(database).close(CURRENT_YEAR_ID)
    items = {
        "students": [{"id": "1", "firstName": "Ada", "lastName": "Lovelace", "classId": "1"}],
        "classes": [{"id": "1", "name": "6e A"}],
    }
    report = await _service(database, items).migrate()

    assert report.category("students").skipped is False
    for name in ("classes", "enrollments", "fees_per_class", "extra_fees", "services", "payments"):
        result = report.category(name)
        assert result.skipped is True
        assert result.outcomes == []
    assert await StudentsRepository(database).get_by_id("1") is not None


@pytest.mark.asyncio
async def test_unparseable_key_is_a_category_warning(database) -> None:
    store = MemoryLegacyStore({"teachers": "[{not json", "students": [{"id": "1", "firstName": "Ada", "lastName": "L"}]})
    report = await MigrationService(database, store, today=MIGRATION_DAY).migrate()

    teachers = report.category("teachers")
    assert teachers.outcomes == []
    assert teachers.notes
    assert any(w.startswith("teachers:") for w in report.warnings())
    assert len(report.category("students").succeeded) == 1


@pytest.mark.asyncio
async def test_unreadable_store_is_a_hard_failure(database) -> None:
    service = MigrationService(database, UnreadableLegacyStore(), today=MIGRATION_DAY)
    with pytest.raises(MigrationError) as excinfo:
        await service.migrate()
    assert excinfo.value.report is not None
    assert excinfo.value.report.categories == []


@pytest.mark.asyncio
async def test_backup_keeps_order_and_raw_values(database) -> None:
    store = MemoryLegacyStore()
    store.set_item("students", json.dumps([{"id": "1"}]))
    store.set_item("activeYearId", "2025-2026")
    store.set_item("sidebarHidden", "true")
    backup = MigrationService(database, store).backup()

    assert list(backup) == ["students", "activeYearId", "sidebarHidden"]
    assert backup["students"] == [{"id": "1"}]
    assert backup["activeYearId"] == "2025-2026"
    assert backup["sidebarHidden"] is True


@pytest.mark.asyncio
async def test_clear_keeps_ui_state_only(database) -> None:
    store = MemoryLegacyStore(
        {"students": [], "academicYears": [], "sidebarHidden": "false", "activeYearId": "2025-2026"}
    )
    removed = MigrationService(database, store).clear_legacy_store()

    assert sorted(removed) == ["academicYears", "students"]
    assert sorted(store.keys()) == sorted(KEEP_KEYS)


def test_json_file_store_persists_writes(tmp_path) -> None:
    path = tmp_path / "legacy.json"
    store = JsonFileLegacyStore(path)
    assert store.keys() == []
    store.write_json("students", [{"id": "1"}])
    store.set_item("activeYearId", "2025-2026")

    reopened = JsonFileLegacyStore(path)
    assert reopened.keys() == ["students", "activeYearId"]
    assert reopened.read_json("students") == [{"id": "1"}]
    reopened.remove_item("students")
    assert JsonFileLegacyStore(path).keys() == ["activeYearId"]


def test_json_file_store_rejects_garbage(tmp_path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text("not json", encoding="utf-8")
    with pytest.raises(LegacyStoreError):
        JsonFileLegacyStore(path).keys()
