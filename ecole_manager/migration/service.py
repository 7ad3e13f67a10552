"""
Import of the legacy flat key-value store into the relational store.

Categories run in dependency order. Each record is migrated on its own: a
record that fails is reported and the category goes on. Anything that is not
a per-record problem (unreadable store, broken database) aborts the run with
MigrationError carrying the partial report.
"""

import json
import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from ecole_manager.core.exceptions import LegacyStoreError, MigrationError, ServiceError
from ecole_manager.db.session import Database
from ecole_manager.migration import legacy_records
from ecole_manager.migration.legacy_records import LegacyFieldError
from ecole_manager.migration.legacy_store import LegacyStore
from ecole_manager.migration.schemas import CategoryResult, MigrationReport, RecordOutcome
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository
from ecole_manager.repositories.classes.repository import ClassesRepository
from ecole_manager.repositories.payments.repository import PaymentsRepository
from ecole_manager.repositories.students.repository import StudentsRepository
from ecole_manager.repositories.teachers.repository import TeachersRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

# UI/session state, not domain data; survives the post-migration cleanup.
KEEP_KEYS = ("sidebarHidden", "activeYearId")

NO_CURRENT_YEAR = "no current academic year"


class MigrationService:
    def __init__(self, database: Database, legacy_store: LegacyStore, today: Optional[date] = None) -> None:
        self.database = database
        self.legacy_store = legacy_store
        self._today = today
        self.years = AcademicYearsRepository(database)
        self.students = StudentsRepository(database)
        self.teachers = TeachersRepository(database)
        self.classes = ClassesRepository(database)
        self.payments = PaymentsRepository(database)

    @property
    def today(self) -> date:
        return self._today or date.today()

    async def migrate(self, progress: Optional[ProgressCallback] = None) -> MigrationReport:
        report = MigrationReport()
        steps = (
            self._migrate_academic_years,
            self._migrate_students,
            self._migrate_teachers,
            self._migrate_classes,
            self._migrate_enrollments,
            self._migrate_fees_per_class,
            self._migrate_extra_fees,
            self._migrate_services,
            self._migrate_payments,
        )
        logger.info("Starting legacy store migration")
        try:
            for step in steps:
                result = await step(progress)
                report.categories.append(result)
                logger.info(
                    "Migrated %s: %d ok, %d failed%s",
                    result.category,
                    len(result.succeeded),
                    len(result.failed),
                    " (skipped)" if result.skipped else "",
                )
        except ServiceError as exc:
            logger.error("Migration aborted: %s", exc)
            raise MigrationError(f"Migration aborted: {exc.message}", report=report) from exc
        except Exception as exc:
            logger.exception("Migration aborted")
            raise MigrationError(f"Migration aborted: {exc}", report=report) from exc
        logger.info("Migration finished with %d failed record(s)", len(report.failed))
        return report

    def backup(self) -> Dict[str, Any]:
        """Every legacy key, in store order, as its parsed JSON value or else its raw text."""
        bundle: Dict[str, Any] = OrderedDict()
        for key in self.legacy_store.keys():
            raw = self.legacy_store.get_item(key)
            try:
                bundle[key] = json.loads(raw)
            except (TypeError, ValueError):
                bundle[key] = raw
        return bundle

    def clear_legacy_store(self) -> List[str]:
        """Remove every legacy key except KEEP_KEYS. Returns the removed keys."""
        removed = [key for key in self.legacy_store.keys() if key not in KEEP_KEYS]
        for key in removed:
            self.legacy_store.remove_item(key)
        logger.info("Cleared %d legacy key(s)", len(removed))
        return removed

    # Categories

    async def _migrate_academic_years(self, progress):
        result = CategoryResult(category="academic_years")
        records = self._read_list("academicYears", result)
        await self._run(result, records, self._create_year, progress)
        return result

    async def _create_year(self, record):
        await self.years.create(legacy_records.academic_year(record))

    async def _migrate_students(self, progress):
        result = CategoryResult(category="students")
        records = self._read_list("students", result)
        await self._run(result, records, self._create_student, progress)
        return result

    async def _create_student(self, record):
        await self.students.create(legacy_records.student(record))

    async def _migrate_teachers(self, progress):
        result = CategoryResult(category="teachers")
        records = self._read_list("teachers", result)
        await self._run(result, records, self._create_teacher, progress)
        return result

    async def _create_teacher(self, record):
        await self.teachers.create(legacy_records.teacher(record))

    async def _migrate_classes(self, progress):
        result = CategoryResult(category="classes")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        records = self._read_list("classes", result)

        async def create(record):
            await self.classes.create(legacy_records.school_class(record, year_id))

        await self._run(result, records, create, progress)
        return result

    async def _migrate_enrollments(self, progress):
        result = CategoryResult(category="enrollments")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        today = self.today
        records = self._read_list(f"enrollments__{year_id}", result)
        if records:

            async def enroll(record):
                await self.students.enroll(legacy_records.enrollment(record, year_id, today))

            await self._run(result, records, enroll, progress)
            return result

        # No year-scoped list: fall back to the single classId kept on old student records.
        students = [s for s in self._read_list("students", result) if isinstance(s, Mapping) and s.get("classId")]

        async def enroll_from_student(record):
            await self.students.enroll(legacy_records.enrollment_from_student(record, year_id, today))

        await self._run(result, students, enroll_from_student, progress)
        return result

    async def _migrate_fees_per_class(self, progress):
        result = CategoryResult(category="fees_per_class")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        fees = self._read_scoped("studentFees", year_id, result, dict)
        records = [dict(fee, classId=class_id) if isinstance(fee, Mapping) else fee for class_id, fee in fees.items()]

        async def save(record):
            await self.payments.set_fees_per_class(legacy_records.fees_per_class(record["classId"], record, year_id))

        await self._run(result, records, save, progress, id_key="classId")
        return result

    async def _migrate_extra_fees(self, progress):
        result = CategoryResult(category="extra_fees")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        records = self._read_scoped("studentsExtraFees", year_id, result, list)

        async def create(record):
            fee_id = legacy_records.record_id(record) or await self.payments.next_extra_fee_id(year_id)
            await self.payments.create_extra_fee(legacy_records.priced_item(record, year_id, fee_id))

        await self._run(result, records, create, progress)
        return result

    async def _migrate_services(self, progress):
        result = CategoryResult(category="services")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        records = self._read_scoped("studentsServices", year_id, result, list)

        async def create(record):
            service_id = legacy_records.record_id(record) or await self.payments.next_service_id(year_id)
            values = legacy_records.priced_item(record, year_id, service_id)
            await self.payments.create_service(dict(values, periodicity="monthly"))

        await self._run(result, records, create, progress)
        return result

    async def _migrate_payments(self, progress):
        result = CategoryResult(category="payments")
        year_id = await self._current_year_id(result)
        if year_id is None:
            return result
        today = self.today
        records = self._read_scoped("studentPayments", year_id, result, list)

        async def create(record):
            payment_id = legacy_records.record_id(record) or await self.payments.next_payment_id(year_id)
            await self.payments.create_payment(legacy_records.payment(record, year_id, payment_id, today))

        await self._run(result, records, create, progress)
        return result

    # Helpers

    async def _run(
        self,
        result: CategoryResult,
        records: Sequence[Any],
        migrate_one: Callable[[Mapping[str, Any]], Awaitable[None]],
        progress: Optional[ProgressCallback],
        id_key: str = "id",
    ) -> None:
        total = len(records)
        for done, record in enumerate(records, start=1):
            result.outcomes.append(await self._migrate_record(result.category, record, migrate_one, id_key))
            if progress is not None:
                progress(result.category, done, total)

    async def _migrate_record(self, category, record, migrate_one, id_key) -> RecordOutcome:
        if not isinstance(record, Mapping):
            reason = f"expected an object, got {type(record).__name__}"
            logger.warning("Failed to migrate %s record: %s", category, reason)
            return RecordOutcome(success=False, reason=reason)
        rid = record.get(id_key)
        rid = str(rid) if rid is not None else None
        try:
            await migrate_one(record)
        except LegacyStoreError:
            raise
        except (ServiceError, LegacyFieldError, KeyError) as exc:
            reason = exc.message if isinstance(exc, ServiceError) else str(exc)
            logger.warning("Failed to migrate %s %s: %s", category, rid, reason)
            return RecordOutcome(success=False, record_id=rid, record=dict(record), reason=reason)
        return RecordOutcome(success=True, record_id=rid, record=dict(record))

    async def _current_year_id(self, result: CategoryResult) -> Optional[str]:
        current = await self.years.get_current()
        if current is None:
            result.skipped = True
            result.skip_reason = NO_CURRENT_YEAR
            logger.warning("No current academic year, skipping %s", result.category)
            return None
        return current.id

    def _read(self, key: str, result: CategoryResult, expected: type) -> Any:
        """
        Parsed value of ``key`` or an empty ``expected``. A value that is not
        JSON, or not of the expected shape, is noted on the category result.
        """
        try:
            value = self.legacy_store.read_json(key)
        except ValueError as exc:
            result.notes.append(f"legacy key {key} is not valid JSON ({exc})")
            logger.warning("Legacy key %s is not valid JSON, treating it as empty", key)
            return expected()
        if value is None:
            return expected()
        if not isinstance(value, expected):
            result.notes.append(f"legacy key {key} holds {type(value).__name__}, expected {expected.__name__}")
            logger.warning("Legacy key %s has an unexpected shape, treating it as empty", key)
            return expected()
        return value

    def _read_list(self, key: str, result: CategoryResult) -> List[Any]:
        return self._read(key, result, list)

    def _read_scoped(self, base_key: str, year_id: str, result: CategoryResult, expected: type) -> Any:
        """The ``<base>__<year>`` value when it has content, else the unscoped ``<base>`` value."""
        value = self._read(f"{base_key}__{year_id}", result, expected)
        if value:
            return value
        return self._read(base_key, result, expected)

