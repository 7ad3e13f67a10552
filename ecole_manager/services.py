"""
The entry points presentation code is allowed to call. Every outcome is a
plain value or an ``OperationResult``; storage exceptions stay inside.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecole_manager.core.config import Settings
from ecole_manager.core.enums import EnrollmentStatus
from ecole_manager.core.exceptions import LegacyStoreError, MigrationError, ServiceError
from ecole_manager.core.models import AcademicYear, Enrollment, SchoolClass, Student, Teacher
from ecole_manager.db.health import check_health
from ecole_manager.db.schema import open_database
from ecole_manager.db.session import Database
from ecole_manager.migration.legacy_store import JsonFileLegacyStore, LegacyStore
from ecole_manager.migration.schemas import MigrationReport
from ecole_manager.migration.service import MigrationService, ProgressCallback
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository
from ecole_manager.repositories.classes.repository import ClassesRepository
from ecole_manager.repositories.guardians.repository import GuardiansRepository
from ecole_manager.repositories.students.repository import StudentsRepository
from ecole_manager.repositories.teachers.repository import TeachersRepository

logger = logging.getLogger(__name__)


class StoreStats(BaseModel):
    students: int
    teachers: int
    academic_years: int
    current_year_id: Optional[str] = None
    classes: int = 0
    active_enrollments: int = 0


class OperationResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    backup: Optional[Dict[str, Any]] = None
    report: Optional[MigrationReport] = None
    document: Optional[Dict[str, List[Dict[str, Any]]]] = None
    text: Optional[str] = None
    stats: Optional[StoreStats] = None


class DatabaseService:
    def __init__(self, database: Database, legacy_store: LegacyStore) -> None:
        self.database = database
        self.legacy_store = legacy_store
        self.academic_years = AcademicYearsRepository(database)
        self.students = StudentsRepository(database)
        self.teachers = TeachersRepository(database)
        self.guardians = GuardiansRepository(database)
        self.classes = ClassesRepository(database)
        self.migration = MigrationService(database, legacy_store)

    @classmethod
    async def from_settings(cls, settings: Settings) -> "DatabaseService":
        database = await open_database(settings.database_url, echo=settings.sql_echo)
        return cls(database, JsonFileLegacyStore(settings.legacy_store_path))

    async def close(self) -> None:
        await self.database.dispose()

    async def is_healthy(self) -> bool:
        return await check_health(self.database)

    async def migrate(self, progress: Optional[ProgressCallback] = None) -> OperationResult:
        """
        Snapshot the legacy store, then import it. The legacy store is left
        untouched; call ``clear_legacy_store`` once the result is accepted.
        """
        try:
            backup = self.backup()
        except LegacyStoreError as exc:
            logger.error("Backup before migration failed: %s", exc)
            return OperationResult(success=False, reason=exc.message)
        try:
            report = await self.migration.migrate(progress)
        except MigrationError as exc:
            report = exc.report
            return OperationResult(
                success=False,
                reason=exc.message,
                warnings=report.warnings() if report is not None else [],
                backup=backup,
                report=report,
            )
        return OperationResult(success=True, warnings=report.warnings(), backup=backup, report=report)

    def backup(self) -> Dict[str, Any]:
        return self.migration.backup()

    def backup_json(self) -> str:
        return json.dumps(self.backup(), ensure_ascii=False, indent=2)

    def clear_legacy_store(self) -> List[str]:
        return self.migration.clear_legacy_store()

    async def export(self) -> OperationResult:
        """Sections of internal-shape records; classes and enrollments are those of the current year."""
        return await self._read("export", self._export_document)

    async def export_json(self) -> OperationResult:
        result = await self.export()
        if result.success:
            result.text = json.dumps(result.document, ensure_ascii=False, indent=2)
        return result

    async def stats(self) -> OperationResult:
        return await self._read("stats", self._collect_stats)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.database.transaction() as session:
            yield session

    async def _read(self, what: str, load: Callable[[], Awaitable[OperationResult]]) -> OperationResult:
        try:
            return await load()
        except (SQLAlchemyError, ServiceError) as exc:
            logger.error("%s failed: %s", what, exc)
            return OperationResult(success=False, reason=f"{what} failed: {exc}")

    async def _export_document(self) -> OperationResult:
        current = await self.academic_years.get_current()
        classes, enrollments = [], []
        if current is not None:
            classes = await self.classes.list(current.id)
            enrollments = await self.students.list_enrollments_by_year(current.id)
        sections = {
            "academic_years": await self.academic_years.list(),
            "students": await self.students.list(),
            "teachers": await self.teachers.list(),
            "guardians": await self.guardians.list(),
            "classes": classes,
            "enrollments": enrollments,
        }
        document = {name: [row.model_dump(mode="json") for row in rows] for name, rows in sections.items()}
        return OperationResult(success=True, document=document)

    async def _collect_stats(self) -> OperationResult:
        current = await self.academic_years.get_current()
        async with self.database.session() as session:
            stats = StoreStats(
                students=await _count(session, select(func.count()).select_from(Student)),
                teachers=await _count(session, select(func.count()).select_from(Teacher)),
                academic_years=await _count(session, select(func.count()).select_from(AcademicYear)),
            )
            if current is not None:
                stats.current_year_id = current.id
                stats.classes = await _count(
                    session, select(func.count()).select_from(SchoolClass).where(SchoolClass.year_id == current.id)
                )
                stats.active_enrollments = await _count(
                    session,
                    select(func.count())
                    .select_from(Enrollment)
                    .where(Enrollment.year_id == current.id, Enrollment.status == EnrollmentStatus.ACTIVE.value),
                )
        return OperationResult(success=True, stats=stats)


async def _count(session: AsyncSession, stmt) -> int:
    return (await session.execute(stmt)).scalar_one()
