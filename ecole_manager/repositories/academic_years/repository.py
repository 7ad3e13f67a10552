import logging
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError

from ecole_manager.core.models import AcademicYear
from ecole_manager.repositories.base import Repository, integrity_error_to_service_error, validate_payload

from .schemas import AcademicYearCreate, AcademicYearRead, AcademicYearUpdate

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("name", "start_date", "end_date", "closed")

# Configuration copied by copy_configuration(); rows already in the target year are overwritten in place.
COPY_CONFIGURATION_SQL = (
    """
    INSERT INTO fees_per_class (year_id, class_id, inscription, mensualite)
    SELECT :to_year, class_id, inscription, mensualite
    FROM fees_per_class
    WHERE year_id = :from_year
    ON CONFLICT (year_id, class_id) DO UPDATE SET
        inscription = excluded.inscription,
        mensualite = excluded.mensualite
    """,
    """
    INSERT INTO extra_fees (id, year_id, name, amount)
    SELECT id, :to_year, name, amount
    FROM extra_fees
    WHERE year_id = :from_year
    ON CONFLICT (id, year_id) DO UPDATE SET
        name = excluded.name,
        amount = excluded.amount
    """,
    """
    INSERT INTO services (id, year_id, name, amount, periodicity)
    SELECT id, :to_year, name, amount, periodicity
    FROM services
    WHERE year_id = :from_year
    ON CONFLICT (id, year_id) DO UPDATE SET
        name = excluded.name,
        amount = excluded.amount,
        periodicity = excluded.periodicity
    """,
    """
    INSERT INTO subjects (id, year_id, name, coefficient, is_optional, language_type)
    SELECT id, :to_year, name, coefficient, is_optional, language_type
    FROM subjects
    WHERE year_id = :from_year
    ON CONFLICT (id, year_id) DO UPDATE SET
        name = excluded.name,
        coefficient = excluded.coefficient,
        is_optional = excluded.is_optional,
        language_type = excluded.language_type
    """,
)


class AcademicYearsRepository(Repository):
    async def create(self, data: Union[AcademicYearCreate, Mapping[str, Any]]) -> AcademicYearRead:
        payload = validate_payload(AcademicYearCreate, data, "academic year")
        return await self._insert(AcademicYear, AcademicYearRead, payload.model_dump(), "Academic year")

    async def get_by_id(self, year_id: str) -> Optional[AcademicYearRead]:
        return await self._get(AcademicYear, AcademicYearRead, id=year_id)

    async def list(self) -> List[AcademicYearRead]:
        """All years, most recent first."""
        stmt = select(AcademicYear).order_by(AcademicYear.start_date.desc())
        return await self._list(stmt, AcademicYearRead)

    async def get_current(self) -> Optional[AcademicYearRead]:
        """The open year with the latest start date, if any."""
        stmt = (
            select(AcademicYear)
            .where(AcademicYear.closed.is_(False))
            .order_by(AcademicYear.start_date.desc())
            .limit(1)
        )
        rows = await self._list(stmt, AcademicYearRead)
        return rows[0] if rows else None

    async def update(self, year_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(
            AcademicYear, AcademicYearUpdate, {"id": year_id}, fields, MUTABLE_FIELDS, "Academic year"
        )

    async def close(self, year_id: str) -> bool:
        """Mark the year closed. Its rows stay queryable; nothing is deleted."""
        return await self.update(year_id, {"closed": True})

    async def delete(self, year_id: str) -> int:
        """Delete the year and, through cascading keys, every row scoped to it."""
        deleted = await self._delete(AcademicYear, "Academic year", id=year_id)
        if deleted:
            logger.info("Deleted academic year %s and all its rows", year_id)
        return deleted

    async def copy_configuration(self, from_year_id: str, to_year_id: str) -> None:
        """Copy fees per class, extra fees, services and subjects to another year in one transaction."""
        params = {"from_year": from_year_id, "to_year": to_year_id}
        try:
            async with self.database.transaction() as session:
                for statement in COPY_CONFIGURATION_SQL:
                    await session.execute(text(statement), params)
        except IntegrityError as exc:
            raise integrity_error_to_service_error(exc, "Year configuration copy") from exc
        logger.info("Copied year configuration %s -> %s", from_year_id, to_year_id)
