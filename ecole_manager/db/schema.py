"""Idempotent provisioning of the store: tables, indexes, derived views and the bootstrap year."""

import logging
from datetime import date
from typing import Dict, Optional, Tuple

from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from ecole_manager.core.exceptions import SchemaInitError
from ecole_manager.core.models import AcademicYear
from ecole_manager.db.session import Base, Database, create_engine

logger = logging.getLogger(__name__)


# Aggregates are views over source rows; nothing here is stored state.
CREATE_VIEW_SQL: Dict[str, str] = {
    "student_history": """
        CREATE VIEW IF NOT EXISTS student_history AS
        SELECT
            e.student_id,
            e.year_id,
            e.class_id,
            c.name AS class_name,
            ay.name AS year_name,
            e.status,
            e.enrollment_date
        FROM enrollments e
        JOIN classes c ON e.class_id = c.id AND e.year_id = c.year_id
        JOIN academic_years ay ON e.year_id = ay.id
        ORDER BY e.year_id, e.enrollment_date;
    """,
    "fees_due": """
        CREATE VIEW IF NOT EXISTS fees_due AS
        SELECT
            e.student_id,
            e.year_id,
            e.class_id,
            COALESCE(fpc.inscription, 0) AS inscription_due,
            COALESCE(fpc.mensualite, 0) AS mensualite_due
        FROM enrollments e
        LEFT JOIN fees_per_class fpc ON e.class_id = fpc.class_id AND e.year_id = fpc.year_id
        WHERE e.status = 'active';
    """,
    "payment_summary": """
        CREATE VIEW IF NOT EXISTS payment_summary AS
        SELECT
            p.student_id,
            p.year_id,
            p.type,
            p.class_id,
            p.month,
            p.item_id,
            SUM(p.amount) AS total_paid,
            COUNT(*) AS payment_count,
            MAX(p.payment_date) AS last_payment_date
        FROM payments p
        GROUP BY p.student_id, p.year_id, p.type, p.class_id, p.month, p.item_id;
    """,
    # Each graded item is one sample of the mean; weight scales the sample, it is not a mean weight.
    # CAST keeps SQLite from integer-dividing scores stored with NUMERIC affinity.
    "student_grades_summary": """
        CREATE VIEW IF NOT EXISTS student_grades_summary AS
        SELECT
            g.student_id,
            g.year_id,
            gi.class_id,
            gi.subject_id,
            gi.term,
            AVG(CAST(g.score AS REAL) * gi.weight / gi.max_points * 20) AS weighted_average,
            COUNT(g.score) AS grade_count
        FROM grades g
        JOIN grade_items gi ON g.grade_item_id = gi.id AND g.year_id = gi.year_id
        WHERE g.score IS NOT NULL
        GROUP BY g.student_id, g.year_id, gi.class_id, gi.subject_id, gi.term;
    """,
    "attendance_summary": """
        CREATE VIEW IF NOT EXISTS attendance_summary AS
        SELECT
            ar.student_id,
            ar.year_id,
            ar.status,
            COUNT(*) AS count
        FROM attendance_records ar
        GROUP BY ar.student_id, ar.year_id, ar.status;
    """,
}


def school_year_bounds(today: Optional[date] = None) -> Tuple[int, int]:
    """(start_year, end_year) of the school year containing ``today``. Years start in September."""
    today = today or date.today()
    start_year = today.year if today.month >= 9 else today.year - 1
    return start_year, start_year + 1


def default_year_values(today: Optional[date] = None) -> dict:
    start_year, end_year = school_year_bounds(today)
    return {
        "id": f"{start_year}-{end_year}",
        "name": f"Année scolaire {start_year}-{end_year}",
        "start_date": date(start_year, 9, 1),
        "end_date": date(end_year, 8, 31),
        "closed": False,
    }


async def _create_views(conn: AsyncConnection) -> None:
    for view_name, ddl in CREATE_VIEW_SQL.items():
        await conn.execute(text(ddl))
        logger.debug("View %s ensured", view_name)


async def _ensure_bootstrap_year(conn: AsyncConnection, today: Optional[date] = None) -> None:
    count = (await conn.execute(select(func.count()).select_from(AcademicYear))).scalar_one()
    if count:
        return
    values = default_year_values(today)
    await conn.execute(insert(AcademicYear).values(**values))
    logger.info("Inserted bootstrap academic year %s", values["id"])


async def provision_schema(database: Database, today: Optional[date] = None) -> None:
    """Create tables, indexes and views if absent; insert one academic year into an empty store."""
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await _create_views(conn)
        await _ensure_bootstrap_year(conn, today)


async def open_database(database_url: str, echo: bool = False, today: Optional[date] = None) -> Database:
    """
    Open (and provision, if needed) the store at ``database_url``.
    Safe to call repeatedly on the same file. Raises SchemaInitError when the
    schema cannot be provisioned; there is no degraded mode.
    """
    database = Database(create_engine(database_url, echo=echo))
    try:
        await provision_schema(database, today)
    except (SQLAlchemyError, OSError) as exc:
        await database.dispose()
        logger.error("Schema provisioning failed for %s: %s", database_url, exc)
        raise SchemaInitError(f"Cannot provision schema: {exc}") from exc
    logger.info("Store ready at %s", database_url)
    return database
