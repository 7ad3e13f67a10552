import logging

from sqlalchemy.exc import SQLAlchemyError

from ecole_manager.core.exceptions import ServiceError
from ecole_manager.db.session import Database
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository

logger = logging.getLogger(__name__)


async def check_health(database: Database) -> bool:
    """True when a current-year lookup runs without raising. An empty result still counts as healthy."""
    try:
        await AcademicYearsRepository(database).get_current()
    except (SQLAlchemyError, ServiceError, OSError) as exc:
        logger.debug("Health probe failed: %s", exc)
        return False
    return True
