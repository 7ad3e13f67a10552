import logging
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ecole_manager.core.exceptions import ServiceError
from ecole_manager.db.health import check_health
from ecole_manager.db.session import Database
from ecole_manager.migration.legacy_store import LegacyStore

logger = logging.getLogger(__name__)

# Year assumed by the legacy store when nothing has been selected yet.
DEFAULT_LEGACY_YEAR_ID = "2024-2025"
ACTIVE_YEAR_KEY = "activeYearId"


class Degraded(Exception):
    """Raised by a relational-store operation that cannot serve the call, so the legacy store does."""


class FallbackAdapter:
    """
    Serves calls from the relational store when its health probe passes, and
    from the legacy store otherwise. Writes made while degraded stay in the
    legacy store; nothing copies them back.
    """

    def __init__(self, database: Optional[Database], legacy_store: LegacyStore) -> None:
        self.database = database
        self.legacy_store = legacy_store

    async def is_healthy(self) -> bool:
        if self.database is None:
            return False
        return await check_health(self.database)

    async def _serve(
        self,
        what: str,
        primary: Callable[[], Awaitable[Any]],
        fallback: Callable[[], Any],
    ) -> Any:
        if await self.is_healthy():
            try:
                return await primary()
            except Degraded as exc:
                logger.debug("%s not served by the relational store: %s", what, exc)
            except (ServiceError, SQLAlchemyError) as exc:
                logger.warning("Relational store failed on %s, falling back to the legacy store: %s", what, exc)
        else:
            logger.warning("Relational store unavailable, %s served by the legacy store", what)
        return fallback()

    def _legacy_active_year_id(self) -> str:
        return self.legacy_store.get_item(ACTIVE_YEAR_KEY) or DEFAULT_LEGACY_YEAR_ID

    def _legacy_list(self, key: str) -> list:
        try:
            value = self.legacy_store.read_json(key, [])
        except ValueError:
            logger.warning("Legacy key %s is not valid JSON, treating it as empty", key)
            return []
        return value if isinstance(value, list) else []
