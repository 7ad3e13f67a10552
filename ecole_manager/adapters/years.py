"""Academic-year calls in the legacy record shape (``nom``/``debut``/``fin``), backed by either store."""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ecole_manager.adapters.base import ACTIVE_YEAR_KEY, Degraded, FallbackAdapter
from ecole_manager.adapters.field_maps import YEAR_FIELDS
from ecole_manager.db.schema import default_year_values
from ecole_manager.db.session import Database
from ecole_manager.migration.legacy_records import pick
from ecole_manager.migration.legacy_store import LegacyStore
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository


class YearsAdapter(FallbackAdapter):
    def __init__(
        self, database: Optional[Database], legacy_store: LegacyStore, today: Optional[date] = None
    ) -> None:
        super().__init__(database, legacy_store)
        self.years = AcademicYearsRepository(database) if database is not None else None
        self._today = today

    async def list_years(self) -> List[Dict[str, Any]]:
        async def primary():
            return [YEAR_FIELDS.to_external(y.model_dump(mode="json")) for y in await self.years.list()]

        return await self._serve("list_years", primary, lambda: self._legacy_list("academicYears"))

    async def get_active_year_id(self) -> str:
        async def primary():
            current = await self.years.get_current()
            if current is None:
                raise Degraded("no current academic year")
            return current.id

        return await self._serve("get_active_year_id", primary, self._legacy_active_year_id)

    def set_active_year(self, year_id: str) -> None:
        """The selected year is UI state and always lives in the legacy store."""
        self.legacy_store.set_item(ACTIVE_YEAR_KEY, year_id)

    async def add_year(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        data = data or {}
        defaults = default_year_values(self._today)
        values = {
            "id": pick(data, "id", default=defaults["id"]),
            "name": pick(data, "name", "nom", default=defaults["name"]),
            "start_date": pick(data, "start_date", "debut", default=defaults["start_date"].isoformat()),
            "end_date": pick(data, "end_date", "fin", default=defaults["end_date"].isoformat()),
            "closed": bool(data.get("closed") or False),
        }

        async def primary():
            created = await self.years.create(values)
            return YEAR_FIELDS.to_external(created.model_dump(mode="json"))

        def fallback():
            legacy_year = YEAR_FIELDS.to_external(values)
            years = self._legacy_list("academicYears")
            if not any(isinstance(y, dict) and y.get("id") == legacy_year["id"] for y in years):
                years.append(legacy_year)
                self.legacy_store.write_json("academicYears", years)
            return legacy_year

        year = await self._serve("add_year", primary, fallback)
        self.set_active_year(year["id"])
        return year

    async def ensure_default_year(self) -> Dict[str, Any]:
        years = await self.list_years()
        if not years:
            return await self.add_year()
        active_id = await self.get_active_year_id()
        if not any(y.get("id") == active_id for y in years):
            self.set_active_year(years[0]["id"])
        return years[0]

    async def key_for_year(self, base_key: str, year_id: Optional[str] = None) -> str:
        year = year_id or await self.get_active_year_id()
        return f"{base_key}__{year}"
