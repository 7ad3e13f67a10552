"""Shared create/read/update/delete plumbing for the per-entity repositories."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, inspect, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ecole_manager.core.exceptions import ConstraintViolationError, DuplicateKeyError, ServiceError
from ecole_manager.db.sequencer import next_id
from ecole_manager.db.session import Database

ReadT = TypeVar("ReadT", bound=BaseModel)

# Never writable through update()
IMMUTABLE_FIELDS = frozenset({"id", "year_id", "created_at"})


def primary_key_names(model) -> List[str]:
    return [column.key for column in inspect(model).primary_key]


def integrity_error_to_service_error(exc: IntegrityError, what: str) -> ServiceError:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    if "UNIQUE constraint failed" in message:
        return DuplicateKeyError(f"{what} already exists ({message})")
    return ConstraintViolationError(f"{what} rejected by a constraint ({message})")


def validate_payload(schema: Type[BaseModel], data: Any, what: str) -> BaseModel:
    """Accept a schema instance or a plain mapping; invalid values are a constraint violation."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ConstraintViolationError(f"Invalid {what}: {exc.errors()}") from exc


class Repository:
    """Base class. Every repository works on the explicitly given ``Database`` handle."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def _commit(self, session: AsyncSession, what: str) -> None:
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise integrity_error_to_service_error(exc, what) from exc

    async def _insert(self, model, read_schema: Type[ReadT], values: Mapping[str, Any], what: str) -> ReadT:
        """INSERT one row; DuplicateKeyError if its primary key exists. Returns the row read back."""
        key = {name: values.get(name) for name in primary_key_names(model)}
        async with self.database.session() as session:
            if await session.get(model, key) is not None:
                raise DuplicateKeyError(f"{what} {_format_key(key)} already exists")
            obj = model(**_without_defaulted_nones(model, values))
            session.add(obj)
            await self._commit(session, what)
            await session.refresh(obj)
            return read_schema.model_validate(obj)

    async def _upsert(
        self,
        model,
        read_schema: Type[ReadT],
        values: Mapping[str, Any],
        conflict_columns: Sequence[str],
        what: str,
    ) -> ReadT:
        """INSERT, or overwrite the row that already holds ``conflict_columns``."""
        values = _without_defaulted_nones(model, values)
        stmt = sqlite_insert(model).values(**values)
        changes = {k: stmt.excluded[k] for k in values if k not in conflict_columns}
        if changes:
            stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=changes)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
        lookup = {name: values[name] for name in conflict_columns}
        async with self.database.session() as session:
            try:
                await session.execute(stmt)
            except IntegrityError as exc:
                await session.rollback()
                raise integrity_error_to_service_error(exc, what) from exc
            await self._commit(session, what)
            row = (await session.execute(select(model).filter_by(**lookup))).scalar_one()
            return read_schema.model_validate(row)

    async def _get(self, model, read_schema: Type[ReadT], **key: Any) -> Optional[ReadT]:
        async with self.database.session() as session:
            obj = await session.get(model, key)
            return read_schema.model_validate(obj) if obj is not None else None

    async def _update(
        self,
        model,
        update_schema: Type[BaseModel],
        key: Mapping[str, Any],
        fields: Mapping[str, Any],
        mutable_fields: Iterable[str],
        what: str,
    ) -> bool:
        """
        Apply the whitelisted subset of ``fields`` to the row at ``key``.
        Returns False (and touches nothing) when no applicable field is given.
        """
        allowed = set(mutable_fields) - IMMUTABLE_FIELDS
        requested = {k: v for k, v in dict(fields).items() if k in allowed}
        if not requested:
            return False
        payload = validate_payload(update_schema, requested, what)
        values = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if k in allowed}
        if not values:
            return False
        stmt = update(model).filter_by(**key).values(**values)
        async with self.database.session() as session:
            try:
                result = await session.execute(stmt)
            except IntegrityError as exc:
                await session.rollback()
                raise integrity_error_to_service_error(exc, what) from exc
            await self._commit(session, what)
            return result.rowcount > 0

    async def _delete(self, model, what: str, **key: Any) -> int:
        async with self.database.session() as session:
            result = await session.execute(delete(model).filter_by(**key))
            await self._commit(session, what)
            return result.rowcount

    async def _list(self, stmt, read_schema: Type[ReadT]) -> List[ReadT]:
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [read_schema.model_validate(obj) for obj in result.scalars().all()]

    async def _rows(self, stmt) -> List[Dict[str, Any]]:
        """Plain mappings, for joins and views that have no ORM model."""
        async with self.database.session() as session:
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def _next_id(self, model, year_id: Optional[str] = None) -> str:
        async with self.database.session() as session:
            return await next_id(session, model, year_id)


def _format_key(key: Mapping[str, Any]) -> str:
    return ", ".join(f"{k}={v!r}" for k, v in key.items())


def _without_defaulted_nones(model, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop None for columns with a server default so the default applies instead of NULL."""
    columns = inspect(model).columns
    return {
        k: v
        for k, v in values.items()
        if v is not None or k not in columns or columns[k].server_default is None
    }
