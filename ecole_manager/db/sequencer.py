"""Next numeric identifier for an entity, optionally scoped to one academic year."""

from typing import Optional

from sqlalchemy import Integer, and_, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def next_id(session: AsyncSession, model, year_id: Optional[str] = None) -> str:
    """
    ``max + 1`` over the ids of ``model`` made only of digits, as a string ("1" when none).
    Non-numeric ids are ignored; generated ids are always numeric so they never collide with them.
    """
    id_column = model.id
    numeric_only = and_(id_column != "", id_column.op("NOT GLOB")("*[^0-9]*"))
    stmt = select(func.max(cast(id_column, Integer))).where(numeric_only)
    if year_id is not None:
        stmt = stmt.where(model.year_id == year_id)
    current_max = (await session.execute(stmt)).scalar_one_or_none()
    return str((current_max or 0) + 1)
