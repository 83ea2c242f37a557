from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from magic_link_engine.core.postgres import Base

T = TypeVar("T", bound=Base)


class PostgresRepository(Generic[T]):
    """Read access to one mapped table; writes go through the caller's session."""

    def __init__(self, model: type[T], session: AsyncSession):
        self.model = model
        self.session = session

    async def get(self, id: Any) -> T | None:
        return await self._one(select(self.model).where(self.model.id == id))  # type: ignore[attr-defined]

    async def _one(self, query: Select[tuple[T]]) -> T | None:
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
