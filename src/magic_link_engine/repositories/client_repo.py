from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from magic_link_engine.models.client import ClientORM
from magic_link_engine.repositories.postgres_repo import PostgresRepository


class ClientRepository(PostgresRepository[ClientORM]):
    def __init__(self, session: AsyncSession):
        super().__init__(ClientORM, session)

    async def get_by_client_id(self, client_id: str) -> ClientORM | None:
        query = select(self.model).where(
            self.model.client_id == client_id, self.model.enabled.is_(True)
        )
        return await self._one(query)
