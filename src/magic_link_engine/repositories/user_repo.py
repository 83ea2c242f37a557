from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from magic_link_engine.models.user import UserORM, UserStatus
from magic_link_engine.repositories.postgres_repo import PostgresRepository


class UserRepository(PostgresRepository[UserORM]):
    def __init__(self, session: AsyncSession):
        super().__init__(UserORM, session)

    async def get_by_email(self, email: str) -> UserORM | None:
        return await self._one(select(self.model).where(self.model.email == email))

    async def mark_email_verified(self, user: UserORM, strategy: str) -> UserORM:
        """Flag the user's email as verified and record the strategy that proved it."""
        user.is_email_verified = True
        if user.status == UserStatus.PENDING_VERIFICATION:
            user.status = UserStatus.ACTIVE
        strategies = list(user.auth_strategies or [])
        if strategy not in strategies:
            strategies.append(strategy)
            user.auth_strategies = strategies
        await self.session.commit()
        return user
