from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memobot.models.user import UserPreference


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def get(self, user_id: int) -> Optional[UserPreference]:
        q = await self.s.execute(select(UserPreference).where(UserPreference.user_id == user_id))
        return q.scalar_one_or_none()

    async def upsert(self, user_id: int, **values) -> UserPreference:
        u = await self.get(user_id)
        if u:
            for k, v in values.items():
                setattr(u, k, v)
        else:
            u = UserPreference(user_id=user_id, **values)
            self.s.add(u)
        await self.s.commit()
        await self.s.refresh(u)
        return u


UserRepo = UserRepository
__all__ = ["UserRepository", "UserRepo"]
