"""Username lookups used by the ledger to resolve transfer recipients."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_gateway.user.db_models import UserModel


class UserDirectory:
    async def find_user_id(self, db: AsyncSession, username: str) -> str | None:
        result = await db.execute(select(UserModel.id).where(UserModel.username == username))
        user_id = result.scalar_one_or_none()
        return str(user_id) if user_id is not None else None

    async def find_username(self, db: AsyncSession, user_id: str) -> str | None:
        try:
            key = uuid.UUID(user_id)
        except ValueError:
            return None
        result = await db.execute(select(UserModel.username).where(UserModel.id == key))
        return result.scalar_one_or_none()


class MemoryUserDirectory:
    """Static username <-> id map for tests and embedded use."""

    def __init__(self, users: dict[str, str] | None = None) -> None:
        self._ids_by_name: dict[str, str] = dict(users or {})

    def add(self, username: str, user_id: str) -> None:
        self._ids_by_name[username] = user_id

    async def find_user_id(self, db: object, username: str) -> str | None:
        return self._ids_by_name.get(username)

    async def find_username(self, db: object, user_id: str) -> str | None:
        for name, uid in self._ids_by_name.items():
            if uid == user_id:
                return name
        return None
