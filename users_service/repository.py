"""
User store adapter
CRUD over the users table, returning Outcomes like the news store does.
"""
import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from shared.outcomes import Outcome

from .models import UserRecord
from .schemas import User

logger = structlog.get_logger(__name__)


def _to_user(row: UserRecord) -> User:
    return User(id=row.id, name=row.name, registered_objects=row.registered_objects)


def _missing(user_id: str) -> str:
    return f"User with id {user_id} does not exist"


class UserRepository:
    def __init__(self, session_factory: async_sessionmaker):
        self._sf = session_factory

    async def get(self, user_id: str) -> Outcome[User]:
        try:
            async with self._sf() as s:
                row = await s.get(UserRecord, user_id)
        except Exception as e:
            logger.error("user_store_get_failed", user_id=user_id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to load user {user_id}")
        if row is None:
            return Outcome.not_found(_missing(user_id))
        return Outcome.success(_to_user(row))

    async def add(self, user: User) -> Outcome[User]:
        try:
            async with self._sf() as s:
                s.add(UserRecord(id=user.id, name=user.name, registered_objects=user.registered_objects))
                await s.commit()
        except Exception as e:
            logger.error("user_store_add_failed", user_id=user.id, error=str(e), exc_info=True)
            return Outcome.unprocessable("Failed to store user")
        return Outcome.success(user)

    async def replace(self, user: User) -> Outcome[User]:
        try:
            async with self._sf() as s:
                row = await s.get(UserRecord, user.id)
                if row is None:
                    return Outcome.not_found(_missing(user.id))
                row.name = user.name
                row.registered_objects = user.registered_objects
                await s.commit()
        except Exception as e:
            logger.error("user_store_replace_failed", user_id=user.id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to update user {user.id}")
        return Outcome.success(user)

    async def delete(self, user_id: str) -> Outcome[None]:
        try:
            async with self._sf() as s:
                result = await s.execute(delete(UserRecord).where(UserRecord.id == user_id))
                await s.commit()
        except Exception as e:
            logger.error("user_store_delete_failed", user_id=user_id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to delete user {user_id}")
        if result.rowcount == 0:
            return Outcome.not_found(_missing(user_id))
        return Outcome.success()
