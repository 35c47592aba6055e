"""
User service operations
Owns users and their registered-object counter. Registering a news item
bumps the counter and sends the confirmation back to the news service.
"""
from datetime import datetime

import structlog

from shared.ids import generate_object_id
from shared.messages import CreationEvent, utc_now
from shared.outcomes import Outcome

from .producer import UserProducer
from .repository import UserRepository
from .schemas import User, UserCreate

logger = structlog.get_logger(__name__)


class UserService:
    def __init__(self, repository: UserRepository, producer: UserProducer):
        self.repository = repository
        self.producer = producer

    async def create(self, payload: UserCreate) -> Outcome[User]:
        """
        Store a new user, then publish a confirmation naming the user id

        The confirmation reuses the news envelope; the news consumer finds no
        item with that id and drops it.
        """
        logger.info("user_create_requested")
        user = User(id=generate_object_id(), name=payload.name)
        stored = await self.repository.add(user)
        if not stored.ok:
            return stored

        try:
            await self.producer.send_confirmation(user.id, datetime.now().astimezone())
        except Exception as e:
            logger.error("confirmation_publish_failed", user_id=user.id, error=str(e), exc_info=True)
            return Outcome.unprocessable(
                f"User {user.id} was stored but the confirmation could not be published"
            )

        logger.info("user_created", user_id=user.id)
        return Outcome.success(user)

    async def get(self, user_id: str) -> Outcome[User]:
        logger.info("user_get_requested", user_id=user_id)
        return await self.repository.get(user_id)

    async def delete(self, user_id: str) -> Outcome[None]:
        logger.info("user_delete_requested", user_id=user_id)
        existing = await self.repository.get(user_id)
        if not existing.ok:
            return Outcome(error=existing.error, detail=existing.detail)

        deleted = await self.repository.delete(user_id)
        if deleted.ok:
            logger.info("user_deleted", user_id=user_id)
        return deleted

    async def process_news(self, message: CreationEvent) -> Outcome[User]:
        """Count the object against the user and confirm it to the news service"""
        found = await self.repository.get(message.user_id)
        if not found.ok:
            return found

        user = found.value
        updated = await self.repository.replace(
            user.model_copy(update={"registered_objects": user.registered_objects + 1})
        )
        if not updated.ok:
            return updated

        try:
            await self.producer.send_confirmation(message.object_id, utc_now())
        except Exception as e:
            logger.error(
                "confirmation_publish_failed",
                user_id=message.user_id,
                news_id=message.object_id,
                error=str(e),
                exc_info=True,
            )
            return Outcome.unprocessable(
                f"Counter for user {message.user_id} was updated but the confirmation "
                f"for {message.object_id} could not be published"
            )

        logger.info(
            "news_registered",
            user_id=message.user_id,
            news_id=message.object_id,
            registered_objects=updated.value.registered_objects,
        )
        return updated
