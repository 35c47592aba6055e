"""
News service operations
Owns news items: CRUD with the read-through cache, the creation-event publish
on create, and applying confirmations to the publish timestamp.
"""
from typing import List, Optional

import structlog

from shared.ids import generate_object_id
from shared.messages import ConfirmationEvent
from shared.outcomes import Outcome

from .cache import NewsCache
from .producer import NewsProducer
from .repository import NewsRepository
from .schemas import NewsInfo, NewsItem

logger = structlog.get_logger(__name__)


class NewsService:
    def __init__(
        self,
        repository: NewsRepository,
        producer: NewsProducer,
        cache: Optional[NewsCache] = None,
    ):
        self.repository = repository
        self.producer = producer
        self.cache = cache

    async def list_all(self) -> Outcome[List[NewsItem]]:
        logger.info("news_list_requested")
        return await self.repository.list_all()

    async def get(self, news_id: str) -> Outcome[NewsItem]:
        logger.info("news_get_requested", news_id=news_id)
        if self.cache:
            cached = await self.cache.get(news_id)
            if cached is not None:
                return Outcome.success(cached)

        found = await self.repository.get(news_id)
        if found.ok and self.cache:
            await self.cache.put(found.value)
        return found

    async def create(self, info: NewsInfo) -> Outcome[NewsItem]:
        logger.info("news_create_requested")
        item = NewsItem(id=generate_object_id(), **info.model_dump())
        stored = await self.repository.add(item)
        if not stored.ok:
            return stored
        item = stored.value
        if self.cache:
            await self.cache.put(item)

        try:
            await self.producer.send_registration_request(item.id)
        except Exception as e:
            logger.error("creation_event_publish_failed", news_id=item.id, error=str(e), exc_info=True)
            return Outcome.unprocessable(
                f"News item {item.id} was stored but its creation event could not be published"
            )

        logger.info("news_created", news_id=item.id)
        return Outcome.success(item)

    async def update(self, news_id: str, info: NewsInfo) -> Outcome[NewsItem]:
        logger.info("news_update_requested", news_id=news_id)
        existing = await self.repository.get(news_id)
        if not existing.ok:
            return existing

        replaced = await self.repository.replace(NewsItem(id=news_id, **info.model_dump()))
        if replaced.ok:
            if self.cache:
                await self.cache.invalidate(news_id)
                await self.cache.put(replaced.value)
            logger.info("news_updated", news_id=news_id)
        return replaced

    async def delete(self, news_id: str) -> Outcome[None]:
        logger.info("news_delete_requested", news_id=news_id)
        existing = await self.repository.get(news_id)
        if not existing.ok:
            return Outcome(error=existing.error, detail=existing.detail)

        deleted = await self.repository.delete(news_id)
        if deleted.ok:
            if self.cache:
                await self.cache.invalidate(news_id)
            logger.info("news_deleted", news_id=news_id)
        return deleted

    async def delete_all(self) -> Outcome[int]:
        logger.info("news_delete_all_requested")
        cleared = await self.repository.delete_all()
        if cleared.ok:
            # only the coarse key; news_{id} entries outlive the rows
            if self.cache:
                await self.cache.invalidate_all()
            logger.info("news_deleted_all", count=cleared.value)
        return cleared

    async def apply_confirmation(self, event: ConfirmationEvent) -> Outcome[NewsItem]:
        """Set published_at from a confirmation; replays simply overwrite"""
        found = await self.repository.get(event.object_id)
        if not found.ok:
            return found

        try:
            confirmed_at = event.parsed_timestamp()
        except ValueError:
            return Outcome.unprocessable(
                f"Confirmation timestamp {event.confirmation_timestamp!r} is not a valid date-time"
            )

        replaced = await self.repository.replace(found.value.model_copy(update={"published_at": confirmed_at}))
        if replaced.ok:
            if self.cache:
                await self.cache.invalidate(event.object_id)
            logger.info(
                "news_confirmed",
                news_id=event.object_id,
                published_at=event.confirmation_timestamp,
            )
        return replaced
