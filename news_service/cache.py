"""
Read-through cache for news items
Redis string keys news_{id} hold the item JSON. Redis errors are logged and
treated as a miss so the store stays the source of truth.
"""
from typing import Optional

import redis.asyncio as redis
import structlog
from pydantic import ValidationError

from shared.observability import news_cache_lookups_total

from .schemas import NewsItem

logger = structlog.get_logger(__name__)

# coarse key cleared by delete-all; per-item keys are left in place
ALL_NEWS_KEY = "all_news"


def cache_key(news_id: str) -> str:
    return f"news_{news_id}"


class NewsCache:
    def __init__(self, redis_client: redis.Redis, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, news_id: str) -> Optional[NewsItem]:
        key = cache_key(news_id)
        try:
            cached = await self.redis.get(key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))
            news_cache_lookups_total.labels(result="error").inc()
            return None
        if not cached:
            news_cache_lookups_total.labels(result="miss").inc()
            return None
        try:
            item = NewsItem.model_validate_json(cached)
        except ValidationError as e:
            logger.warning("cache_entry_corrupt", key=key, error=str(e))
            news_cache_lookups_total.labels(result="miss").inc()
            return None
        news_cache_lookups_total.labels(result="hit").inc()
        return item

    async def put(self, item: NewsItem) -> bool:
        key = cache_key(item.id)
        try:
            await self.redis.set(key, item.model_dump_json(), ex=self.ttl_seconds)
            return True
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))
            return False

    async def invalidate(self, news_id: str) -> bool:
        return await self._delete(cache_key(news_id))

    async def invalidate_all(self) -> bool:
        return await self._delete(ALL_NEWS_KEY)

    async def _delete(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(key))
        except Exception as e:
            logger.error("cache_delete_error", key=key, error=str(e))
            return False
