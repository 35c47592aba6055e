"""
News store adapter
CRUD over the news table. Every call returns an Outcome; database errors are
logged here and surface as UNPROCESSABLE.
"""
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from shared.outcomes import Outcome

from .models import NewsRecord
from .schemas import NewsItem

logger = structlog.get_logger(__name__)


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive values are taken as UTC
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # drivers without timezone support hand back naive UTC values
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalized(item: NewsItem) -> NewsItem:
    return item.model_copy(update={"published_at": _to_utc(item.published_at)})


def _to_item(row: NewsRecord) -> NewsItem:
    return NewsItem(
        id=row.id,
        title=row.title,
        content=row.content,
        category=row.category,
        published_at=_as_utc(row.published_at),
    )


def _missing(news_id: str) -> str:
    return f"News item with id {news_id} does not exist"


class NewsRepository:
    def __init__(self, session_factory: async_sessionmaker):
        self._sf = session_factory

    async def list_all(self) -> Outcome[List[NewsItem]]:
        try:
            async with self._sf() as s:
                rows = (await s.execute(select(NewsRecord))).scalars().all()
        except Exception as e:
            logger.error("news_store_list_failed", error=str(e), exc_info=True)
            return Outcome.unprocessable("Failed to load news items")
        return Outcome.success([_to_item(r) for r in rows])

    async def get(self, news_id: str) -> Outcome[NewsItem]:
        try:
            async with self._sf() as s:
                row = await s.get(NewsRecord, news_id)
        except Exception as e:
            logger.error("news_store_get_failed", news_id=news_id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to load news item {news_id}")
        if row is None:
            return Outcome.not_found(_missing(news_id))
        return Outcome.success(_to_item(row))

    async def add(self, item: NewsItem) -> Outcome[NewsItem]:
        try:
            async with self._sf() as s:
                s.add(NewsRecord(
                    id=item.id,
                    title=item.title,
                    content=item.content,
                    category=item.category,
                    published_at=_to_utc(item.published_at),
                ))
                await s.commit()
        except Exception as e:
            logger.error("news_store_add_failed", news_id=item.id, error=str(e), exc_info=True)
            return Outcome.unprocessable("Failed to store news item")
        return Outcome.success(_normalized(item))

    async def replace(self, item: NewsItem) -> Outcome[NewsItem]:
        """Overwrite every mutable field of an existing row"""
        try:
            async with self._sf() as s:
                row = await s.get(NewsRecord, item.id)
                if row is None:
                    return Outcome.not_found(_missing(item.id))
                row.title = item.title
                row.content = item.content
                row.category = item.category
                row.published_at = _to_utc(item.published_at)
                await s.commit()
        except Exception as e:
            logger.error("news_store_replace_failed", news_id=item.id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to update news item {item.id}")
        return Outcome.success(_normalized(item))

    async def delete(self, news_id: str) -> Outcome[None]:
        try:
            async with self._sf() as s:
                result = await s.execute(delete(NewsRecord).where(NewsRecord.id == news_id))
                await s.commit()
        except Exception as e:
            logger.error("news_store_delete_failed", news_id=news_id, error=str(e), exc_info=True)
            return Outcome.unprocessable(f"Failed to delete news item {news_id}")
        if result.rowcount == 0:
            return Outcome.not_found(_missing(news_id))
        return Outcome.success()

    async def delete_all(self) -> Outcome[int]:
        try:
            async with self._sf() as s:
                result = await s.execute(delete(NewsRecord))
                await s.commit()
        except Exception as e:
            logger.error("news_store_delete_all_failed", error=str(e), exc_info=True)
            return Outcome.unprocessable("Failed to delete news items")
        return Outcome.success(result.rowcount)
