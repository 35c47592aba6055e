"""
News API
/api/news - CRUD over news items plus the manual timestamp confirmation
"""
from typing import List

from fastapi import APIRouter

from shared.messages import ConfirmationEvent
from shared.problems import empty_or_problem, problem_for

from .schemas import NewsInfo, NewsItem
from .service import NewsService


def build_router(service: NewsService) -> APIRouter:
    router = APIRouter(prefix="/api/news", tags=["News"])

    @router.get("/all", response_model=List[NewsItem])
    async def get_all():
        """All stored news items (empty list when there are none)"""
        outcome = await service.list_all()
        if not outcome.ok:
            return problem_for(outcome)
        return outcome.value

    @router.get("/{news_id}", response_model=NewsItem)
    async def get_by_id(news_id: str):
        outcome = await service.get(news_id)
        if not outcome.ok:
            return problem_for(outcome)
        return outcome.value

    @router.post("")
    async def add_news(info: NewsInfo):
        """
        Store a news item and publish its creation event

        Responds 200 with no body; the item stays unconfirmed until the user
        service answers on confirmation_topic.
        """
        return empty_or_problem(await service.create(info))

    @router.put("/{news_id}")
    async def update(news_id: str, info: NewsInfo):
        return empty_or_problem(await service.update(news_id, info))

    @router.delete("/all")
    async def delete_all():
        return empty_or_problem(await service.delete_all())

    @router.delete("/{news_id}")
    async def delete(news_id: str):
        return empty_or_problem(await service.delete(news_id))

    @router.post("/update-timestamp")
    async def update_timestamp(request: ConfirmationEvent):
        """Apply a confirmation by hand, same as a confirmation_topic message"""
        return empty_or_problem(await service.apply_confirmation(request))

    return router
