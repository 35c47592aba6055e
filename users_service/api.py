"""
Users API
/api/users - user CRUD and manual news processing
"""
from fastapi import APIRouter

from shared.messages import CreationEvent
from shared.problems import empty_or_problem, problem_for

from .schemas import User, UserCreate
from .service import UserService


def build_router(service: UserService) -> APIRouter:
    router = APIRouter(prefix="/api/users", tags=["Users"])

    @router.post("")
    async def create_user(payload: UserCreate):
        return empty_or_problem(await service.create(payload))

    @router.post("/process-news")
    async def process_news(request: CreationEvent):
        """
        Register a news item against a user by hand

        **Body:** `{"UserId": "...", "ObjectId": "..."}`, the same envelope
        the news service publishes on object_service_topic.
        """
        return empty_or_problem(await service.process_news(request))

    @router.get("/{user_id}", response_model=User)
    async def get_user(user_id: str):
        outcome = await service.get(user_id)
        if not outcome.ok:
            return problem_for(outcome)
        return outcome.value

    @router.delete("/{user_id}")
    async def delete_user(user_id: str):
        return empty_or_problem(await service.delete(user_id))

    return router
