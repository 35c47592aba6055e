"""
Shared fixtures
Each service runs against its own SQLite file through aiosqlite; Redis and
Kafka are replaced by in-memory doubles that keep the same call surface.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from news_service.cache import NewsCache
from news_service.config import Settings as NewsSettings
from news_service.main import NewsDependencies
from news_service.main import create_app as create_news_app
from news_service.models import Base as NewsBase
from news_service.producer import NewsProducer
from news_service.repository import NewsRepository
from news_service.service import NewsService
from shared.messages import Envelope
from users_service.config import Settings as UsersSettings
from users_service.main import UserDependencies
from users_service.main import create_app as create_users_app
from users_service.models import Base as UsersBase
from users_service.producer import UserProducer
from users_service.repository import UserRepository
from users_service.service import UserService


class InMemoryRedis:
    """Subset of redis.asyncio.Redis used by the news cache"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.expiries: Dict[str, Optional[int]] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.expiries.pop(key, None)
                removed += 1
        return removed

    async def aclose(self):
        pass


class QueueSource:
    def __init__(self, topic: str, queue: asyncio.Queue):
        self.topic = topic
        self.queue = queue
        self.started = False
        self.stopped = False

    async def start(self):
        self.started = True

    async def receive(self) -> bytes:
        return await self.queue.get()

    async def stop(self):
        self.stopped = True


class InMemoryBus:
    """
    Stands in for EventPublisher

    Every published envelope is recorded and its wire bytes are queued per
    topic, so a ConsumerLoop can read them back through source(topic).
    """

    def __init__(self):
        self.published: List[Tuple[str, Envelope]] = []
        self.queues: Dict[str, asyncio.Queue] = {}
        self.fail_with: Optional[Exception] = None

    def queue(self, topic: str) -> asyncio.Queue:
        return self.queues.setdefault(topic, asyncio.Queue())

    async def publish(self, topic: str, event: Envelope) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((topic, event))
        await self.queue(topic).put(event.to_bytes())

    def source(self, topic: str) -> QueueSource:
        return QueueSource(topic, self.queue(topic))

    def events(self, topic: str) -> List[Envelope]:
        return [event for t, event in self.published if t == topic]


async def _sqlite_session_factory(url: str, base):
    engine = create_async_engine(url, connect_args={"check_same_thread": False})
    async with engine.begin() as conn:
        await conn.run_sync(base.metadata.create_all)
    return engine, async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def bus():
    return InMemoryBus()


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest_asyncio.fixture
async def news_session_factory(tmp_path):
    engine, factory = await _sqlite_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'news.db'}", NewsBase)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def users_session_factory(tmp_path):
    engine, factory = await _sqlite_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}", UsersBase)
    yield factory
    await engine.dispose()


@pytest.fixture
def news_repository(news_session_factory):
    return NewsRepository(news_session_factory)


@pytest.fixture
def news_cache(redis_client):
    return NewsCache(redis_client)


@pytest.fixture
def news_service(news_repository, bus, news_cache):
    return NewsService(news_repository, NewsProducer(bus), news_cache)


@pytest.fixture
def users_repository(users_session_factory):
    return UserRepository(users_session_factory)


@pytest.fixture
def users_service(users_repository, bus):
    return UserService(users_repository, UserProducer(bus))


@pytest_asyncio.fixture
async def news_client(news_service):
    app = create_news_app(NewsDependencies(settings=NewsSettings(), service=news_service))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://news") as client:
        yield client


@pytest_asyncio.fixture
async def users_client(users_service):
    app = create_users_app(UserDependencies(settings=UsersSettings(), service=users_service))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://users") as client:
        yield client
