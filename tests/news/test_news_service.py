"""
News service operation tests
"""
import re
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from news_service.cache import cache_key
from news_service.producer import REGISTRATION_USER_ID, NewsProducer
from news_service.schemas import NewsInfo, NewsItem
from news_service.service import NewsService
from shared.ids import generate_object_id
from shared.kafka_topics import OBJECT_SERVICE_TOPIC
from shared.messages import ConfirmationEvent, CreationEvent
from shared.outcomes import ErrorKind

pytestmark = pytest.mark.asyncio

INFO = NewsInfo(title="Cup final", content="Decided on penalties", category="football")


async def _stored(repository, **fields):
    item = NewsItem(id=generate_object_id(), **{**INFO.model_dump(), **fields})
    await repository.add(item)
    return item


async def test_create_stores_and_publishes(news_service, news_repository, bus):
    """Test create assigns an id, stores the item and announces it"""
    created = await news_service.create(INFO)

    assert created.ok
    assert re.fullmatch(r"[0-9a-f]{24}", created.value.id)
    stored = (await news_repository.get(created.value.id)).value
    assert stored.title == INFO.title
    assert stored.published_at is None

    assert bus.events(OBJECT_SERVICE_TOPIC) == [
        CreationEvent(object_id=created.value.id, user_id=REGISTRATION_USER_ID)
    ]


async def test_create_assigns_distinct_ids(news_service):
    """Test two creates never share an id"""
    first = await news_service.create(INFO)
    second = await news_service.create(INFO)
    assert first.value.id != second.value.id


async def test_create_publish_failure(news_service, news_repository, bus):
    """Test a failed publish reports UNPROCESSABLE but keeps the item"""
    bus.fail_with = ConnectionError("broker unavailable")

    created = await news_service.create(INFO)

    assert created.error is ErrorKind.UNPROCESSABLE
    listed = (await news_repository.list_all()).value
    assert len(listed) == 1
    assert listed[0].published_at is None


async def test_second_get_served_from_cache(news_service, news_repository):
    """Test a read-through get fills the cache for the next read"""
    item = await _stored(news_repository)
    news_service.repository.get = AsyncMock(wraps=news_repository.get)

    first = await news_service.get(item.id)
    second = await news_service.get(item.id)

    assert first.value == item
    assert second.value == item
    news_service.repository.get.assert_awaited_once_with(item.id)


async def test_get_missing(news_service):
    assert (await news_service.get(generate_object_id())).error is ErrorKind.NOT_FOUND


async def test_update_refreshes_cache(news_service, news_repository, redis_client):
    """Test an update is visible through the cache"""
    item = await _stored(news_repository)
    await news_service.get(item.id)

    updated = await news_service.update(item.id, NewsInfo(title="Replay ordered", content="", category="football"))

    assert updated.ok
    assert (await news_service.get(item.id)).value.title == "Replay ordered"
    assert "Replay ordered" in redis_client.store[cache_key(item.id)]


async def test_update_missing_mutates_nothing(news_service, news_repository):
    """Test update on an unknown id never writes"""
    news_service.repository.replace = AsyncMock(wraps=news_repository.replace)

    updated = await news_service.update(generate_object_id(), INFO)

    assert updated.error is ErrorKind.NOT_FOUND
    news_service.repository.replace.assert_not_awaited()
    assert (await news_repository.list_all()).value == []


async def test_delete(news_service, news_repository, redis_client):
    """Test delete removes the row and its cache entry"""
    item = await _stored(news_repository)
    await news_service.get(item.id)

    assert (await news_service.delete(item.id)).ok
    assert cache_key(item.id) not in redis_client.store
    assert (await news_service.get(item.id)).error is ErrorKind.NOT_FOUND


async def test_delete_missing_leaves_store(news_service, news_repository):
    """Test delete on an unknown id is NOT_FOUND and removes nothing"""
    item = await _stored(news_repository)

    assert (await news_service.delete(generate_object_id())).error is ErrorKind.NOT_FOUND
    assert (await news_repository.list_all()).value == [item]


async def test_delete_all(news_service, news_repository):
    """Test delete_all empties the store"""
    await _stored(news_repository)
    await _stored(news_repository)

    assert (await news_service.delete_all()).ok
    assert (await news_service.list_all()).value == []


async def test_apply_confirmation_sets_published_at(news_service, news_repository):
    """Test a confirmation stamps the item with its timestamp"""
    item = await _stored(news_repository)
    moment = datetime(2024, 11, 15, 8, 0, tzinfo=timezone.utc)

    confirmed = await news_service.apply_confirmation(ConfirmationEvent.at(item.id, moment))

    assert confirmed.ok
    stored = (await news_repository.get(item.id)).value
    assert stored.published_at == moment
    assert stored.title == item.title


async def test_apply_confirmation_replay(news_service, news_repository):
    """Test replaying the same confirmation leaves the same state"""
    item = await _stored(news_repository)
    event = ConfirmationEvent.at(item.id, datetime(2024, 11, 15, 8, 0, tzinfo=timezone.utc))

    await news_service.apply_confirmation(event)
    first = (await news_repository.get(item.id)).value
    await news_service.apply_confirmation(event)

    assert (await news_repository.get(item.id)).value == first


async def test_apply_confirmation_drops_stale_cache(news_service, news_repository):
    """Test reads after a confirmation see the timestamp"""
    item = await _stored(news_repository)
    await news_service.get(item.id)
    moment = datetime(2024, 11, 15, 8, 0, tzinfo=timezone.utc)

    await news_service.apply_confirmation(ConfirmationEvent.at(item.id, moment))

    assert (await news_service.get(item.id)).value.published_at == moment


async def test_apply_confirmation_unknown_id(news_service, news_repository):
    """Test a confirmation for an unknown id changes nothing"""
    item = await _stored(news_repository)
    event = ConfirmationEvent.at(generate_object_id(), datetime.now(timezone.utc))

    assert (await news_service.apply_confirmation(event)).error is ErrorKind.NOT_FOUND
    assert (await news_repository.list_all()).value == [item]


async def test_apply_confirmation_bad_timestamp(news_service, news_repository):
    """Test an unparseable timestamp is UNPROCESSABLE and the item is untouched"""
    item = await _stored(news_repository)
    event = ConfirmationEvent(object_id=item.id, confirmation_timestamp="not-a-date")

    assert (await news_service.apply_confirmation(event)).error is ErrorKind.UNPROCESSABLE
    assert (await news_repository.get(item.id)).value.published_at is None


async def test_works_without_cache(news_repository, bus):
    """Test the service runs with caching disabled"""
    service = NewsService(news_repository, NewsProducer(bus))

    created = await service.create(INFO)

    assert (await service.get(created.value.id)).value == created.value


async def test_apply_confirmation_naive_timestamp(news_service, news_repository):
    """Test a confirmation without an offset is taken as UTC on write and read"""
    item = await _stored(news_repository)
    event = ConfirmationEvent(object_id=item.id, confirmation_timestamp="2024-11-15T08:00:00")

    confirmed = await news_service.apply_confirmation(event)

    expected = datetime(2024, 11, 15, 8, 0, tzinfo=timezone.utc)
    assert confirmed.value.published_at == expected
    assert confirmed.value.published_at.tzinfo is not None
    assert (await news_service.get(item.id)).value.published_at == expected
