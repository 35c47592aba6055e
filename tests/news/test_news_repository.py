"""
News store tests
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from news_service.repository import NewsRepository
from news_service.schemas import NewsItem
from shared.ids import generate_object_id
from shared.outcomes import ErrorKind

pytestmark = pytest.mark.asyncio


def _item(**overrides):
    fields = {"id": generate_object_id(), "title": "Derby", "content": "3-1", "category": "football"}
    fields.update(overrides)
    return NewsItem(**fields)


async def test_add_then_get(news_repository):
    """Test a stored item reads back field for field"""
    item = _item()
    assert (await news_repository.add(item)).ok

    found = await news_repository.get(item.id)
    assert found.ok
    assert found.value == item


async def test_get_missing(news_repository):
    """Test an unknown id is NOT_FOUND"""
    found = await news_repository.get(generate_object_id())
    assert found.error is ErrorKind.NOT_FOUND


async def test_list_all_empty(news_repository):
    """Test an empty store lists nothing"""
    listed = await news_repository.list_all()
    assert listed.ok
    assert listed.value == []


async def test_published_at_kept_as_instant(news_repository):
    """Test offsets are normalized without moving the instant"""
    moment = datetime(2024, 11, 15, 10, 30, tzinfo=timezone(timedelta(hours=3)))
    item = _item(published_at=moment)
    await news_repository.add(item)

    found = await news_repository.get(item.id)
    assert found.value.published_at == moment
    assert found.value.published_at.utcoffset() == timedelta(0)


async def test_replace_overwrites_fields(news_repository):
    """Test replace writes every mutable field"""
    item = _item()
    await news_repository.add(item)
    changed = item.model_copy(update={"title": "Derby (updated)", "category": ""})

    assert (await news_repository.replace(changed)).ok
    assert (await news_repository.get(item.id)).value == changed


async def test_replace_missing_creates_nothing(news_repository):
    """Test replace on an unknown id is NOT_FOUND and inserts nothing"""
    replaced = await news_repository.replace(_item())
    assert replaced.error is ErrorKind.NOT_FOUND
    assert (await news_repository.list_all()).value == []


async def test_delete(news_repository):
    """Test delete removes the row and a second delete is NOT_FOUND"""
    item = _item()
    await news_repository.add(item)

    assert (await news_repository.delete(item.id)).ok
    assert (await news_repository.get(item.id)).error is ErrorKind.NOT_FOUND
    assert (await news_repository.delete(item.id)).error is ErrorKind.NOT_FOUND


async def test_delete_all(news_repository):
    """Test delete_all reports how many rows went"""
    for _ in range(3):
        await news_repository.add(_item())

    cleared = await news_repository.delete_all()
    assert cleared.value == 3
    assert (await news_repository.list_all()).value == []


async def test_store_failure_is_unprocessable():
    """Test database errors surface as UNPROCESSABLE"""
    repository = NewsRepository(MagicMock(side_effect=RuntimeError("database unavailable")))

    assert (await repository.list_all()).error is ErrorKind.UNPROCESSABLE
    assert (await repository.get("x")).error is ErrorKind.UNPROCESSABLE
    assert (await repository.add(_item())).error is ErrorKind.UNPROCESSABLE
    assert (await repository.delete_all()).error is ErrorKind.UNPROCESSABLE


async def test_naive_published_at_stored_as_utc(news_repository):
    """Test a naive timestamp is written and returned as UTC"""
    item = _item()
    await news_repository.add(item)
    naive = datetime(2024, 11, 15, 8, 0)

    replaced = await news_repository.replace(item.model_copy(update={"published_at": naive}))

    expected = naive.replace(tzinfo=timezone.utc)
    assert replaced.value.published_at == expected
    assert replaced.value.published_at.utcoffset() == timedelta(0)
    assert (await news_repository.get(item.id)).value.published_at == expected
