"""Tests for news card persistence on a file-backed SQLite database."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pulse.core.db import create_all
from pulse.core.models import NewsCard
from pulse.core.repositories import NewsStore, check_duplicate, get_recent_articles, write_article
from pulse.rewriter.models import NewsSummary


def make_summary(**overrides):
    data = {
        "title_pl": "Rozmowy utknęły",
        "description_pl": "Opis " * 130,
        "title_en": "Ceasefire talks stall",
        "description_en": "Envoys left the capital without an agreement on a ceasefire. " * 12,
        "credibility_score": 70,
        "published_at": "2025-01-01T12:00:00",
        "image_url": "https://a.com/large.jpg",
    }
    data.update(overrides)
    return NewsSummary(**data)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pulse.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.mark.asyncio
async def test_write_article(session_factory):
    async with session_factory() as session:
        card_id = await write_article(session, make_summary(), trend="ceasefire talks")

    async with session_factory() as session:
        card = await session.get(NewsCard, card_id)

    assert card.trend == "ceasefire talks"
    assert card.published_at == "2025-01-01T12:00:00Z"
    assert card.credibility_score == 70
    assert card.created_at is not None


@pytest.mark.asyncio
async def test_write_keeps_existing_z_suffix(session_factory):
    async with session_factory() as session:
        card_id = await write_article(session, make_summary(published_at="2025-01-01T12:00:00Z"))
        card = await session.get(NewsCard, card_id)

    assert card.published_at == "2025-01-01T12:00:00Z"


@pytest.mark.asyncio
async def test_write_rejects_incomplete_card(session_factory):
    async with session_factory() as session:
        with pytest.raises(ValueError, match="description_pl"):
            await write_article(session, {"title_pl": "a", "title_en": "b", "description_en": "c"})


@pytest.mark.asyncio
async def test_duplicate_by_title(session_factory):
    async with session_factory() as session:
        await write_article(session, make_summary())
        duplicate = make_summary(description_en="Completely different text " * 30)

        assert await check_duplicate(session, duplicate)


@pytest.mark.asyncio
async def test_duplicate_by_description_prefix(session_factory):
    original = make_summary()
    async with session_factory() as session:
        await write_article(session, original)
        rewrite = make_summary(
            title_en="Ceasefire negotiations break down",
            description_en=original.description_en[:100] + " New closing paragraph.",
        )

        assert await check_duplicate(session, rewrite)


@pytest.mark.asyncio
async def test_distinct_card_is_not_duplicate(session_factory):
    async with session_factory() as session:
        await write_article(session, make_summary())
        other = make_summary(title_en="Markets rally", description_en="Stocks rose sharply " * 40)

        assert not await check_duplicate(session, other)


@pytest.mark.asyncio
async def test_description_prefix_is_matched_literally(session_factory):
    async with session_factory() as session:
        await write_article(session, make_summary(description_en="x" * 40 + "abc" + " y" * 300))
        wildcard = make_summary(title_en="Other", description_en="%abc" + " y" * 300)

        assert not await check_duplicate(session, wildcard)


@pytest.mark.asyncio
async def test_lookup_failures_are_not_duplicates(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            assert await check_duplicate(session, make_summary()) is False
        async with factory() as session:
            assert await get_recent_articles(session) == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_recent_articles_window_and_order(session_factory):
    now = datetime.now(timezone.utc)
    async with session_factory() as session:
        for title, age in (("old", 48), ("older recent", 5), ("newest", 1)):
            session.add(NewsCard(
                trend=title,
                title_pl=title,
                description_pl="d",
                title_en=title,
                description_en="d",
                credibility_score=50,
                published_at="2025-01-01T00:00:00Z",
                image_url="",
                created_at=now - timedelta(hours=age),
            ))
        await session.commit()

        recent = await get_recent_articles(session, hours=24)
        limited = await get_recent_articles(session, hours=24, limit=1)

    assert [card["title_en"] for card in recent] == ["newest", "older recent"]
    assert [card["trend"] for card in limited] == ["newest"]


@pytest.mark.asyncio
async def test_news_store(session_factory):
    store = NewsStore(session_factory)

    card_id = await store.write_article(make_summary(), trend="ceasefire talks")

    assert await store.check_duplicate(make_summary())
    recent = await store.get_recent_articles()
    assert [card["id"] for card in recent] == [card_id]
    assert recent[0]["trend"] == "ceasefire talks"
