"""Tests for the NewsAPI client and article cleaning."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from pulse.core.errors import NewsAPIError
from pulse.ingestor.newsapi import DEFAULT_QUERY, TRUSTED_SOURCES, NewsAPIClient, clean_articles

RAW_ARTICLES = [
    {
        "source": {"id": "reuters", "name": "Reuters"},
        "title": "  Troops withdraw from border  ",
        "description": " Ceasefire holds for a third day ",
        "url": "https://reuters.com/a",
        "urlToImage": "https://reuters.com/a/large.jpg",
        "publishedAt": "2025-01-01T10:00:00Z",
        "content": "Full text",
    },
    {
        "source": {"id": None, "name": "Unknown Blog"},
        "title": "No description",
        "description": None,
        "url": "https://blog.test/b",
        "publishedAt": "2025-01-01T11:00:00Z",
    },
    {
        "source": {"id": "cnn", "name": None},
        "title": "Sanctions widen",
        "description": "New measures announced",
        "url": "https://cnn.com/c",
        "urlToImage": None,
        "publishedAt": "2025-01-01T12:00:00Z",
    },
]


def make_client(handler, api_key="test-key"):
    transport = httpx.MockTransport(handler)
    return NewsAPIClient(
        api_key=api_key,
        base_url="https://newsapi.test/v2",
        client=httpx.AsyncClient(transport=transport),
    )


def ok_payload(articles=RAW_ARTICLES):
    return {"status": "ok", "totalResults": len(articles), "articles": articles}


# ==========================================
# CLEANING
# ==========================================

def test_clean_articles_filters_and_maps():
    cleaned = clean_articles(RAW_ARTICLES)

    assert len(cleaned) == 2
    first, second = cleaned
    assert first.title == "Troops withdraw from border"
    assert first.description == "Ceasefire holds for a third day"
    assert first.source == "Reuters"
    assert first.url_to_image == "https://reuters.com/a/large.jpg"
    assert first.content == "Full text"
    assert second.source == "Unknown"
    assert second.url_to_image == ""


@pytest.mark.parametrize("raw", [None, [], "not a list", {"articles": []}])
def test_clean_articles_bad_input(raw):
    assert clean_articles(raw) == []


# ==========================================
# FETCHING
# ==========================================

@pytest.mark.asyncio
async def test_fetch_articles_builds_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json=ok_payload())

    async with make_client(handler) as client:
        articles = await client.fetch_articles("war OR conflict", page_size=50, from_date="2025-01-01")

    assert len(articles) == 3
    assert seen["url"].path == "/v2/everything"
    params = seen["url"].params
    assert params["q"] == "war OR conflict"
    assert params["pageSize"] == "50"
    assert params["sources"] == ",".join(TRUSTED_SOURCES)
    assert params["sortBy"] == "publishedAt"
    assert params["from"] == "2025-01-01"
    assert params["apiKey"] == "test-key"


@pytest.mark.asyncio
async def test_fetch_articles_error_payload():
    def handler(request):
        return httpx.Response(401, json={"status": "error", "code": "apiKeyInvalid", "message": "Your API key is invalid"})

    async with make_client(handler) as client:
        with pytest.raises(NewsAPIError, match="API key is invalid"):
            await client.fetch_articles("war")


@pytest.mark.asyncio
async def test_fetch_articles_requires_key():
    def handler(request):
        raise AssertionError("no request expected")

    async with make_client(handler, api_key="") as client:
        with pytest.raises(NewsAPIError, match="NEWS_API_KEY"):
            await client.fetch_articles("war")


@pytest.mark.asyncio
async def test_fetch_articles_retries_server_errors():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, json={"status": "error", "message": "busy"})
        return httpx.Response(200, json=ok_payload())

    async with make_client(handler) as client:
        articles = await client.fetch_articles("war")

    assert len(calls) == 2
    assert len(articles) == 3


@pytest.mark.asyncio
async def test_fetch_articles_retries_rate_limit():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, headers={"Retry-After": "0"}, json={"status": "error", "message": "slow down"})
        return httpx.Response(200, json=ok_payload([]))

    async with make_client(handler) as client:
        articles = await client.fetch_articles("war")

    assert len(calls) == 2
    assert articles == []


@pytest.mark.asyncio
async def test_fetch_initial_articles_uses_default_query():
    seen = {}

    def handler(request):
        seen["params"] = request.url.params
        return httpx.Response(200, json=ok_payload())

    async with make_client(handler) as client:
        articles = await client.fetch_initial_articles(page_size=100)

    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).strftime("%Y-%m-%d")
    assert seen["params"]["q"] == DEFAULT_QUERY
    assert seen["params"]["from"] == yesterday
    assert seen["params"]["pageSize"] == "100"
    assert [a.source for a in articles] == ["Reuters", "Unknown"]


@pytest.mark.asyncio
async def test_fetch_articles_for_trend():
    seen = {}

    def handler(request):
        seen["params"] = request.url.params
        return httpx.Response(200, json=ok_payload())

    async with make_client(handler) as client:
        articles = await client.fetch_articles_for_trend("ceasefire talks")

    assert seen["params"]["q"] == "ceasefire talks"
    assert seen["params"]["pageSize"] == "8"
    assert "from" not in seen["params"]
    assert len(articles) == 2


def test_default_query_covers_topic_groups():
    for word in ("war", "election", "nato", "coup", "ceasefire"):
        assert word in DEFAULT_QUERY.split(" OR ")
