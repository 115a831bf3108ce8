"""NewsAPI article source with retry, rate-limit handling and cleaning."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, retry_if_exception, retry_if_exception_type, stop_after_attempt, wait_exponential

from pulse.core.errors import NewsAPIError
from pulse.core.logging import get_logger
from pulse.core.settings import get_settings
from pulse.trender.models import Article

logger = get_logger(__name__)

TRUSTED_SOURCES = (
    'cnn',
    'bbc-news',
    'al-jazeera-english',
    'the-washington-post',
    'fox-news',
    'msnbc',
    'reuters',
    'bloomberg',
)

QUERY_GROUPS = (
    'war OR conflict OR attack OR battle OR military OR defense',
    'politics OR election OR president OR government OR diplomacy',
    'sanctions OR nato OR ukraine OR russia OR china',
    'cyber OR insurgency OR coup OR referendum OR summit',
    'arms OR missile OR invasion OR ceasefire OR troops',
)
DEFAULT_QUERY = ' OR '.join(QUERY_GROUPS)

DEFAULT_PAGE_SIZE = 100
TREND_PAGE_SIZE = 8
RETRYABLE_STATUS = (429, 500, 502, 503, 504)
MAX_RETRY_AFTER = 60.0


def _is_retryable_status(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code in RETRYABLE_STATUS


def clean_articles(raw_articles: Optional[Sequence[Dict[str, Any]]]) -> List[Article]:
    """
    Drop incomplete records and map the rest to Articles.

    Records need a title, description, url and publishedAt.
    """
    if not raw_articles or not isinstance(raw_articles, (list, tuple)):
        return []

    cleaned = []
    for item in raw_articles:
        if not isinstance(item, dict):
            continue
        if not (item.get('title') and item.get('description') and item.get('url') and item.get('publishedAt')):
            continue

        source = item.get('source')
        source_name = source.get('name') if isinstance(source, dict) else source

        cleaned.append(Article(
            title=item['title'].strip(),
            description=item['description'].strip(),
            url=item['url'],
            url_to_image=item.get('urlToImage') or '',
            source=source_name or 'Unknown',
            published_at=item['publishedAt'],
            content=item.get('content') or '',
        ))

    logger.debug(f"Cleaned {len(cleaned)}/{len(raw_articles)} articles")
    return cleaned


class NewsAPIClient:
    """Async NewsAPI `/everything` client."""

    def __init__(self, api_key: Optional[str] = None,
                 base_url: Optional[str] = None,
                 timeout: Optional[float] = None,
                 client: Optional[httpx.AsyncClient] = None):
        settings = get_settings()
        self.api_key = settings.news_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.news_api_base_url).rstrip('/')
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or settings.news_api_timeout),
            headers={"User-Agent": "Pulse/1.0"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8.0),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)) | retry_if_exception(_is_retryable_status),
        reraise=True
    )
    async def _get_with_retry(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        """GET with exponential backoff on timeouts, 429 and 5xx."""
        try:
            response = await self.client.get(url, params=params)

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                if retry_after:
                    try:
                        wait_time = float(retry_after)
                        if 0 < wait_time <= MAX_RETRY_AFTER:
                            logger.info(f"Rate limited (429), waiting {wait_time}s as per Retry-After header")
                            await asyncio.sleep(wait_time)
                    except (ValueError, TypeError):
                        logger.warning(f"Invalid Retry-After header value: {retry_after}")
                response.raise_for_status()

            if response.status_code in RETRYABLE_STATUS:
                logger.warning(f"NewsAPI server error {response.status_code}, will retry")
                response.raise_for_status()

            return response

        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(f"Network/timeout error calling NewsAPI: {type(e).__name__}, will retry")
            raise

    async def fetch_articles(self, query: str,
                             page_size: int = DEFAULT_PAGE_SIZE,
                             sources: Optional[Sequence[str]] = TRUSTED_SOURCES,
                             sort_by: str = 'publishedAt',
                             from_date: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Search NewsAPI for articles.

        Args:
            query: NewsAPI search expression
            page_size: Articles per request
            sources: NewsAPI source ids
            sort_by: NewsAPI sort order
            from_date: Oldest publication date (YYYY-MM-DD)

        Returns:
            Raw article records as returned by NewsAPI

        Raises:
            NewsAPIError: Missing API key or an error payload
        """
        if not self.api_key:
            raise NewsAPIError("NEWS_API_KEY is not configured")

        params: Dict[str, Any] = {
            'q': query,
            'pageSize': page_size,
            'sortBy': sort_by,
            'apiKey': self.api_key,
        }
        if sources:
            params['sources'] = ','.join(sources)
        if from_date:
            params['from'] = from_date

        logger.info(f"Fetching news from NewsAPI with query: {query}",
                    extra={'page_size': page_size, 'from': from_date, 'sort_by': sort_by})

        response = await self._get_with_retry(f"{self.base_url}/everything", params)

        try:
            payload = response.json()
        except ValueError as e:
            raise NewsAPIError(f"NewsAPI returned invalid JSON (HTTP {response.status_code})") from e

        if payload.get('status') != 'ok':
            raise NewsAPIError(f"NewsAPI error: {payload.get('message', 'unknown error')}")

        articles = payload.get('articles') or []
        logger.info(f"NewsAPI returned {len(articles)} articles")
        if len(articles) < page_size:
            logger.warning(f"Low article count: {len(articles)} articles fetched")
        return articles

    async def fetch_initial_articles(self, page_size: Optional[int] = None) -> List[Article]:
        """Articles of the last day matching the default war/politics query."""
        yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).strftime('%Y-%m-%d')
        raw = await self.fetch_articles(
            DEFAULT_QUERY,
            page_size=page_size or get_settings().max_articles_per_fetch,
            from_date=yesterday,
        )
        return clean_articles(raw)

    async def fetch_articles_for_trend(self, keyword: str, page_size: int = TREND_PAGE_SIZE) -> List[Article]:
        """Fresh articles about a selected trend."""
        logger.info(f"Fetching articles for trend: {keyword}")
        raw = await self.fetch_articles(keyword, page_size=page_size)
        return clean_articles(raw)
