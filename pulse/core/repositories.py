"""Repository layer for news card persistence.

Provides async write, duplicate lookup and recent-card queries used by
the generation workflow.
"""

from datetime import datetime, timezone, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import desc, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pulse.core.logging import get_logger
from pulse.core.models import NewsCard
from pulse.rewriter.models import NewsSummary

logger = get_logger(__name__)

DESCRIPTION_PREFIX_LENGTH = 100
RECENT_LIMIT = 50

SummaryLike = Union[NewsSummary, Mapping[str, Any]]


def _as_dict(summary: SummaryLike) -> Dict[str, Any]:
    return summary.to_dict() if isinstance(summary, NewsSummary) else dict(summary)


def _utc_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


async def write_article(session: AsyncSession, summary: SummaryLike, trend: Optional[str] = None) -> int:
    """
    Persist a news card.

    Args:
        session: Database session
        summary: Generated summary
        trend: Keyword the card was generated for

    Returns:
        ID of the new card

    Raises:
        ValueError: If a title or description is missing
    """
    data = _as_dict(summary)

    for field in ('title_pl', 'description_pl', 'title_en', 'description_en'):
        if not data.get(field):
            raise ValueError(f"Missing required article field: {field}")

    now = datetime.now(timezone.utc)
    published = data.get('published_at') or _utc_iso(now)
    if not published.endswith('Z'):
        published = published + 'Z'

    card = NewsCard(
        trend=trend,
        title_pl=data['title_pl'],
        description_pl=data['description_pl'],
        title_en=data['title_en'],
        description_en=data['description_en'],
        credibility_score=int(data.get('credibility_score') or 0),
        published_at=published,
        image_url=data.get('image_url') or '',
        created_at=now,
    )
    session.add(card)

    try:
        await session.commit()
        await session.refresh(card)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to write news card: {e}")
        raise

    logger.info(
        f"Saved news card {card.id}",
        extra={'title_en': card.title_en, 'has_image': bool(card.image_url), 'trend': trend}
    )
    return card.id


async def check_duplicate(session: AsyncSession, summary: SummaryLike) -> bool:
    """
    Check whether an equivalent card already exists.

    A card is a duplicate when its English title matches exactly or an
    existing English description starts with the first 100 characters of
    the new one. Lookup failures are logged and treated as "not a duplicate".
    """
    data = _as_dict(summary)
    title_en = data.get('title_en') or ''
    prefix = (data.get('description_en') or '')[:DESCRIPTION_PREFIX_LENGTH]

    conditions = [NewsCard.title_en == title_en]
    if prefix:
        conditions.append(NewsCard.description_en.startswith(prefix, autoescape=True))

    try:
        stmt = select(NewsCard.id, NewsCard.title_en).where(or_(*conditions)).limit(1)
        result = await session.execute(stmt)
        row = result.first()
    except SQLAlchemyError as e:
        logger.error(f"Duplicate check failed: {e}")
        return False

    if row is None:
        return False

    match = 'title' if row.title_en == title_en else 'description'
    logger.info(f"Duplicate article found by {match}", extra={'existing_id': row.id})
    return True


async def get_recent_articles(session: AsyncSession, hours: int = 24, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
    """
    Get the newest cards created within a time window.

    Args:
        session: Database session
        hours: How many hours back to look
        limit: Maximum number of cards

    Returns:
        Card dictionaries, newest first; empty on lookup failure
    """
    cutoff_time = datetime.now(timezone.utc) - timedelta(hours=hours)

    stmt = (
        select(NewsCard)
        .where(NewsCard.created_at >= cutoff_time)
        .order_by(desc(NewsCard.created_at))
        .limit(limit)
    )

    try:
        result = await session.execute(stmt)
        cards = [card.to_dict() for card in result.scalars().all()]
    except SQLAlchemyError as e:
        logger.error(f"Failed to load recent articles: {e}")
        return []

    logger.debug(f"Retrieved {len(cards)} cards from last {hours} hours")
    return cards


class NewsStore:
    """Persistence collaborator bound to a session factory."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def write_article(self, summary: SummaryLike, trend: Optional[str] = None) -> int:
        async with self.session_factory() as session:
            return await write_article(session, summary, trend)

    async def check_duplicate(self, summary: SummaryLike) -> bool:
        async with self.session_factory() as session:
            return await check_duplicate(session, summary)

    async def get_recent_articles(self, hours: int = 24, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
        async with self.session_factory() as session:
            return await get_recent_articles(session, hours, limit)
