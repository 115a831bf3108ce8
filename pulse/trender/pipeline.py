"""News card generation workflow.

Two entry points share the same collaborators:
- generate_news_article: one trend per run (manual trigger, legacy cron)
- run_autonomous_processing: up to max_topics_per_cycle cards ranked by
  significance (scheduled every 30 minutes)
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pulse.core.db import get_session_factory
from pulse.core.logging import get_logger, setup_logging
from pulse.core.repositories import NewsStore
from pulse.core.settings import Settings, get_settings
from pulse.ingestor.newsapi import NewsAPIClient
from pulse.rewriter.llm_provider import SummaryProvider, create_summary_provider
from pulse.rewriter.validators import validate_summary
from pulse.trender.config import RECENT_TREND_KEYWORDS, TrendConfig, default_trend_config
from pulse.trender.images import prepare_trend_data
from pulse.trender.models import Article, SignificantTrend, as_articles
from pulse.trender.score import detect_significant_trends
from pulse.trender.selector import analyze_trends, matching_articles

logger = get_logger(__name__)

TREND_ARTICLES = 8


@dataclass
class CycleResult:
    """Outcome of one autonomous processing cycle."""
    start_time: str
    articles_fetched: int = 0
    trends_detected: int = 0
    cards_generated: int = 0
    errors: List[str] = field(default_factory=list)
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'start_time': self.start_time,
            'articles_fetched': self.articles_fetched,
            'trends_detected': self.trends_detected,
            'cards_generated': self.cards_generated,
            'errors': self.errors,
            'processing_time_ms': self.processing_time_ms,
        }


def derive_recent_trends(records: Iterable[Mapping[str, Any]],
                         keywords: Sequence[str] = RECENT_TREND_KEYWORDS) -> List[str]:
    """
    Topics covered by recent cards.

    Each card contributes the trend it was generated for, when stored, and
    the first word of its lower-cased English title that is a known topic
    keyword. Cards written before trends were stored rely on the title alone.
    """
    keyword_set = set(keywords)
    trends = []
    for record in records:
        trend = (record.get('trend') or '').strip().lower()
        if trend:
            trends.append(trend)

        words = (record.get('title_en') or '').lower().split(' ')
        match = next((w for w in words if w in keyword_set), None)
        if match and match != trend:
            trends.append(match)
    return trends


class NewsPipeline:
    """Orchestrates fetch, analysis, summarization and persistence."""

    def __init__(self, fetcher: NewsAPIClient, summarizer: SummaryProvider, store: NewsStore,
                 config: Optional[TrendConfig] = None, settings: Optional[Settings] = None):
        self.fetcher = fetcher
        self.summarizer = summarizer
        self.store = store
        self.config = config or default_trend_config()
        self.settings = settings or get_settings()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """Release the article source's HTTP connections."""
        await self.fetcher.aclose()

    async def recent_trends(self) -> List[str]:
        records = await self.store.get_recent_articles(self.settings.time_window_hours)
        return derive_recent_trends(records)

    async def _summarize_and_store(self, articles: Sequence[Article], keyword: str) -> Optional[Dict[str, Any]]:
        """Image, summary, validation, dedupe and write for one topic."""
        trend_data = prepare_trend_data(articles, keyword)
        if not trend_data.image_url:
            logger.warning(f"No suitable image found for trend: {keyword}")

        summary = await self.summarizer.generate_summary(trend_data.articles, keyword, trend_data.image_url)

        validation = validate_summary(summary)
        if not validation.is_valid:
            logger.warning(f"Generated summary is invalid for trend: {keyword}",
                           extra={'errors': validation.errors})
            return None

        if await self.store.check_duplicate(summary):
            logger.info(f"Duplicate article detected for trend: {keyword}")
            return None

        card_id = await self.store.write_article(summary, trend=keyword)
        logger.info(
            f"Created news card for trend: {keyword}",
            extra={'card_id': card_id, 'title': summary.title_en,
                   'credibility_score': summary.credibility_score}
        )
        return {'id': card_id, 'trend': keyword, **summary.to_dict()}

    async def generate_news_article(self) -> Optional[Dict[str, Any]]:
        """
        Run the single-trend workflow.

        Returns:
            The stored card, or None when no card could be produced
        """
        logger.info("Starting news generation workflow")

        articles = await self.fetcher.fetch_initial_articles()
        if not articles:
            logger.warning("No articles fetched for trend analysis")
            return None

        recent = await self.recent_trends()
        analysis = analyze_trends(articles, recent, self.config)
        if analysis is None:
            logger.info("No suitable trending topic found")
            return None

        trend_articles = await self.fetcher.fetch_articles_for_trend(analysis.keyword, TREND_ARTICLES)
        if not trend_articles:
            logger.warning(f"No articles found for the selected trend: {analysis.keyword}")
            return None

        return await self._summarize_and_store(trend_articles, analysis.keyword)

    async def process_trend(self, trend: SignificantTrend) -> Optional[Dict[str, Any]]:
        """Generate and store a card for one significant trend."""
        logger.info(
            f"Processing trend: {trend.keyword} ({trend.count} articles, {trend.unique_sources} sources)"
        )
        return await self._summarize_and_store(trend.articles, trend.keyword)

    async def fetch_latest_news(self) -> List[Article]:
        articles = await self.fetcher.fetch_initial_articles(page_size=self.settings.max_articles_per_fetch)
        if len(articles) < self.settings.min_articles:
            logger.warning(f"Only fetched {len(articles)} articles (minimum: {self.settings.min_articles})")
        else:
            logger.info(f"Successfully fetched {len(articles)} articles")
        return articles

    async def run_autonomous_processing(self) -> CycleResult:
        """
        Run one autonomous cycle.

        Failures are collected in the result instead of being raised.
        """
        started = time.time()
        result = CycleResult(start_time=datetime.now(timezone.utc).isoformat())
        logger.info("Starting autonomous news processing cycle")

        try:
            articles = await self.fetch_latest_news()
            result.articles_fetched = len(articles)
            if len(articles) < self.settings.min_articles:
                result.errors.append(f"Insufficient articles: {len(articles)}/{self.settings.min_articles}")

            recent = await self.recent_trends()
            trends = detect_significant_trends(articles, recent, self.config)
            result.trends_detected = len(trends)

            if not trends:
                logger.info("No significant trends detected - skipping card generation")

            for trend in trends:
                try:
                    card = await self.process_trend(trend)
                    if card:
                        result.cards_generated += 1
                except Exception as e:
                    logger.error(f"Error processing trend {trend.keyword}: {e}")
                    result.errors.append(f"Trend processing error: {trend.keyword} - {e}")

        except Exception as e:
            logger.error(f"Autonomous processing failed: {e}", exc_info=True)
            result.errors.append(f"Processing error: {e}")

        result.processing_time_ms = int((time.time() - started) * 1000)
        logger.info("Autonomous processing cycle completed", extra=result.to_dict())
        return result


def build_pipeline(summarizer: Optional[SummaryProvider] = None) -> NewsPipeline:
    """Pipeline wired to the configured NewsAPI, summarizer and database."""
    return NewsPipeline(
        fetcher=NewsAPIClient(),
        summarizer=summarizer or create_summary_provider(),
        store=NewsStore(get_session_factory()),
    )


async def generate_news_article(pipeline: Optional[NewsPipeline] = None) -> Optional[Dict[str, Any]]:
    """Single-trend workflow; a pipeline built here is closed afterwards."""
    if pipeline is not None:
        return await pipeline.generate_news_article()
    async with build_pipeline() as pipeline:
        return await pipeline.generate_news_article()


async def run_autonomous_processing(pipeline: Optional[NewsPipeline] = None) -> CycleResult:
    """One autonomous cycle; a pipeline built here is closed afterwards."""
    if pipeline is not None:
        return await pipeline.run_autonomous_processing()
    async with build_pipeline() as pipeline:
        return await pipeline.run_autonomous_processing()


def analyze_file(path: str, recent_trends: Optional[Sequence[str]] = None,
                 config: Optional[TrendConfig] = None) -> Dict[str, Any]:
    """
    Run trend analysis on a JSON file of articles.

    The file holds a list of articles or a NewsAPI response with an
    `articles` key.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('articles', [])

    articles = as_articles(data)
    analysis = analyze_trends(articles, recent_trends, config)
    if analysis is None:
        return {'articles': len(articles), 'trend': None}

    topic_articles = matching_articles(articles, analysis.keyword)
    trend_data = prepare_trend_data(topic_articles, analysis.keyword)
    return {
        'articles': len(articles),
        'trend': analysis.to_dict(),
        'image_url': trend_data.image_url,
    }


def main():
    """CLI entry point for the news card workflow."""
    import argparse

    parser = argparse.ArgumentParser(description='Pulse trend detection and news card generation')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('generate', help='Generate one news card for the top trend')
    subparsers.add_parser('autonomous', help='Run one autonomous processing cycle')
    analyze_parser = subparsers.add_parser('analyze', help='Analyze a JSON file of articles')
    analyze_parser.add_argument('file', help='JSON file with a list of articles')
    analyze_parser.add_argument(
        '--recent',
        nargs='*',
        default=[],
        help='Recently covered topics to exclude'
    )

    args = parser.parse_args()

    setup_logging("pulse-trender", level="DEBUG" if args.verbose else None)

    if args.command == 'analyze':
        print(json.dumps(analyze_file(args.file, args.recent), indent=2))
        return 0

    if args.command == 'generate':
        card = asyncio.run(generate_news_article())
        if card is None:
            print("No suitable news article could be generated")
            return 1
        print(json.dumps(card, indent=2, ensure_ascii=False))
        return 0

    result = asyncio.run(run_autonomous_processing())
    print("\n=== Autonomous Processing Results ===")
    print(f"Articles fetched: {result.articles_fetched}")
    print(f"Trends detected: {result.trends_detected}")
    print(f"Cards generated: {result.cards_generated}")
    print(f"Processing time: {result.processing_time_ms}ms")
    for error in result.errors:
        print(f"Error: {error}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    exit(main())
