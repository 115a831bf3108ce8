"""Topic selection for trending candidates.

Walks ranked candidates and returns the first one that clears its
threshold (special per-keyword entry or the generic hot/regular bar) and
was not covered recently. Candidate order is the priority: the first
qualifier wins and nothing after it is evaluated.
"""

from enum import Enum
from itertools import groupby
from typing import Any, List, Optional, Sequence

from pulse.core.logging import get_logger
from pulse.trender.config import TrendConfig, default_trend_config, is_novel
from pulse.trender.keywords import compute_trending_keywords
from pulse.trender.models import Article, Candidate, SelectedTrend, as_articles, as_candidate

logger = get_logger(__name__)

# Rejection reason tags
INSUFFICIENT_ARTICLES = "insufficient_articles"
INSUFFICIENT_SOURCES = "insufficient_sources"
NOT_NOVEL = "not_novel"


class SelectorState(str, Enum):
    SCANNING = "scanning"
    SELECTED = "selected"
    EXHAUSTED = "exhausted"


def contains_topic(article: Article, topic: str) -> bool:
    """Case-insensitive substring match of a topic in title or description."""
    needle = topic.lower()
    return needle in (article.title or '').lower() or needle in (article.description or '').lower()


def matching_articles(articles: Sequence[Article], topic: str) -> List[Article]:
    """Articles mentioning the topic."""
    return [a for a in articles if contains_topic(a, topic)]


def count_unique_sources(articles: Sequence[Article], topic: str) -> int:
    """Number of distinct publishers among articles mentioning the topic."""
    return len({a.source for a in matching_articles(articles, topic)})


def phrases_first(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Give phrases first refusal within each run of equal counts."""
    ordered: List[Candidate] = []
    for _, run in groupby(candidates, key=lambda c: c.count):
        ordered.extend(sorted(run, key=lambda c: not c.is_phrase))
    return ordered


class TopicSelector:
    """Single-pass selector: SCANNING until a candidate qualifies or the list ends."""

    def __init__(self, config: Optional[TrendConfig] = None,
                 recent_trends: Optional[Sequence[str]] = None):
        self.config = config or default_trend_config()
        self.recent_trends = list(recent_trends or [])
        self.state = SelectorState.SCANNING
        self.selected: Optional[Candidate] = None

    def rejection_reason(self, candidate: Candidate, articles: Sequence[Article]) -> Optional[str]:
        """Return why a candidate does not qualify, or None if it does."""
        keyword, count = candidate.text, candidate.count
        special = self.config.special_threshold(keyword)

        if special is not None:
            sources = count_unique_sources(articles, keyword)
            if count < special.min_count:
                logger.debug(
                    f"Rejected '{keyword}': {count} articles < {special.min_count} ({special.category})",
                    extra={'keyword': keyword, 'reason': INSUFFICIENT_ARTICLES,
                           'required': special.min_count, 'actual': count}
                )
                return INSUFFICIENT_ARTICLES
            if sources < special.min_sources:
                logger.debug(
                    f"Rejected '{keyword}': {sources} sources < {special.min_sources} ({special.category})",
                    extra={'keyword': keyword, 'reason': INSUFFICIENT_SOURCES,
                           'required': special.min_sources, 'actual': sources}
                )
                return INSUFFICIENT_SOURCES
        else:
            required = self.config.generic_threshold(keyword)
            if count < required:
                logger.debug(
                    f"Rejected '{keyword}': {count} articles < {required}",
                    extra={'keyword': keyword, 'reason': INSUFFICIENT_ARTICLES,
                           'required': required, 'actual': count}
                )
                return INSUFFICIENT_ARTICLES

        if not is_novel(keyword, self.recent_trends):
            logger.debug(f"Rejected '{keyword}': covered recently",
                         extra={'keyword': keyword, 'reason': NOT_NOVEL})
            return NOT_NOVEL

        return None

    def select(self, candidates: Sequence[Any], articles: Optional[Sequence[Any]] = None) -> Optional[Candidate]:
        """
        Scan candidates in order and return the first qualifying one.

        Args:
            candidates: Candidates or (text, count) pairs, ranked
            articles: Article set of the fetch window, used for source diversity

        Returns:
            The selected candidate, or None when every candidate was rejected
        """
        ranked = phrases_first([as_candidate(c) for c in candidates or []])
        article_list = as_articles(articles)

        self.state = SelectorState.SCANNING
        self.selected = None

        for candidate in ranked:
            if self.rejection_reason(candidate, article_list) is None:
                self.state = SelectorState.SELECTED
                self.selected = candidate
                logger.info(f"Selected trending topic '{candidate.text}' ({candidate.count} mentions)")
                return candidate

        self.state = SelectorState.EXHAUSTED
        logger.info(f"No trending topic qualified among {len(ranked)} candidates")
        return None


def select_trending_topic(candidates: Sequence[Any],
                          recent_trends: Optional[Sequence[str]] = None,
                          articles: Optional[Sequence[Any]] = None,
                          config: Optional[TrendConfig] = None) -> Optional[str]:
    """Select the first qualifying candidate; returns its text or None."""
    selected = TopicSelector(config, recent_trends).select(candidates, articles)
    return selected.text if selected else None


def analyze_trends(articles: Optional[Sequence[Any]],
                   recent_trends: Optional[Sequence[str]] = None,
                   config: Optional[TrendConfig] = None) -> Optional[SelectedTrend]:
    """
    Extract candidates from articles and select one trending topic.

    Returns:
        SelectedTrend with the keyword, its count and every ranked candidate,
        or None when nothing qualifies
    """
    config = config or default_trend_config()
    candidates = compute_trending_keywords(articles, config=config)
    if not candidates:
        logger.info("No trending candidates found")
        return None

    selected = TopicSelector(config, recent_trends).select(candidates, articles)
    if selected is None:
        return None

    return SelectedTrend(keyword=selected.text, count=selected.count, all_trends=tuple(candidates))
