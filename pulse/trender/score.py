"""Significance scoring for the autonomous cycle.

When several topics qualify in one cycle they are ranked by a composite
score combining frequency share and source diversity, then capped at the
configured number of topics per cycle.
"""

from typing import Any, List, Optional, Sequence

from pulse.core.logging import get_logger
from pulse.trender.config import TrendConfig, default_trend_config, is_novel
from pulse.trender.models import SignificantTrend, as_articles
from pulse.trender.selector import analyze_trends, matching_articles

logger = get_logger(__name__)

FREQUENCY_WEIGHT = 0.4
DIVERSITY_WEIGHT = 0.4
RECENCY_WEIGHT = 0.2
DIVERSITY_SATURATION = 10
# Recency is not measured yet; every topic gets the full contribution
RECENCY_SCORE = 1.0

REGULAR_TOPIC = "regular_topic"


def calculate_significance(count: int, unique_sources: int, total_articles: int) -> float:
    """
    Composite significance in [0, 1] for a qualifying topic.

    Args:
        count: Mentions of the topic
        unique_sources: Distinct publishers covering it
        total_articles: Articles analyzed in the cycle

    Returns:
        0.4 * frequency share + 0.4 * source diversity + 0.2 * recency
    """
    frequency_score = count / total_articles if total_articles > 0 else 0.0
    diversity_score = min(unique_sources / DIVERSITY_SATURATION, 1.0)

    return (
        frequency_score * FREQUENCY_WEIGHT
        + diversity_score * DIVERSITY_WEIGHT
        + RECENCY_SCORE * RECENCY_WEIGHT
    )


def detect_significant_trends(articles: Optional[Sequence[Any]],
                              recent_trends: Optional[Sequence[str]] = None,
                              config: Optional[TrendConfig] = None,
                              max_topics: Optional[int] = None) -> List[SignificantTrend]:
    """
    Find every qualifying topic of a batch, ranked by significance.

    Runs the regular analysis first; if nothing qualifies there the cycle
    produces no topics. Otherwise every ranked candidate is checked against
    its special threshold or the autonomous bar.
    """
    article_list = as_articles(articles)
    if not article_list:
        logger.warning("No articles provided for trend detection")
        return []

    config = config or default_trend_config()
    max_topics = config.max_topics_per_cycle if max_topics is None else max_topics

    logger.info(f"Analyzing {len(article_list)} articles for significant trends")

    analysis = analyze_trends(article_list, recent_trends, config)
    if analysis is None:
        logger.info("No significant trends detected")
        return []

    significant: List[SignificantTrend] = []
    for candidate in analysis.all_trends:
        keyword = candidate.text.lower()
        if not is_novel(keyword, recent_trends):
            continue

        topic_articles = matching_articles(article_list, keyword)
        unique_sources = len({a.source for a in topic_articles})
        special = config.special_threshold(keyword)

        if special is not None:
            qualifies = candidate.count >= special.min_count and unique_sources >= special.min_sources
            category = special.category
            if not qualifies:
                reason = 'insufficient_articles' if candidate.count < special.min_count else 'insufficient_sources'
                logger.info(
                    f"High-frequency keyword '{keyword}' filtered out by special thresholds",
                    extra={'count': candidate.count, 'required_count': special.min_count,
                           'sources': unique_sources, 'required_sources': special.min_sources,
                           'category': category, 'reason': reason}
                )
        else:
            qualifies = (candidate.count >= config.autonomous_trend_threshold
                         and unique_sources >= config.autonomous_min_sources)
            category = REGULAR_TOPIC

        if qualifies:
            significant.append(SignificantTrend(
                keyword=keyword,
                count=candidate.count,
                unique_sources=unique_sources,
                significance=calculate_significance(candidate.count, unique_sources, len(article_list)),
                category=category,
                articles=topic_articles,
            ))

    significant.sort(key=lambda t: t.significance, reverse=True)
    top = significant[:max_topics]

    logger.info(
        f"Trend analysis: {len(significant)} significant, keeping {len(top)}",
        extra={'total_articles': len(article_list),
               'top_trends': [t.to_dict() for t in top]}
    )
    return top
