"""Illustrative image selection for a selected trend.

Scores the `urlToImage` of each article with simple URL heuristics:
- Stock photo and watermark hosts are rejected outright
- Size hints ("large", "hd", "medium", "thumb") add points
- Trusted photo hosts add points
- Text overlay hints cost half a point
"""

from typing import Any, List, Optional, Sequence
from urllib.parse import urlparse

from pulse.core.logging import get_logger
from pulse.trender.models import ImageCandidate, TrendData, as_articles

logger = get_logger(__name__)

WATERMARK_INDICATORS = (
    'watermark', 'logo', 'brand', 'copyright', '©',
    'getty', 'shutterstock', 'istock', 'alamy', 'fotolia', 'depositphotos',
)

TRUSTED_IMAGE_HOSTS = ('imgur.com', 'flickr.com', 'unsplash.com', 'pexels.com')

TEXT_OVERLAY_INDICATORS = ('text', 'overlay', 'caption', 'label')

# (indicators, bonus); each group that matches adds its bonus
QUALITY_BONUSES = (
    (('large', 'high', 'hd'), 3.0),
    (('medium',), 2.0),
    (('small', 'thumb'), 1.0),
)
TRUSTED_HOST_BONUS = 2.0
TEXT_OVERLAY_PENALTY = 0.5


def is_valid_image_url(url: Any) -> bool:
    """Syntactic check: absolute http(s) URL that is not a placeholder."""
    return (
        isinstance(url, str)
        and url.startswith('http')
        and len(url) > 10
        and 'example.com' not in url
    )


def is_trusted_host(url: str) -> bool:
    host = (urlparse(url).hostname or '').lower()
    return any(host == trusted or host.endswith('.' + trusted) for trusted in TRUSTED_IMAGE_HOSTS)


def score_image_url(url: str) -> ImageCandidate:
    """
    Score a syntactically valid image URL.

    Args:
        url: Image URL

    Returns:
        ImageCandidate, flagged as rejected when a watermark indicator matches
    """
    lowered = url.lower()
    if any(indicator in lowered for indicator in WATERMARK_INDICATORS):
        return ImageCandidate(url=url, score=0.0, rejected=True)

    score = 0.0
    for indicators, bonus in QUALITY_BONUSES:
        if any(indicator in lowered for indicator in indicators):
            score += bonus

    if is_trusted_host(url):
        score += TRUSTED_HOST_BONUS

    if any(indicator in lowered for indicator in TEXT_OVERLAY_INDICATORS):
        score -= TEXT_OVERLAY_PENALTY

    return ImageCandidate(url=url, score=score)


def select_image(articles: Sequence[Any]) -> str:
    """Best scoring image URL, else the first valid one, else an empty string."""
    best_url: Optional[str] = None
    best_score = 0.0
    fallback: Optional[str] = None

    for article in as_articles(articles):
        url = article.url_to_image
        if not is_valid_image_url(url):
            continue

        candidate = score_image_url(url)
        if candidate.rejected:
            logger.debug(f"Skipping watermarked/stock image: {url}")
            continue

        if fallback is None:
            fallback = url

        if candidate.score > best_score:
            best_score = candidate.score
            best_url = url

    return best_url or fallback or ''


def prepare_trend_data(articles: Optional[Sequence[Any]], trend: str) -> TrendData:
    """Bundle the trend's articles with its illustrative image."""
    article_list: List = as_articles(articles)
    image_url = select_image(article_list)

    if image_url:
        logger.info(f"Selected image for '{trend}': {image_url}")
    else:
        logger.info(f"No usable image for '{trend}'")

    return TrendData(trend=trend, articles=tuple(article_list), image_url=image_url)
