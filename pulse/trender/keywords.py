"""Keyword and phrase extraction for trend detection.

Turns a batch of articles into ranked candidates:
- Text normalization: lower-case alphanumeric tokens longer than two chars
- Phrase counting: unigrams plus 2-4 word windows with stop-word rules
- Ranking: multi-word phrases first, specific single keywords second,
  generic keywords only as a backfill
"""

import math
import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pulse.core.logging import get_logger
from pulse.trender.config import TrendConfig, default_trend_config
from pulse.trender.models import Article, Candidate, as_articles

logger = get_logger(__name__)

DEFAULT_LIMIT = 20
MIN_TOKEN_LENGTH = 3
PHRASE_SIZES = (2, 3, 4)
MULTI_WORD_SHARE = 0.7
SINGLE_WORD_SHARE = 0.3
MIN_RESULTS = 2

_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


def build_corpus(articles: Iterable[Article]) -> str:
    """Join title and description of every article into one string."""
    return ' '.join(f"{a.title or ''} {a.description or ''}" for a in articles)


def normalize_tokens(articles: Sequence[Any]) -> List[str]:
    """
    Tokenize article titles and descriptions.

    Args:
        articles: Articles or article mappings

    Returns:
        Flat list of lower-case alphanumeric tokens longer than two characters
    """
    corpus = _NON_ALNUM_RE.sub(' ', build_corpus(as_articles(articles)).lower())
    return [token for token in corpus.split() if len(token) >= MIN_TOKEN_LENGTH]


def _phrase_allowed(window: Sequence[str], stop_words: frozenset) -> bool:
    if window[0] in stop_words or window[-1] in stop_words:
        return False

    content = [w for w in window if w not in stop_words]
    if len(content) < len(window) * 0.5:
        return False

    # "war war" carries no more information than "war"
    return len(set(content)) > 1


def count_phrases(tokens: Sequence[str], stop_words: Optional[frozenset] = None) -> Dict[str, int]:
    """
    Count unigrams and 2-4 word phrases over a token stream.

    Stop words are never counted on their own and may not open or close a
    phrase; at least half of a phrase's words must be content words.
    """
    if stop_words is None:
        stop_words = default_trend_config().stop_words

    counts: Counter = Counter(token for token in tokens if token not in stop_words)

    for n in PHRASE_SIZES:
        for i in range(len(tokens) - n + 1):
            window = tokens[i:i + n]
            if _phrase_allowed(window, stop_words):
                counts[' '.join(window)] += 1

    return dict(counts)


def rank_candidates(counts: Optional[Mapping[str, int]],
                    limit: int = DEFAULT_LIMIT,
                    config: Optional[TrendConfig] = None) -> List[Candidate]:
    """
    Rank phrase counts into at most `limit` candidates.

    Args:
        counts: Phrase -> occurrence count
        limit: Maximum number of candidates
        config: Vocabulary tables, defaults to the process config

    Returns:
        Candidates ordered by count descending, phrases ahead of single
        words on equal counts
    """
    if not counts:
        return []
    config = config or default_trend_config()

    ordered = sorted((Candidate(text, count) for text, count in counts.items()),
                     key=lambda c: c.count, reverse=True)
    pool = ordered[:2 * limit]

    multi_slots = math.floor(limit * MULTI_WORD_SHARE)
    single_slots = math.floor(limit * SINGLE_WORD_SHARE)

    phrases = [c for c in pool if c.is_phrase][:multi_slots]
    specific = [
        c for c in pool
        if not c.is_phrase
        and c.text in config.topic_keywords
        and c.text not in config.generic_keywords
    ][:single_slots]

    result = phrases + specific

    if len(result) < MIN_RESULTS:
        generic = [
            c for c in pool
            if not c.is_phrase
            and c.text in config.topic_keywords
            and c.text in config.generic_keywords
        ]
        for candidate in generic:
            if len(result) >= MIN_RESULTS:
                break
            result.append(candidate)
            logger.debug(f"Backfilled generic keyword '{candidate.text}' ({candidate.count})")

    result.sort(key=lambda c: c.count, reverse=True)
    return result[:limit]


def compute_trending_keywords(articles: Optional[Sequence[Any]],
                              limit: int = DEFAULT_LIMIT,
                              config: Optional[TrendConfig] = None) -> List[Candidate]:
    """Extract ranked trending candidates from a batch of articles."""
    if not articles:
        return []
    config = config or default_trend_config()

    tokens = normalize_tokens(articles)
    counts = count_phrases(tokens, config.stop_words)
    candidates = rank_candidates(counts, limit, config)

    logger.debug(
        f"Extracted {len(candidates)} candidates from {len(articles)} articles",
        extra={'tokens': len(tokens), 'distinct_phrases': len(counts)}
    )
    return candidates
