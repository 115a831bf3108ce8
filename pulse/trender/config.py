"""Read-only configuration for the trend detection core.

Vocabularies (stop words, topic allow-list, generic words), the per-keyword
threshold table and the generic thresholds are bundled into one immutable
TrendConfig. It is built once per process and handed to the core functions,
so tests can swap in alternate tables without touching module state.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple, Union

import yaml

from pulse.core.logging import get_logger
from pulse.core.settings import get_settings

logger = get_logger(__name__)

DEFAULT_THRESHOLDS_PATH = Path(__file__).parent / "data" / "thresholds.yaml"

STOP_WORDS = frozenset({
    'and', 'the', 'of', 'to', 'in', 'on', 'is', 'a', 'for', 'with',
    'that', 'this', 'are', 'as', 'at', 'be', 'by', 'from', 'has',
    'he', 'it', 'its', 'may', 'not', 'or', 'she', 'was', 'will',
    'would', 'you', 'your', 'they', 'them', 'their', 'we', 'our',
    'us', 'i', 'me', 'my', 'but', 'if', 'so', 'than', 'then', 'up',
    'out', 'do', 'go', 'get', 'got', 'have', 'had', 'can',
    'could', 'should', 'might', 'must', 'shall', 'about',
    'after', 'against', 'between', 'during', 'into', 'through',
    'until', 'before', 'behind', 'below', 'beneath', 'beside',
    'beyond', 'inside', 'outside', 'under', 'over', 'above'
})

# Single words allowed to stand as a topic on their own
TOPIC_KEYWORDS = frozenset({
    'war', 'conflict', 'attack', 'battle', 'military', 'defense',
    'ceasefire', 'invasion', 'troops', 'weapon', 'sanctions',
    'diplomacy', 'politics', 'election', 'president', 'nato',
    'china', 'russia', 'united', 'states'
})

# Overused single words, admitted only when nothing more specific is available
GENERIC_KEYWORDS = frozenset({
    'president', 'trump', 'biden', 'war', 'conflict', 'election',
    'russia', 'ukraine', 'china', 'israel', 'palestine', 'nato',
    'economy', 'market', 'trade', 'tariff', 'inflation'
})

# Words of a recent card title that identify the topic it covered
RECENT_TREND_KEYWORDS = (
    'war', 'conflict', 'attack', 'battle', 'military', 'defense',
    'politics', 'election', 'president', 'government', 'diplomacy',
    'sanctions', 'nato', 'ukraine', 'russia', 'china'
)


@dataclass(frozen=True)
class ThresholdEntry:
    """Stricter qualification bar for a frequently covered keyword."""
    min_count: int
    min_sources: int
    category: str


@dataclass(frozen=True)
class TrendConfig:
    """Immutable tables and thresholds consumed by the core."""
    thresholds: Mapping[str, ThresholdEntry] = field(default_factory=lambda: MappingProxyType({}))
    hot_topics: FrozenSet[str] = frozenset()
    min_count: int = 7
    hot_topic_count: int = 24
    stop_words: FrozenSet[str] = STOP_WORDS
    topic_keywords: FrozenSet[str] = TOPIC_KEYWORDS
    generic_keywords: FrozenSet[str] = GENERIC_KEYWORDS
    autonomous_trend_threshold: int = 15
    autonomous_min_sources: int = 3
    max_topics_per_cycle: int = 3

    @classmethod
    def build(cls,
              thresholds: Optional[Mapping[str, Union[ThresholdEntry, Mapping[str, Any]]]] = None,
              hot_topics: Iterable[str] = (),
              **overrides) -> "TrendConfig":
        """Build a config, normalizing keys to lower case and freezing tables."""
        table: Dict[str, ThresholdEntry] = {}
        for keyword, entry in (thresholds or {}).items():
            if not isinstance(entry, ThresholdEntry):
                entry = ThresholdEntry(
                    min_count=int(entry["min_count"]),
                    min_sources=int(entry["min_sources"]),
                    category=str(entry.get("category", "special")),
                )
            table[keyword.strip().lower()] = entry

        for name in ("stop_words", "topic_keywords", "generic_keywords"):
            if name in overrides:
                overrides[name] = frozenset(w.lower() for w in overrides[name])

        return cls(
            thresholds=MappingProxyType(table),
            hot_topics=frozenset(t.lower() for t in hot_topics),
            **overrides
        )

    def special_threshold(self, text: str) -> Optional[ThresholdEntry]:
        """Case-insensitive exact lookup in the threshold table."""
        return self.thresholds.get(text.lower())

    def generic_threshold(self, text: str) -> int:
        """Minimum count for a keyword absent from the threshold table."""
        return self.hot_topic_count if text.lower() in self.hot_topics else self.min_count


def load_threshold_table(path: Union[str, Path] = DEFAULT_THRESHOLDS_PATH) -> Tuple[Dict[str, ThresholdEntry], Tuple[str, ...]]:
    """
    Load the per-keyword threshold table and hot topics list from YAML.

    Args:
        path: YAML file with `hot_topics` and `groups` sections

    Returns:
        Tuple of (keyword -> ThresholdEntry, hot topics)

    Raises:
        ValueError: If a keyword is listed twice or a group is malformed
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    table: Dict[str, ThresholdEntry] = {}
    for group in data.get('groups', []):
        try:
            category = group['category']
            default_count = int(group['min_count'])
            default_sources = int(group['min_sources'])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed threshold group in {path}: {group!r}") from e

        for item in group.get('keywords', []):
            if isinstance(item, dict):
                keyword = item['keyword']
                entry = ThresholdEntry(
                    min_count=int(item.get('min_count', default_count)),
                    min_sources=int(item.get('min_sources', default_sources)),
                    category=category,
                )
            else:
                keyword = item
                entry = ThresholdEntry(default_count, default_sources, category)

            keyword = str(keyword).strip().lower()
            if keyword in table:
                raise ValueError(f"Duplicate threshold keyword '{keyword}' in {path}")
            table[keyword] = entry

    hot_topics = tuple(str(t).lower() for t in data.get('hot_topics', []))

    logger.debug(f"Loaded {len(table)} threshold entries and {len(hot_topics)} hot topics from {path}")
    return table, hot_topics


@lru_cache()
def default_trend_config() -> TrendConfig:
    """Process-wide config built from the bundled table and the settings."""
    settings = get_settings()
    table, hot_topics = load_threshold_table()
    return TrendConfig.build(
        thresholds=table,
        hot_topics=hot_topics,
        min_count=settings.trend_min_count,
        hot_topic_count=settings.trend_hot_topic_count,
        autonomous_trend_threshold=settings.autonomous_trend_threshold,
        autonomous_min_sources=settings.autonomous_min_sources,
        max_topics_per_cycle=settings.max_topics_per_cycle,
    )


def is_novel(keyword: str, recent_trends: Optional[Sequence[str]] = None) -> bool:
    """A keyword is novel when it is not among the recently used topics."""
    if not recent_trends:
        return True
    return keyword.lower() not in {t.lower() for t in recent_trends}
