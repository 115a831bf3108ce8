"""Data types exchanged by the trend detection core.

Articles come in from the ingestor already cleaned; everything else is
created per analysis call and never persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Article:
    """A cleaned news article as returned by the article source."""
    title: str
    description: str = ""
    url: str = ""
    url_to_image: str = ""
    source: str = "Unknown"
    published_at: str = ""
    content: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Article":
        """Build an article from NewsAPI-style or snake_case keys."""
        source = data.get("source", "Unknown")
        if isinstance(source, Mapping):
            source = source.get("name") or "Unknown"

        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            url=data.get("url") or "",
            url_to_image=data.get("urlToImage") or data.get("url_to_image") or "",
            source=source or "Unknown",
            published_at=data.get("publishedAt") or data.get("published_at") or "",
            content=data.get("content") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the NewsAPI-style dictionary used by the summarizer prompt."""
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "urlToImage": self.url_to_image,
            "source": self.source,
            "publishedAt": self.published_at,
        }


def as_article(item: Any) -> Article:
    """Coerce a mapping into an Article, rejecting anything else."""
    if isinstance(item, Article):
        return item
    if isinstance(item, Mapping):
        return Article.from_dict(item)
    raise TypeError(
        f"Expected an Article or a mapping with article fields, got {type(item).__name__}"
    )


def as_articles(items: Optional[Sequence[Any]]) -> List[Article]:
    """Coerce a sequence of articles; None yields an empty list."""
    if items is None:
        return []
    if isinstance(items, (str, bytes, Mapping)):
        raise TypeError(f"Expected a sequence of articles, got {type(items).__name__}")
    return [as_article(item) for item in items]


class Candidate(NamedTuple):
    """A keyword or space-joined phrase with its occurrence count."""
    text: str
    count: int

    @property
    def is_phrase(self) -> bool:
        return " " in self.text


def as_candidate(item: Any) -> Candidate:
    """Coerce a (text, count) pair into a Candidate."""
    if isinstance(item, Candidate):
        return item
    try:
        text, count = item
    except (TypeError, ValueError):
        raise TypeError(f"Expected a (text, count) pair, got {item!r}") from None
    if not isinstance(text, str) or isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(f"Expected a (str, int) pair, got {item!r}")
    return Candidate(text, count)


@dataclass(frozen=True)
class SelectedTrend:
    """Result of a single analysis call."""
    keyword: str
    count: int
    all_trends: Tuple[Candidate, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "count": self.count,
            "allTrends": [[c.text, c.count] for c in self.all_trends],
        }


@dataclass(frozen=True)
class ImageCandidate:
    """An article image URL with its heuristic score."""
    url: str
    score: float
    rejected: bool = False


@dataclass(frozen=True)
class TrendData:
    """Articles and illustrative image prepared for the summarizer."""
    trend: str
    articles: Tuple[Article, ...]
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend,
            "articles": [a.to_dict() for a in self.articles],
            "image_url": self.image_url,
        }


@dataclass
class SignificantTrend:
    """A qualifying topic of an autonomous cycle, ranked by significance."""
    keyword: str
    count: int
    unique_sources: int
    significance: float
    category: str
    articles: List[Article] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "count": self.count,
            "unique_sources": self.unique_sources,
            "significance": round(self.significance, 4),
            "category": self.category,
            "articles": len(self.articles),
        }
