"""Shared fixtures for the Pulse test suite."""

import pytest

from pulse.trender.config import TrendConfig, load_threshold_table
from pulse.trender.models import Article


def make_article(title, description="", source="Reuters", url_to_image="", published_at="2025-01-01T10:00:00Z"):
    """Build a cleaned article with sensible defaults."""
    return Article(
        title=title,
        description=description,
        url=f"https://news.test/{abs(hash((title, description, source)))}",
        url_to_image=url_to_image,
        source=source,
        published_at=published_at,
    )


def ceasefire_corpus():
    """
    Four articles from three publishers repeating one story.

    Counts: "ceasefire talks", "talks stall", "ceasefire talks stall" and
    "ceasefire" appear 8 times each; "troops" 4 times.
    """
    return [
        make_article("Ceasefire talks stall", "Troops gather as ceasefire talks stall", source=source)
        for source in ("Reuters", "BBC News", "CNN", "Reuters")
    ]


@pytest.fixture
def config():
    """Generic thresholds only: regular 7, hot 24, hot topics russia/china."""
    return TrendConfig.build(min_count=7, hot_topic_count=24, hot_topics=["russia", "china"])


@pytest.fixture
def production_config():
    """The bundled threshold table with the production calibration."""
    table, hot_topics = load_threshold_table()
    return TrendConfig.build(thresholds=table, hot_topics=hot_topics, min_count=7, hot_topic_count=24)


@pytest.fixture
def cycle_config():
    """Low thresholds for the ceasefire corpus."""
    return TrendConfig.build(
        min_count=3,
        hot_topic_count=24,
        autonomous_trend_threshold=8,
        autonomous_min_sources=3,
        max_topics_per_cycle=3,
    )
