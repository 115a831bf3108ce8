"""Tests for significance scoring and autonomous trend detection."""

import pytest

from conftest import ceasefire_corpus
from pulse.trender.config import ThresholdEntry, TrendConfig
from pulse.trender.score import REGULAR_TOPIC, calculate_significance, detect_significant_trends


def test_calculate_significance():
    assert calculate_significance(10, 5, 100) == pytest.approx(0.44)


def test_source_diversity_saturates_at_ten():
    assert calculate_significance(10, 20, 100) == pytest.approx(0.64)
    assert calculate_significance(10, 10, 100) == calculate_significance(10, 30, 100)


def test_zero_total_articles():
    assert calculate_significance(5, 5, 0) == pytest.approx(0.4)


def test_recency_term_is_constant():
    assert calculate_significance(0, 0, 50) == pytest.approx(0.2)


def test_detect_empty():
    assert detect_significant_trends([], []) == []
    assert detect_significant_trends(None) == []


def test_detect_ranks_and_caps(cycle_config):
    trends = detect_significant_trends(ceasefire_corpus(), [], cycle_config)

    assert [t.keyword for t in trends] == ["ceasefire talks", "talks stall", "ceasefire talks stall"]
    first = trends[0]
    assert first.count == 8
    assert first.unique_sources == 3
    assert first.category == REGULAR_TOPIC
    assert len(first.articles) == 4
    assert first.significance == pytest.approx(0.4 * 8 / 4 + 0.4 * 0.3 + 0.2)


def test_detect_respects_max_topics(cycle_config):
    trends = detect_significant_trends(ceasefire_corpus(), [], cycle_config, max_topics=1)

    assert [t.keyword for t in trends] == ["ceasefire talks"]


def test_detect_skips_recent_topics(cycle_config):
    trends = detect_significant_trends(ceasefire_corpus(), ["talks stall"], cycle_config)

    assert [t.keyword for t in trends] == ["ceasefire talks", "ceasefire talks stall", "ceasefire"]


def test_detect_applies_special_thresholds():
    config = TrendConfig.build(
        thresholds={
            "ceasefire": ThresholdEntry(min_count=20, min_sources=2, category="Military"),
            "talks stall": ThresholdEntry(min_count=5, min_sources=3, category="Conflict Phrases"),
        },
        min_count=3,
        autonomous_trend_threshold=8,
        autonomous_min_sources=3,
    )

    trends = detect_significant_trends(ceasefire_corpus(), ["ceasefire talks"], config)

    assert [(t.keyword, t.category) for t in trends] == [
        ("talks stall", "Conflict Phrases"),
        ("ceasefire talks stall", REGULAR_TOPIC),
    ]


def test_detect_requires_source_diversity():
    config = TrendConfig.build(min_count=3, autonomous_trend_threshold=4, autonomous_min_sources=3)
    articles = [a for a in ceasefire_corpus() if a.source == "Reuters"]

    assert detect_significant_trends(articles, [], config) == []


def test_detect_nothing_when_analysis_finds_nothing():
    config = TrendConfig.build(min_count=100, autonomous_trend_threshold=1, autonomous_min_sources=1)

    assert detect_significant_trends(ceasefire_corpus(), [], config) == []
