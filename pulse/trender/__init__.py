"""Trend detection package.

This package contains modules for:
- Vocabularies and threshold table (config.py)
- Keyword and phrase extraction (keywords.py)
- Topic selection (selector.py)
- Image selection (images.py)
- Significance scoring for the autonomous cycle (score.py)
- Generation workflow and CLI (pipeline.py)
- Cron jobs (scheduler.py)
- Main application (app.py)
"""

from .config import ThresholdEntry, TrendConfig, default_trend_config, is_novel, load_threshold_table

from .models import Article, Candidate, SelectedTrend, ImageCandidate, TrendData, SignificantTrend

from .keywords import compute_trending_keywords, count_phrases, normalize_tokens, rank_candidates

from .selector import TopicSelector, SelectorState, analyze_trends, contains_topic, select_trending_topic

from .images import prepare_trend_data, score_image_url

from .score import calculate_significance, detect_significant_trends

__all__ = [
    # Config
    'ThresholdEntry',
    'TrendConfig',
    'default_trend_config',
    'is_novel',
    'load_threshold_table',

    # Models
    'Article',
    'Candidate',
    'SelectedTrend',
    'ImageCandidate',
    'TrendData',
    'SignificantTrend',

    # Extraction
    'compute_trending_keywords',
    'count_phrases',
    'normalize_tokens',
    'rank_candidates',

    # Selection
    'TopicSelector',
    'SelectorState',
    'analyze_trends',
    'contains_topic',
    'select_trending_topic',

    # Images
    'prepare_trend_data',
    'score_image_url',

    # Scoring
    'calculate_significance',
    'detect_significant_trends',
]
