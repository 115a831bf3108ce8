"""
Pulse News Card Rewriter Module

Fuses the articles of a trending topic into a bilingual (Polish/English)
news card with a credibility score.

Main Components:
- models: Pydantic model for the generated summary
- llm_provider: OpenAI provider with model detection and a dummy fallback
- validators: Card format validation
"""

from .models import NewsSummary
from .llm_provider import (
    ModelManager,
    SummaryProvider,
    OpenAISummaryProvider,
    DummySummaryProvider,
    create_summary_provider,
)
from .validators import ValidationResult, validate_summary

__all__ = [
    "NewsSummary",
    "ModelManager",
    "SummaryProvider",
    "OpenAISummaryProvider",
    "DummySummaryProvider",
    "create_summary_provider",
    "ValidationResult",
    "validate_summary",
]
