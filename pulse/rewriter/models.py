"""
Pydantic models for the summarizer output.

A news card is a bilingual (Polish/English) fusion of the articles about
one trending topic, scored for credibility.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_FIELDS = (
    'title_pl', 'description_pl', 'title_en', 'description_en',
    'credibility_score', 'published_at',
)


class NewsSummary(BaseModel):
    """Bilingual summary produced by the language model."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title_pl: str = Field(..., description="Headline in Polish, max 100 chars")
    description_pl: str = Field(..., description="Polish narrative, 600-1200 chars")
    title_en: str = Field(..., description="Headline in English, max 100 chars")
    description_en: str = Field(..., description="English narrative, 600-1200 chars")
    credibility_score: int = Field(..., description="Integer 0-100")
    published_at: str = Field(..., description="ISO 8601 date of the most recent article")
    image_url: str = Field(default="", description="Illustrative image, may be empty")

    @field_validator('image_url', mode='before')
    @classmethod
    def empty_image(cls, v):
        """Models sometimes answer null for a missing image."""
        return v or ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump()
