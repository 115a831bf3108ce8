"""Database models for Pulse."""
from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import mapped_column

from .db import Base


class NewsCard(Base):
    """Bilingual news cards generated for trending topics."""
    __tablename__ = "articles"

    id = mapped_column(Integer, primary_key=True)
    trend = mapped_column(String(200), nullable=True, index=True)
    title_pl = mapped_column(String(300), nullable=False)
    description_pl = mapped_column(Text, nullable=False)
    title_en = mapped_column(String(300), nullable=False, index=True)
    description_en = mapped_column(Text, nullable=False)
    credibility_score = mapped_column(Integer, default=0, nullable=False)
    published_at = mapped_column(String(40), nullable=False)  # ISO 8601, 'Z' suffixed
    image_url = mapped_column(String(1500), default="", nullable=False)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self):
        """Convert to dictionary."""
        return {
            "id": self.id,
            "trend": self.trend,
            "title_pl": self.title_pl,
            "description_pl": self.description_pl,
            "title_en": self.title_en,
            "description_en": self.description_en,
            "credibility_score": self.credibility_score,
            "published_at": self.published_at,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


Index('idx_articles_created_desc', NewsCard.created_at.desc())
