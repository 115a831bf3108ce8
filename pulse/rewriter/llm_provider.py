"""
Summary providers for news card generation.

Provides an abstraction over the language model used to fuse a trend's
articles into a bilingual news card. Includes a dummy provider for
development and tests without API dependencies.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import openai

from pulse.core.errors import NoModelAvailableError, SummaryGenerationError
from pulse.core.logging import get_logger
from pulse.core.settings import get_settings
from pulse.trender.models import Article, as_articles
from .models import REQUIRED_FIELDS, NewsSummary

logger = get_logger(__name__)

PRIMARY_MODEL = 'gpt-4o'
ALTERNATIVE_MODELS = ('gpt-4o-latest', 'gpt-4o-mini')
FALLBACK_MODEL = 'gpt-3.5-turbo'

MODEL_ERROR_MARKERS = ('does not exist', 'not have access', '404', 'model_not_found')

SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 2000

PROMPT_TEMPLATE = """Here is the articles array you receive:
{articles}

Generate ONE JSON object about the topic "{topic}", using ONLY the information in the articles. Do not invent, guess or use general knowledge.

1. Topic: only war or politics. If the articles are about anything else, return an empty object.
2. Titles: "title_pl" in POLISH only, "title_en" in ENGLISH only, max 100 characters each. A natural, concise headline, never a list of topics.
3. Descriptions: "description_pl" in POLISH only, "description_en" in ENGLISH only, 600-1200 characters each. A fused account of the facts confirmed by all or most articles. Never name sources, never write "according to" or describe the articles.
4. credibility_score: integer 0-100 based on the number of unique sources, how trusted they are, recency, overlap of facts and objectivity of tone. Only 100 with at least 5 unique trusted mainstream sources agreeing on nearly every key detail. Lower the score for old (>48h), untrusted or sensationalist sources.
5. image_url: one relevant image URL from the articles, free of stock-photo watermarks or heavy text. Empty string if none is suitable.
6. published_at: ISO 8601 date of the most recent article on the topic.

Return only this JSON object, no comments and no extra fields:
{{"title_pl": "...", "description_pl": "...", "title_en": "...", "description_en": "...", "credibility_score": 0, "published_at": "...", "image_url": "..."}}

If a field cannot be filled from the articles, use an empty string."""


def is_model_error(error: Exception) -> bool:
    """True when an API error means the model itself is unavailable."""
    if isinstance(error, openai.NotFoundError):
        return True
    message = str(error)
    return any(marker in message for marker in MODEL_ERROR_MARKERS)


class ModelManager:
    """
    Detects the best chat model available to the API key.

    Detection result is cached on the instance; `reset()` forgets it.
    Models that failed with a model error are skipped on re-detection.
    """

    def __init__(self, client: Any,
                 primary: str = PRIMARY_MODEL,
                 alternatives: Sequence[str] = ALTERNATIVE_MODELS,
                 fallback: str = FALLBACK_MODEL):
        self.client = client
        self.primary = primary
        self.alternatives = tuple(alternatives)
        self.fallback = fallback
        self.active_model: Optional[str] = None
        self.detection_complete = False
        self.unavailable: set = set()

    @property
    def candidates(self) -> List[str]:
        return [self.primary, *self.alternatives, self.fallback]

    async def test_model_availability(self, model: str) -> bool:
        """Try a model with a tiny completion."""
        try:
            logger.info(f"Testing model availability: {model}")
            response = await self.client.chat.completions.create(
                model=model,
                messages=[{'role': 'user', 'content': 'Hello'}],
                max_tokens=5,
                temperature=0,
            )
            return bool(response.choices)
        except openai.OpenAIError as e:
            if is_model_error(e):
                logger.warning(f"Model {model} is not available: {e}")
            else:
                logger.error(f"Error testing model {model}: {e}")
            return False

    async def detect_best_model(self) -> str:
        """
        Return the first available model: primary, alternatives, then fallback.

        Raises:
            NoModelAvailableError: If no candidate model answers
        """
        if self.detection_complete and self.active_model:
            return self.active_model

        logger.info("Starting model detection")
        for model in self.candidates:
            if model in self.unavailable:
                continue
            if await self.test_model_availability(model):
                self.active_model = model
                self.detection_complete = True
                logger.info(f"Using model: {model}")
                return model
            self.unavailable.add(model)

        raise NoModelAvailableError(
            "No OpenAI models are available. Please check your API key and model access."
        )

    async def create_completion(self, **options) -> Any:
        """Chat completion with the detected model, falling back once on model errors."""
        model = await self.detect_best_model()
        logger.info(f"Creating completion with model: {model}")

        try:
            return await self.client.chat.completions.create(model=model, **options)
        except openai.OpenAIError as e:
            logger.error(f"Completion failed with model {model}: {e}")
            if model == self.fallback or not is_model_error(e):
                raise

            self.unavailable.add(model)
            self.active_model = None
            self.detection_complete = False

            fallback_model = await self.detect_best_model()
            logger.info(f"Retrying completion with fallback model: {fallback_model}")
            return await self.client.chat.completions.create(model=fallback_model, **options)

    def reset(self):
        """Forget the detected model and every unavailability mark."""
        self.active_model = None
        self.detection_complete = False
        self.unavailable.clear()
        logger.info("Model detection reset")

    def status(self) -> Dict[str, Any]:
        return {
            "active_model": self.active_model,
            "model_detection_complete": self.detection_complete,
            "primary_model": self.primary,
            "fallback_model": self.fallback,
            "alternative_models": list(self.alternatives),
            "unavailable_models": sorted(self.unavailable),
        }


class SummaryProvider(ABC):
    """Abstract base class for summary providers."""

    @abstractmethod
    async def generate_summary(self, articles: Sequence[Any], topic: str,
                               image_url: str = '') -> NewsSummary:
        """
        Fuse the articles about a topic into a news card.

        Args:
            articles: Articles about the topic
            topic: Selected trending keyword
            image_url: Image chosen by the image scorer, may be empty

        Returns:
            The generated summary

        Raises:
            SummaryGenerationError: Missing or malformed model output
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identification name."""

    def status(self) -> Dict[str, Any]:
        return {"provider": self.provider_name}


def build_prompt(articles: Sequence[Article], topic: str) -> str:
    """Render the summarization prompt for a set of articles."""
    articles_data = [
        {
            'title': a.title,
            'description': a.description,
            'source': a.source,
            'publishedAt': a.published_at,
            'url': a.url,
        }
        for a in articles
    ]
    return PROMPT_TEMPLATE.format(articles=json.dumps(articles_data, ensure_ascii=False), topic=topic)


def parse_summary(content: Optional[str], image_url: str = '') -> NewsSummary:
    """Parse a model answer into a NewsSummary, filling the image if missing."""
    if not content:
        raise SummaryGenerationError("No response from OpenAI")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse OpenAI response as JSON", extra={'response': content[:500]})
        raise SummaryGenerationError("Invalid JSON response from OpenAI") from e

    if not isinstance(data, dict):
        raise SummaryGenerationError("OpenAI response is not a JSON object")

    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, '')]
    if missing:
        logger.warning(f"Missing required fields in OpenAI response: {missing}")
        raise SummaryGenerationError(f"Missing required fields: {', '.join(missing)}")

    if not data.get('image_url') and image_url:
        data['image_url'] = image_url

    try:
        return NewsSummary.model_validate(data)
    except ValueError as e:
        raise SummaryGenerationError(f"Malformed summary: {e}") from e


class OpenAISummaryProvider(SummaryProvider):
    """Summary provider backed by the OpenAI chat completions API."""

    def __init__(self, api_key: Optional[str] = None, client: Any = None,
                 model_manager: Optional[ModelManager] = None):
        self.api_key = get_settings().openai_api_key if api_key is None else api_key
        self._client = client
        self._model_manager = model_manager

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise SummaryGenerationError("OPENAI_API_KEY is not configured")
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    @property
    def model_manager(self) -> ModelManager:
        if self._model_manager is None:
            self._model_manager = ModelManager(self.client)
        return self._model_manager

    async def detect_model(self) -> str:
        """Re-run model detection from scratch."""
        self.model_manager.reset()
        return await self.model_manager.detect_best_model()

    def status(self) -> Dict[str, Any]:
        status = {"provider": self.provider_name, "configured": bool(self.api_key or self._client)}
        if self._model_manager is not None:
            status.update(self._model_manager.status())
        return status

    async def generate_summary(self, articles: Sequence[Any], topic: str,
                               image_url: str = '') -> NewsSummary:
        article_list = as_articles(articles)
        logger.info(f"Generating summary for trend: {topic}", extra={'articles': len(article_list)})

        completion = await self.model_manager.create_completion(
            messages=[{'role': 'user', 'content': build_prompt(article_list, topic)}],
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS,
            response_format={'type': 'json_object'},
        )

        content = completion.choices[0].message.content if completion.choices else None
        summary = parse_summary(content, image_url)

        logger.info(
            "Successfully generated summary",
            extra={'title_en': summary.title_en, 'credibility_score': summary.credibility_score,
                   'has_image': bool(summary.image_url)}
        )
        return summary


class DummySummaryProvider(SummaryProvider):
    """
    Dummy summary provider for development and testing.

    Builds a deterministic card from the article titles and descriptions
    without external API calls.
    """

    MIN_DESCRIPTION = 600
    MAX_DESCRIPTION = 1200

    def __init__(self):
        self.call_count = 0

    @property
    def provider_name(self) -> str:
        return "Dummy"

    def _fit_length(self, sentences: List[str]) -> str:
        sentences = [s for s in sentences if s] or ["No further details were reported."]
        text = ' '.join(sentences)
        i = 0
        while len(text) < self.MIN_DESCRIPTION:
            text = f"{text} {sentences[i % len(sentences)]}"
            i += 1
        if len(text) > self.MAX_DESCRIPTION:
            text = text[:self.MAX_DESCRIPTION].rsplit(' ', 1)[0]
        return text

    async def generate_summary(self, articles: Sequence[Any], topic: str,
                               image_url: str = '') -> NewsSummary:
        self.call_count += 1
        article_list = as_articles(articles)
        sources = {a.source for a in article_list}
        published = max((a.published_at for a in article_list if a.published_at),
                        default=datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ'))

        en = [f"{(a.title or '').rstrip('.')}. {a.description}".strip() for a in article_list]
        pl = [f"Temat: {topic}. {(a.title or '').rstrip('.')}." for a in article_list]

        return NewsSummary(
            title_pl=f"Najnowsze informacje: {topic}"[:100],
            description_pl=self._fit_length(pl),
            title_en=f"Latest on {topic}"[:100],
            description_en=self._fit_length(en),
            credibility_score=min(100, 40 + 10 * len(sources)),
            published_at=published,
            image_url=image_url,
        )


def create_summary_provider(provider_type: Optional[str] = None) -> SummaryProvider:
    """
    Build a summary provider.

    Args:
        provider_type: "openai" or "dummy", defaults to SUMMARY_PROVIDER

    Raises:
        ValueError: Unknown provider type
    """
    if provider_type is None:
        provider_type = get_settings().summary_provider
    provider_type = provider_type.lower()

    providers = {"openai": OpenAISummaryProvider, "dummy": DummySummaryProvider}
    if provider_type not in providers:
        raise ValueError(f"Unknown provider type: {provider_type}. Available: {list(providers)}")
    return providers[provider_type]()
