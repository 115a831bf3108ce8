"""
Validators for generated news cards.

Checks the summary against the card format: required fields, credibility
range, headline length and description length in both languages.
"""

from typing import Any, Dict, List, Mapping, Union

from pulse.core.logging import get_logger
from .models import REQUIRED_FIELDS, NewsSummary

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 100
MIN_DESCRIPTION_LENGTH = 600
MAX_DESCRIPTION_LENGTH = 1200


class ValidationResult:
    """Result of a validation check with detailed feedback."""

    def __init__(self, is_valid: bool, errors: List[str] = None, warnings: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.warnings = warnings or []

    def __bool__(self) -> bool:
        return self.is_valid

    def add_error(self, message: str):
        """Add validation error."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        """Add validation warning."""
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings
        }


def validate_summary(summary: Union[NewsSummary, Mapping[str, Any], None]) -> ValidationResult:
    """
    Validate a generated summary.

    Args:
        summary: NewsSummary or its dictionary form

    Returns:
        ValidationResult listing every violated rule
    """
    result = ValidationResult(True)

    if summary is None:
        result.add_error("Summary data is missing")
        logger.warning("Summary data is missing")
        return result

    data = summary.to_dict() if isinstance(summary, NewsSummary) else dict(summary)

    for field in REQUIRED_FIELDS:
        if data.get(field) in (None, ''):
            result.add_error(f"Missing required field: {field}")

    score = data.get('credibility_score')
    try:
        score_value = int(score)
    except (TypeError, ValueError):
        score_value = None
    if score is not None and (score_value is None or not 0 <= score_value <= 100):
        result.add_error(f"Invalid credibility score: {score} (must be 0-100)")

    for lang in ('en', 'pl'):
        title = data.get(f'title_{lang}') or ''
        if len(title) > MAX_TITLE_LENGTH:
            result.add_error(f"Title {lang.upper()} too long: {len(title)} chars (max {MAX_TITLE_LENGTH})")

        description = data.get(f'description_{lang}') or ''
        if description and len(description) < MIN_DESCRIPTION_LENGTH:
            result.add_error(
                f"Description {lang.upper()} too short: {len(description)} chars (min {MIN_DESCRIPTION_LENGTH})"
            )
        if len(description) > MAX_DESCRIPTION_LENGTH:
            result.add_error(
                f"Description {lang.upper()} too long: {len(description)} chars (max {MAX_DESCRIPTION_LENGTH})"
            )

    if not data.get('image_url'):
        result.add_warning("No image_url in summary")

    if result.is_valid:
        logger.info("Summary validation passed", extra={'credibility_score': score})
    else:
        logger.warning("Summary validation failed", extra={'errors': result.errors})

    return result
