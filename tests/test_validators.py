"""Tests for news card validation."""

import pytest

from pulse.rewriter.models import NewsSummary
from pulse.rewriter.validators import ValidationResult, validate_summary


@pytest.fixture
def card():
    return {
        "title_pl": "Rozmowy utknęły",
        "description_pl": "a" * 700,
        "title_en": "Talks stall",
        "description_en": "b" * 700,
        "credibility_score": 80,
        "published_at": "2025-01-01T12:00:00Z",
        "image_url": "https://a.com/large.jpg",
    }


def test_valid_card(card):
    result = validate_summary(card)

    assert result
    assert result.errors == []
    assert result.warnings == []


def test_accepts_model_instance(card):
    assert validate_summary(NewsSummary(**card)).is_valid


def test_missing_summary():
    result = validate_summary(None)

    assert not result
    assert result.errors == ["Summary data is missing"]


def test_missing_fields(card):
    del card["title_en"]
    card["published_at"] = ""

    result = validate_summary(card)

    assert not result.is_valid
    assert "Missing required field: title_en" in result.errors
    assert "Missing required field: published_at" in result.errors


@pytest.mark.parametrize("score", [-1, 101, "high"])
def test_invalid_credibility(card, score):
    card["credibility_score"] = score

    result = validate_summary(card)

    assert any("Invalid credibility score" in e for e in result.errors)


@pytest.mark.parametrize("score", [0, 100])
def test_credibility_bounds(card, score):
    card["credibility_score"] = score

    assert validate_summary(card).is_valid


def test_length_rules(card):
    card["title_en"] = "t" * 101
    card["description_pl"] = "d" * 599
    card["description_en"] = "e" * 1201

    errors = validate_summary(card).errors

    assert errors == [
        "Title EN too long: 101 chars (max 100)",
        "Description EN too long: 1201 chars (max 1200)",
        "Description PL too short: 599 chars (min 600)",
    ]


def test_missing_image_is_a_warning(card):
    card["image_url"] = ""

    result = validate_summary(card)

    assert result.is_valid
    assert result.warnings == ["No image_url in summary"]


def test_result_to_dict():
    result = ValidationResult(True)
    result.add_warning("careful")
    result.add_error("broken")

    assert result.to_dict() == {"is_valid": False, "errors": ["broken"], "warnings": ["careful"]}
