# This project was developed with assistance from AI tools.
"""Tests for classifier reply parsing and failure mapping."""

from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest

from intake_api.services.classifier import (
    ClassifierQuotaExceeded,
    ClassifierRateLimited,
    ClassifierUnavailable,
    DocumentClassifier,
    parse_classification,
)
from intake_db.enums import QualityAssessment, RedFlag

_REQUEST = httpx.Request("POST", "https://llm.test/v1/chat/completions")

_REPLY = (
    '{"detected_type": "pan_card", "is_document": true, "confidence": 91, '
    '"quality": "good", "red_flags": [], "reasoning": "Clear PAN card"}'
)


def _status_error(cls, status: int):
    return cls(f"HTTP {status}", response=httpx.Response(status, request=_REQUEST), body=None)


# ---------------------------------------------------------------------------
# parse_classification
# ---------------------------------------------------------------------------


def test_parse_plain_json():
    result = parse_classification(_REPLY)
    assert result.detected_type == "pan_card"
    assert result.is_document is True
    assert result.confidence == 91
    assert result.quality == QualityAssessment.GOOD
    assert result.reasoning == "Clear PAN card"


def test_parse_fenced_json():
    result = parse_classification(f"```json\n{_REPLY}\n```")
    assert result.detected_type == "pan_card"


def test_parse_json_inside_prose():
    result = parse_classification(f"Here is my analysis:\n{_REPLY}\nHope this helps.")
    assert result.confidence == 91


def test_parse_legacy_is_relevant_string():
    result = parse_classification(
        '{"detected_type": "selfie", "is_relevant": "false", "confidence": 80}'
    )
    assert result.is_document is False


def test_parse_drops_unknown_flags_and_defaults_quality():
    result = parse_classification(
        '{"detected_type": "pan_card", "confidence": 75, "quality": "excellent", '
        '"red_flags": ["BLURRY", "coffee_stain"]}'
    )
    assert result.red_flags == [RedFlag.BLURRY]
    assert result.quality == QualityAssessment.ACCEPTABLE


def test_parse_clamps_confidence():
    assert parse_classification('{"detected_type": "x", "confidence": 140}').confidence == 100
    assert parse_classification('{"detected_type": "x", "confidence": "n/a"}').confidence == 0


def test_parse_missing_type_is_unknown():
    assert parse_classification('{"confidence": 50}').detected_type == "unknown"


@pytest.mark.parametrize("raw", ["I cannot help with that.", "[1, 2, 3]", "{not json}"])
def test_parse_unusable_reply(raw):
    with pytest.raises(ClassifierUnavailable):
        parse_classification(raw)


# ---------------------------------------------------------------------------
# DocumentClassifier
# ---------------------------------------------------------------------------


def test_supports_media_types():
    classifier = DocumentClassifier(classify_pdf=False)
    assert classifier.supports("image/png") is True
    assert classifier.supports("application/pdf") is False
    assert classifier.supports("text/plain") is False
    assert DocumentClassifier(classify_pdf=True).supports("application/pdf") is True


@pytest.mark.asyncio
@patch("intake_api.services.classifier.get_completion", new_callable=AsyncMock)
async def test_classify_sends_image_to_vision_tier(mock_completion):
    mock_completion.return_value = _REPLY
    classifier = DocumentClassifier(tier="vision")

    result = await classifier.classify(b"\x89PNG", "image/png", "PAN Card")

    assert result.detected_type == "pan_card"
    messages = mock_completion.call_args.args[0]
    assert mock_completion.call_args.kwargs["tier"] == "vision"
    assert "PAN Card" in str(messages)
    assert "data:image/png;base64," in str(messages)


@pytest.mark.asyncio
@pytest.mark.parametrize("mime_type", ["application/pdf", "Application/PDF"])
@patch("intake_api.services.classifier.render_pdf_first_page", return_value=b"png-bytes")
@patch("intake_api.services.classifier.get_completion", new_callable=AsyncMock)
async def test_classify_renders_pdf_first(mock_completion, mock_render, mime_type):
    mock_completion.return_value = _REPLY

    await DocumentClassifier().classify(b"%PDF-1.7", mime_type, "PAN Card")

    mock_render.assert_called_once_with(b"%PDF-1.7")
    assert "data:image/png;base64," in str(mock_completion.call_args.args[0])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,expected",
    [
        (_status_error(openai.RateLimitError, 429), ClassifierRateLimited),
        (_status_error(openai.APIStatusError, 402), ClassifierQuotaExceeded),
        (_status_error(openai.InternalServerError, 500), ClassifierUnavailable),
        (openai.APIConnectionError(request=_REQUEST), ClassifierUnavailable),
        (FileNotFoundError("models.yaml"), ClassifierUnavailable),
    ],
)
async def test_classify_maps_failures(error, expected):
    with patch(
        "intake_api.services.classifier.get_completion",
        new_callable=AsyncMock,
        side_effect=error,
    ):
        with pytest.raises(expected) as exc_info:
            await DocumentClassifier().classify(b"\xff\xd8", "image/jpeg", "PAN Card")
    assert exc_info.value.user_message


def test_failure_messages_are_distinct():
    assert ClassifierRateLimited.user_message != ClassifierQuotaExceeded.user_message
    assert ClassifierUnavailable.user_message == (
        "AI validation unavailable - marked for manual review"
    )
