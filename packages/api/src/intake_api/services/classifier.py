# This project was developed with assistance from AI tools.
"""Vision classification of uploaded documents.

Single-shot call to an OpenAI-compatible vision model. PDFs are rendered
to a PNG of their first page (pymupdf) before classification. Failures
are raised as ``ClassifierError`` subclasses whose ``user_message`` is
safe to show; operator detail goes to the log.
"""

import base64
import json
import logging
import re

import fitz  # pymupdf
import openai
from intake_db.enums import QualityAssessment, RedFlag
from pydantic import ValidationError

from ..core.config import Settings
from ..inference.client import get_completion
from ..schemas.classification import ClassificationResult
from .classification_prompts import build_classification_messages

logger = logging.getLogger(__name__)

# Matches ```json ... ``` or ``` ... ``` fences that LLMs often wrap around JSON.
_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

PDF_CONTENT_TYPE = "application/pdf"


class ClassifierError(Exception):
    """Classification could not produce a result."""

    user_message = "AI validation unavailable - marked for manual review"


class ClassifierRateLimited(ClassifierError):
    user_message = "AI service rate limited. Please try again in a moment."


class ClassifierQuotaExceeded(ClassifierError):
    user_message = "AI service quota exceeded."


class ClassifierUnavailable(ClassifierError):
    pass


def _strip_json_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON output."""
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    return m.group(1).strip() if m else stripped


def parse_classification(raw: str) -> ClassificationResult:
    """Parse a model reply into a ClassificationResult.

    Tolerates code fences and prose around the JSON object. Unknown red
    flags are dropped; a missing or unknown quality counts as acceptable.
    Raises ClassifierUnavailable when no usable object can be recovered.
    """
    text = _strip_json_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        m = _OBJECT_RE.search(text)
        if m is None:
            raise ClassifierUnavailable("Classifier reply contained no JSON object") from None
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as exc:
            raise ClassifierUnavailable("Classifier reply was not valid JSON") from exc

    if not isinstance(data, dict):
        raise ClassifierUnavailable("Classifier reply was not a JSON object")

    known_flags = {flag.value for flag in RedFlag}
    raw_flags = data.get("red_flags") or []
    if not isinstance(raw_flags, list):
        raw_flags = [raw_flags]
    flags = []
    for flag in raw_flags:
        value = str(flag).strip().lower()
        if value in known_flags:
            flags.append(RedFlag(value))
        else:
            logger.debug("Ignoring unknown red flag from classifier: %r", flag)

    quality = str(data.get("quality") or "").strip().lower()
    if quality not in {q.value for q in QualityAssessment}:
        quality = QualityAssessment.ACCEPTABLE.value

    is_document = data.get("is_document", data.get("is_relevant", True))
    if isinstance(is_document, str):
        is_document = is_document.strip().lower() == "true"

    try:
        confidence = int(round(float(data.get("confidence", 0))))
    except (TypeError, ValueError):
        confidence = 0

    try:
        return ClassificationResult(
            detected_type=str(data.get("detected_type") or "unknown").strip(),
            is_document=bool(is_document),
            confidence=max(0, min(100, confidence)),
            quality=QualityAssessment(quality),
            red_flags=flags,
            reasoning=data.get("reasoning") or data.get("notes"),
        )
    except ValidationError as exc:
        raise ClassifierUnavailable("Classifier reply failed validation") from exc


def render_pdf_first_page(file_data: bytes) -> bytes:
    """Render page one of a PDF to PNG bytes. Raises ClassifierUnavailable."""
    try:
        pdf = fitz.open(stream=file_data, filetype="pdf")
        try:
            if pdf.page_count == 0:
                raise ClassifierUnavailable("PDF has no pages")
            return pdf[0].get_pixmap().tobytes("png")
        finally:
            pdf.close()
    except ClassifierUnavailable:
        raise
    except Exception as exc:
        logger.exception("Failed to render PDF page for classification")
        raise ClassifierUnavailable("PDF could not be rendered") from exc


class DocumentClassifier:
    """Asks the vision model what an uploaded file is."""

    def __init__(self, tier: str = "vision", classify_pdf: bool = True):
        self._tier = tier
        self._classify_pdf = classify_pdf

    def supports(self, content_type: str | None) -> bool:
        """Whether files of this media type are sent for classification."""
        content_type = (content_type or "").lower()
        if content_type.startswith("image/"):
            return True
        return self._classify_pdf and content_type == PDF_CONTENT_TYPE

    async def classify(
        self,
        file_data: bytes,
        mime_type: str,
        expected_type: str,
    ) -> ClassificationResult:
        """Classify one file against the expected document type name."""
        mime_type = (mime_type or "").lower()
        if mime_type == PDF_CONTENT_TYPE:
            file_data = render_pdf_first_page(file_data)
            mime_type = "image/png"

        b64 = base64.b64encode(file_data).decode("ascii")
        messages = build_classification_messages(expected_type, b64, mime_type)

        try:
            raw = await get_completion(messages, tier=self._tier)
        except openai.RateLimitError as exc:
            logger.warning("Classifier rate limited: %s", exc)
            raise ClassifierRateLimited(str(exc)) from exc
        except openai.APIStatusError as exc:
            if exc.status_code == 402:
                logger.warning("Classifier quota exceeded: %s", exc)
                raise ClassifierQuotaExceeded(str(exc)) from exc
            logger.exception("Classifier returned HTTP %s", exc.status_code)
            raise ClassifierUnavailable(str(exc)) from exc
        except openai.OpenAIError as exc:
            logger.exception("Classifier request failed")
            raise ClassifierUnavailable(str(exc)) from exc
        except (FileNotFoundError, KeyError, ValueError) as exc:
            logger.error("Classifier model config unusable: %s", exc)
            raise ClassifierUnavailable(str(exc)) from exc

        result = parse_classification(raw)
        logger.info(
            "Classified upload as %s (confidence=%d, expected=%s)",
            result.detected_type,
            result.confidence,
            expected_type,
        )
        return result


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_classifier: DocumentClassifier | None = None


def init_classifier(cfg: Settings) -> DocumentClassifier:
    """Initialise the singleton (called once from app lifespan)."""
    global _classifier  # noqa: PLW0603
    _classifier = DocumentClassifier(tier=cfg.CLASSIFIER_MODEL_TIER, classify_pdf=cfg.CLASSIFY_PDF)
    logger.info(
        "DocumentClassifier initialised (tier=%s, classify_pdf=%s)",
        cfg.CLASSIFIER_MODEL_TIER,
        cfg.CLASSIFY_PDF,
    )
    return _classifier


def get_classifier() -> DocumentClassifier:
    """Return the initialised DocumentClassifier singleton."""
    if _classifier is None:
        raise RuntimeError("DocumentClassifier not initialised -- call init_classifier() first")
    return _classifier
