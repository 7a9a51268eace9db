# This project was developed with assistance from AI tools.
"""Vision classification prompt templates.

Keeps prompt construction separate from the classifier service so prompts
can be reviewed and iterated on independently.
"""

from intake_db.enums import QualityAssessment, RedFlag

from .type_aliases import DOCUMENT_TYPE_ALIASES

DETECTABLE_TYPES: list[str] = [*DOCUMENT_TYPE_ALIASES.keys(), "unknown"]


def build_classification_messages(
    expected_type: str,
    image_b64: str,
    mime_type: str,
) -> list[dict]:
    """Build system + user messages for a single-image classification."""
    system_msg = (
        "You are a document verification assistant for an education loan platform. "
        f"Analyze whether the uploaded image matches: {expected_type}\n\n"
        "Respond ONLY with valid JSON matching this schema:\n"
        "{\n"
        f'  "detected_type": "<one of: {"|".join(DETECTABLE_TYPES)}>",\n'
        '  "is_document": true/false,\n'
        '  "confidence": <integer 0-100>,\n'
        f'  "quality": "<one of: {"|".join(q.value for q in QualityAssessment)}>",\n'
        f'  "red_flags": [<zero or more of: {", ".join(f.value for f in RedFlag)}>],\n'
        '  "reasoning": "<at most 12 words, e.g. \'OK | Clear PAN card\'>"\n'
        "}\n\n"
        "Be strict: selfies and random photos are NOT documents."
    )

    return [
        {"role": "system", "content": system_msg},
        {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": (
                        f"Expected: {expected_type}. What is this document? "
                        "Is it valid? Quality? Any issues?"
                    ),
                },
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
                },
            ],
        },
    ]
