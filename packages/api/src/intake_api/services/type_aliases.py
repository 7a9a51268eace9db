# This project was developed with assistance from AI tools.
"""Document type label resolution.

The classifier answers with free-form labels ("pan_copy", "Aadhaar Card",
"IELTS scorecard") while uploads are filed against configured document
type names ("PAN Card"). Everything that compares the two goes through
``types_match`` so there is exactly one alias table to maintain.
"""

import re
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# canonical key -> aliases. Keys and aliases are already normalized.
DOCUMENT_TYPE_ALIASES: dict[str, tuple[str, ...]] = {
    # Student KYC
    "pan_card": ("pan_copy", "pan_card_copy", "pancard"),
    "aadhaar": ("aadhaar_copy", "aadhaar_card", "aadhaar_card_copy", "aadhar", "aadhar_card"),
    "passport": ("passport_copy", "passport_document"),
    "photo": ("passport_size_photo", "passport_photo", "passport_size_photograph", "photograph"),
    "mark_sheet": (
        "mark_sheets",
        "marksheet",
        "academic_mark_sheets",
        "mark_sheet_document",
        "transcript",
        "academic_transcript",
    ),
    "degree_certificate": ("degree_certificates", "graduation_certificate", "diploma"),
    "offer_letter": (
        "offer_letter_document",
        "admission_offer",
        "university_offer",
        "condition_letter",
        "conditional_offer",
    ),
    "admission_letter": ("admission_letter_i_20_cas", "i_20", "i20", "cas", "admission_document"),
    "english_test": ("ielts", "toefl", "pte", "duolingo", "english_proficiency_test_result"),
    "visa": ("visa_copy", "visa_document", "visa_stamp"),
    # Co-applicant financial
    "co_applicant_pan": ("co_applicant_pan_card",),
    "co_applicant_aadhaar": ("co_applicant_aadhaar_card",),
    "co_applicant_photo": ("co_applicant_photograph",),
    "bank_statement": (
        "bank_account_statement",
        "indian_bank_account_statement",
        "last_6_months_bank_statement",
        "nri_bank_statement",
    ),
    "salary_slip": ("salary_slips", "latest_salary_slips", "payslip", "pay_slip"),
    "itr": ("itr_documents", "itr_returns", "income_tax_return", "tax_return"),
    # Collateral
    "property_deed": ("property_documents", "property_papers", "sale_deed", "property_sale_deed"),
    "encumbrance_certificate": ("ec", "encumbrance"),
    "property_tax_receipt": ("tax_receipt", "property_tax"),
    "fd_certificate": ("fixed_deposit", "fd", "fixed_deposit_certificate"),
    # Any owner
    "driving_license": ("driving_licence", "dl", "driving_license_copy"),
    "voter_id": ("voter_id_card", "epic_card", "election_id"),
}


class NamedDocumentType(Protocol):
    id: int
    name: str


_T = TypeVar("_T", bound=NamedDocumentType)


def normalize_label(value: str | None) -> str:
    """Lowercase, collapse non-alphanumeric runs to '_', trim '_' from the ends."""
    if not value:
        return ""
    return _NON_ALNUM.sub("_", value.lower()).strip("_")


def alias_union(key: str) -> frozenset[str]:
    """The canonical key together with all of its aliases."""
    return frozenset({key, *DOCUMENT_TYPE_ALIASES.get(key, ())})


def _related(label: str, member: str) -> bool:
    return label in member or member in label


def _in_union(label: str, union: Iterable[str]) -> bool:
    return any(_related(label, member) for member in union)


def types_match(detected: str | None, expected: str | None) -> bool:
    """Decide whether a detected label and an expected type name mean the same document.

    1. Exact match after normalization.
    2. Both labels fall inside the same canonical alias union.
    3. Raw substring containment of the normalized labels, either direction.
    """
    d = normalize_label(detected)
    e = normalize_label(expected)
    if not d or not e:
        return False

    if d == e:
        return True

    for key in DOCUMENT_TYPE_ALIASES:
        union = alias_union(key)
        if _in_union(d, union) and _in_union(e, union):
            return True

    return d in e or e in d


def canonical_key(label: str | None) -> str | None:
    """Canonical key a label resolves to: exact union membership first, then containment."""
    normalized = normalize_label(label)
    if not normalized:
        return None
    for key in DOCUMENT_TYPE_ALIASES:
        if normalized in alias_union(key):
            return key
    for key in DOCUMENT_TYPE_ALIASES:
        if _in_union(normalized, alias_union(key)):
            return key
    return None


def suggest_document_type(detected: str | None, document_types: Sequence[_T]) -> _T | None:
    """Pick the configured document type a classifier label most plausibly refers to."""
    label = normalize_label(detected)
    if not label or label == "unknown":
        return None

    for doc_type in document_types:
        if normalize_label(doc_type.name) == label:
            return doc_type

    key = canonical_key(label)
    if key is not None:
        for doc_type in document_types:
            if canonical_key(doc_type.name) == key:
                return doc_type

    for doc_type in document_types:
        if types_match(label, doc_type.name):
            return doc_type
    return None
