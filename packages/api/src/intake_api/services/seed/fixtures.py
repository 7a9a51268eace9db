# This project was developed with assistance from AI tools.
"""Reference document types seeded into ``document_types``.

Names are what uploads are filed against and what the classifier's
labels are matched to, so each resolves through the alias table.
"""

from intake_db.enums import DocumentCategory

MB = 1024 * 1024

_STANDARD = {
    "accepted_formats": ["pdf", "jpg", "jpeg", "png"],
    "max_file_size_pdf": 10 * MB,
    "max_file_size_image": 5 * MB,
}
_PHOTO = {
    "accepted_formats": ["jpg", "jpeg", "png"],
    "max_file_size_pdf": 2 * MB,
    "max_file_size_image": 2 * MB,
}
_STATEMENT = {
    "accepted_formats": ["pdf"],
    "max_file_size_pdf": 20 * MB,
    "max_file_size_image": 5 * MB,
}


def _doc(name: str, category: DocumentCategory, required: bool, description: str, limits: dict) -> dict:
    return {
        "name": name,
        "category": category,
        "required": required,
        "description": description,
        **limits,
    }


DOCUMENT_TYPES: list[dict] = [
    # Student KYC
    _doc("PAN Card", DocumentCategory.STUDENT, True, "Student PAN card, both sides legible", _STANDARD),
    _doc("Aadhaar Card", DocumentCategory.STUDENT, True, "Front and back of the Aadhaar card", _STANDARD),
    _doc("Passport", DocumentCategory.STUDENT, True, "First and last page of the passport", _STANDARD),
    _doc("Photo", DocumentCategory.STUDENT, True, "Recent passport-size photograph", _PHOTO),
    _doc("Mark Sheet", DocumentCategory.STUDENT, True, "10th, 12th and graduation mark sheets", _STANDARD),
    _doc("Degree Certificate", DocumentCategory.STUDENT, False, "Graduation or diploma certificate", _STANDARD),
    _doc("Offer Letter", DocumentCategory.STUDENT, True, "University offer or conditional offer", _STANDARD),
    _doc("Admission Letter", DocumentCategory.STUDENT, False, "I-20, CAS or final admission letter", _STANDARD),
    _doc("English Test", DocumentCategory.STUDENT, False, "IELTS / TOEFL / PTE / Duolingo score report", _STANDARD),
    _doc("Visa", DocumentCategory.STUDENT, False, "Student visa copy", _STANDARD),
    # Financial co-applicant
    _doc("Co-Applicant PAN", DocumentCategory.FINANCIAL_CO_APPLICANT, True, "Co-applicant PAN card", _STANDARD),
    _doc("Co-Applicant Aadhaar", DocumentCategory.FINANCIAL_CO_APPLICANT, True, "Co-applicant Aadhaar card", _STANDARD),
    _doc("Co-Applicant Photo", DocumentCategory.FINANCIAL_CO_APPLICANT, False, "Co-applicant photograph", _PHOTO),
    _doc("Bank Statement", DocumentCategory.FINANCIAL_CO_APPLICANT, True, "Last 6 months bank statement", _STATEMENT),
    _doc("Salary Slip", DocumentCategory.FINANCIAL_CO_APPLICANT, True, "Latest 3 months salary slips", _STANDARD),
    _doc("ITR", DocumentCategory.FINANCIAL_CO_APPLICANT, True, "Income tax returns, last 2 years", _STATEMENT),
    # Non-financial co-applicant
    _doc("Driving License", DocumentCategory.NON_FINANCIAL_CO_APPLICANT, False, "Driving licence as address proof", _STANDARD),
    _doc("Voter ID", DocumentCategory.NON_FINANCIAL_CO_APPLICANT, False, "Voter ID (EPIC) card", _STANDARD),
    # Collateral
    _doc("Property Deed", DocumentCategory.COLLATERAL, False, "Registered sale deed", _STATEMENT),
    _doc("Encumbrance Certificate", DocumentCategory.COLLATERAL, False, "EC for the last 13 years", _STATEMENT),
    _doc("Property Tax Receipt", DocumentCategory.COLLATERAL, False, "Latest property tax receipt", _STANDARD),
    _doc("FD Certificate", DocumentCategory.COLLATERAL, False, "Fixed deposit certificate", _STANDARD),
    # NRI
    _doc("NRI Bank Statement", DocumentCategory.NRI_FINANCIAL, False, "NRE/NRO account statement", _STATEMENT),
]
