# This project was developed with assistance from AI tools.
"""Domain enum behaviour that other layers rely on."""

import pytest

from intake_db.enums import DocumentCategory, UserRole, VerificationStatus


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("super_admin", UserRole.ADMIN),
        ("admin", UserRole.ADMIN),
        ("student", UserRole.STUDENT),
        ("partner", UserRole.PARTNER),
        ("system", UserRole.SYSTEM),
        ("lender", UserRole.SYSTEM),
        (None, UserRole.SYSTEM),
        ("", UserRole.SYSTEM),
    ],
)
def test_user_role_from_raw(raw, expected):
    assert UserRole.from_raw(raw) == expected


def test_every_category_has_a_label():
    labels = {category.label for category in DocumentCategory}
    assert len(labels) == len(DocumentCategory)
    assert DocumentCategory.STUDENT.label == "Student KYC"
    assert DocumentCategory.COLLATERAL.label == "Property/Collateral"


def test_reviewed_statuses():
    assert VerificationStatus.reviewed() == {VerificationStatus.VERIFIED, VerificationStatus.REJECTED}
    assert VerificationStatus.PENDING not in VerificationStatus.reviewed()
