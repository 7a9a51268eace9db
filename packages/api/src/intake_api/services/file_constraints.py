# This project was developed with assistance from AI tools.
"""Local file checks run before any network call.

Pure and total: every input maps to either ``None`` (acceptable) or a
user-facing message. Nothing here touches storage or the classifier.
"""

from collections.abc import Sequence
from typing import Protocol

# Executable and script formats refused regardless of the declared content type.
BLOCKED_EXTENSIONS = frozenset(
    {"exe", "bat", "cmd", "com", "scr", "vbs", "js", "jar", "msi", "ps1", "sh", "dll"}
)

SECURITY_MESSAGE = (
    "This file type is not allowed for security reasons. "
    "Please upload PDF or image files only."
)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class ConstrainedDocumentType(Protocol):
    accepted_formats: Sequence[str]
    max_file_size_pdf: int
    max_file_size_image: int


def file_extension(filename: str) -> str:
    """Lowercased text after the last dot, or '' when there is none."""
    name = filename.strip()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def format_file_size(size: int) -> str:
    """Render a byte count for humans: ``0 Bytes``, ``1.5 KB``, ``5 MB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    value = round(value, 2)
    if value == int(value):
        return f"{int(value)} {_SIZE_UNITS[unit]}"
    return f"{value} {_SIZE_UNITS[unit]}"


def _format_list(formats: Sequence[str]) -> str:
    return ", ".join(fmt.upper() for fmt in formats)


def size_ceiling(extension: str, document_type: ConstrainedDocumentType) -> int:
    """PDF ceiling for ``pdf``, image ceiling for everything else."""
    if extension == "pdf":
        return document_type.max_file_size_pdf
    return document_type.max_file_size_image


def validate_file(
    filename: str,
    size: int,
    content_type: str | None,
    document_type: ConstrainedDocumentType,
) -> str | None:
    """Return a user-facing error message, or None when the file may proceed.

    Order: executable denylist, accepted formats, size ceiling. The declared
    content type never overrides the extension checks.
    """
    extension = file_extension(filename)
    accepted = [fmt.lower() for fmt in document_type.accepted_formats]

    if extension in BLOCKED_EXTENSIONS:
        return SECURITY_MESSAGE

    if not extension or extension not in accepted:
        return f"File type not supported. Please upload: {_format_list(accepted)} files only"

    ceiling = size_ceiling(extension, document_type)
    if size > ceiling:
        kind = "pdf" if extension == "pdf" else "image"
        return (
            f"File is too large. Please choose a {kind} under {format_file_size(ceiling)} "
            f"(your file is {format_file_size(size)})"
        )

    return None
