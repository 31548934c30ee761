"""
Input validation functions for attendline.

All validation functions follow the pattern:
1. Accept raw user input (chat text, postback values)
2. Normalize/clean the input
3. Validate against business rules
4. Return cleaned value or raise ValidationError
"""

import re
import unicodedata
from datetime import date


class ValidationError(Exception):
    """Raised when user input fails validation."""

    pass


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_text(text: str | None) -> str:
    """
    Normalize chat input for comparisons.

    NFKC folds full-width digits, letters and hyphens typed on Japanese
    keyboards ("２０２６－０２－１４") into their ASCII forms; whitespace is
    collapsed and the result is stripped.

    Args:
        text: Raw text

    Returns:
        Normalized text (empty string for None)
    """
    if text is None:
        return ""
    cleaned = unicodedata.normalize("NFKC", text)
    return re.sub(r"\s+", " ", cleaned).strip()


def labels_match(text: str | None, label: str) -> bool:
    """Case-insensitive comparison of user text against a button label."""
    return normalize_text(text).casefold() == normalize_text(label).casefold()


# ============================================================================
# Name Validation
# ============================================================================


def validate_person_name(name: str | None, *, field: str = "Name") -> str:
    """
    Validate and normalize a guardian or child name.

    Names are kept as typed (no case changes; most are Japanese).

    Args:
        name: Raw name input
        field: Field name used in error messages

    Returns:
        Normalized name

    Raises:
        ValidationError: If name is blank or too long
    """
    cleaned = normalize_text(name)

    if cleaned == "":
        raise ValidationError(f"{field} cannot be empty")

    if len(cleaned) > 100:
        raise ValidationError(f"{field} cannot exceed 100 characters")

    return cleaned


def validate_grade(grade: str | None) -> str:
    """
    Validate a school grade entered free-form ("小3", "中1", "年長").

    Raises:
        ValidationError: If grade is blank or too long
    """
    cleaned = normalize_text(grade)

    if cleaned == "":
        raise ValidationError("Grade cannot be empty")

    if len(cleaned) > 20:
        raise ValidationError("Grade cannot exceed 20 characters")

    return cleaned


# ============================================================================
# Date Validation
# ============================================================================


def parse_iso_date(text: str | None) -> date:
    """
    Parse a YYYY-MM-DD date typed by a user or sent by the date picker.

    Args:
        text: Raw date text

    Returns:
        Parsed date

    Raises:
        ValidationError: If the text is not YYYY-MM-DD or not a real calendar date
    """
    cleaned = normalize_text(text)

    if not ISO_DATE_PATTERN.match(cleaned):
        raise ValidationError("Date must be in YYYY-MM-DD format")

    try:
        return date.fromisoformat(cleaned)
    except ValueError as e:
        raise ValidationError(f"Invalid calendar date: {cleaned}") from e
