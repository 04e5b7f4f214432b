"""
Input validation and sanitizing for request payloads.
"""

from __future__ import annotations

import re
from typing import Any

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128
MIN_NAME_LENGTH = 2


def validate_email(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(EMAIL_PATTERN.match(value))


def validate_password(value: Any) -> bool:
    """Length-only check; no character classes are required."""
    if not isinstance(value, str) or not value:
        return False
    return MIN_PASSWORD_LENGTH <= len(value) <= MAX_PASSWORD_LENGTH


def sanitize_input(value: Any) -> Any:
    """
    Trim whitespace and drop angle brackets from strings.

    This is bracket stripping, not HTML escaping. Non-string values are
    returned untouched.
    """
    if not isinstance(value, str):
        return value
    return value.strip().replace("<", "").replace(">", "")


def validate_name(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return len(sanitize_input(value)) >= MIN_NAME_LENGTH
