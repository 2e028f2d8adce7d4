"""Built-in answer validators"""

import math
import re

from chatflow.validation.registry import ValidatorRegistry

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS_RE = re.compile(r"\D")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


@ValidatorRegistry.register("email")
def validate_email(value: str) -> bool:
    """
    Validate e-mail format (RFC-light).

    Args:
        value: Address typed by the contact

    Returns:
        True if it looks like an address, False otherwise
    """
    if not isinstance(value, str):
        return False
    return bool(_EMAIL_RE.match(value))


@ValidatorRegistry.register("phone")
def validate_phone(value: str) -> bool:
    """
    Validate phone number: 10 to 15 digits once punctuation is stripped.

    Args:
        value: Phone number, e.g. "(11) 91234-5678"

    Returns:
        True if valid phone number, False otherwise
    """
    if not isinstance(value, str):
        return False
    return 10 <= len(_NON_DIGITS_RE.sub("", value)) <= 15


@ValidatorRegistry.register("number")
def validate_number(value: str) -> bool:
    """Validate plain decimal notation (optional sign and exponent) of a finite number."""
    text = str(value).strip()
    if not _NUMBER_RE.match(text):
        return False
    return math.isfinite(float(text))


@ValidatorRegistry.register("text")
def validate_text(value: str) -> bool:
    """Free text: anything goes."""
    return True
