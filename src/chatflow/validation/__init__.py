"""Validation module for chatflow"""

# Import validators to auto-register them
from chatflow.validation import validators  # noqa: F401
from chatflow.validation.registry import ValidatorRegistry, validate

__all__ = ["ValidatorRegistry", "validate"]
