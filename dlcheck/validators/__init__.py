"""Protocol validators for captured analytics hits."""

from .ga4 import (
    GA4_LIMITS,
    GA4Validator,
    Severity,
    ValidationResult,
    Violation,
    validate_hit
)

__all__ = [
    "GA4_LIMITS",
    "GA4Validator",
    "Severity",
    "ValidationResult",
    "Violation",
    "validate_hit",
]
