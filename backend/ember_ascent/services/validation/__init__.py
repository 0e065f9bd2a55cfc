"""
Ember Ascent - Question Validation Pipeline
"""
from ember_ascent.services.validation.pipeline import (
    generate_validation_report,
    validate_batch,
    validate_question,
)
from ember_ascent.services.validation.types import (
    BatchValidationResult,
    CheckResult,
    MathQuestion,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)

__all__ = [
    "BatchValidationResult",
    "CheckResult",
    "MathQuestion",
    "ValidationIssue",
    "ValidationResult",
    "ValidationWarning",
    "generate_validation_report",
    "validate_batch",
    "validate_question",
]
