"""
Ember Ascent - Validation Pipeline
Runs every check layer over a generated question, aggregates failures,
and proposes auto-corrections for fixable ones.
"""
import logging
import re

from ember_ascent.services.validation.arithmetic import validate_arithmetic
from ember_ascent.services.validation.consistency import find_option_for, validate_consistency
from ember_ascent.services.validation.fraction_checks import validate_fractions
from ember_ascent.services.validation.types import (
    BatchValidationResult,
    CheckResult,
    MathQuestion,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)

logger = logging.getLogger(__name__)

FIELD_FOR_CHECK = {
    "answer_exists_in_options": "options",
    "correct_option_matches_computed": "correct_option",
    "suggested_correction": "correct_option",
    "computation_verification": "computational_verification.expression",
    "display_answer_verification": "computed_answer",
    "mixed_number_conversion": "computed_answer",
    "required_fields_present": "multiple",
    "has_verification_expression": "computational_verification",
}

_SHOULD_BE = re.compile(r'should be "([a-e])"')


def _is_auto_fixable(check: CheckResult) -> bool:
    return check.check_name == "suggested_correction" or (
        check.check_name == "correct_option_matches_computed" and "should be" in check.details
    )


def _suggested_fix(check: CheckResult) -> str | None:
    match = _SHOULD_BE.search(check.details)
    return f'Set correct_option to "{match.group(1)}"' if match else None


def _auto_correct(question: MathQuestion, errors: list[ValidationIssue]) -> dict | None:
    corrections: dict = {}
    for error in errors:
        if error.auto_fixable and error.field == "correct_option":
            key = find_option_for(question, question.computed_answer)
            if key:
                corrections["correct_option"] = key
    return corrections or None


def validate_question(question: MathQuestion) -> ValidationResult:
    """Validate one question through the consistency and, for maths, computational layers."""
    checks = validate_consistency(question)
    if question.subject.strip().lower() == "mathematics":
        checks.extend(validate_arithmetic(question))
        checks.extend(validate_fractions(question))

    failures = [c for c in checks if not c.passed and c.severity == "critical"]
    failures += [c for c in checks if not c.passed and c.severity == "error"]

    errors = [
        ValidationIssue(
            code=check.check_name.upper(),
            message=check.details,
            field=FIELD_FOR_CHECK.get(check.check_name, check.check_name),
            auto_fixable=_is_auto_fixable(check),
            suggested_fix=_suggested_fix(check),
        )
        for check in failures
    ]

    corrected = _auto_correct(question, errors) if any(e.auto_fixable for e in errors) else None

    return ValidationResult(
        question_id=question.question_id,
        passed=not failures,
        checks=checks,
        errors=errors,
        warnings=[
            ValidationWarning(code=c.check_name, message=c.details)
            for c in checks
            if not c.passed and c.severity == "warning"
        ],
        corrected_data=corrected,
    )


def validate_batch(questions: list[MathQuestion]) -> BatchValidationResult:
    """
    Validate many questions. A failing question with an auto-correction is
    counted as passed, in its corrected form.
    """
    batch = BatchValidationResult(total=len(questions))
    for question in questions:
        result = validate_question(question)
        batch.results.append(result)

        if result.passed:
            batch.passed.append(question)
        elif result.corrected_data:
            batch.passed.append(question.model_copy(update=result.corrected_data))
            batch.auto_corrected += 1
        else:
            batch.failed.append(result)

    logger.info(
        f"Validated {batch.total} questions: {len(batch.passed)} passed "
        f"({batch.auto_corrected} auto-corrected), {len(batch.failed)} failed"
    )
    return batch


def _percent(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


def generate_validation_report(results: list[ValidationResult]) -> str:
    total = len(results)
    passed = sum(1 for r in results if r.passed)
    failed = total - passed
    auto_corrected = sum(1 for r in results if r.corrected_data)

    lines = [
        "Validation Report",
        "================",
        f"Total Questions: {total}",
        f"Passed: {passed} ({_percent(passed, total)}%)",
        f"Failed: {failed} ({_percent(failed, total)}%)",
        f"Auto-Corrected: {auto_corrected}",
        "",
        "Failed Questions:",
    ]

    for result in results:
        if result.passed:
            continue
        lines.append("")
        lines.append(f"Question ID: {result.question_id}")
        lines.append("Errors:")
        for error in result.errors:
            lines.append(f"  - [{error.code}] {error.message}")
            if error.suggested_fix:
                lines.append(f"    Fix: {error.suggested_fix}")

    return "\n".join(lines)
