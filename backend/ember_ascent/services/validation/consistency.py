"""
Ember Ascent - Consistency Checks
Cross-checks the generator's answer, options and correct option against each other.
"""
import re

from ember_ascent.services.validation.types import CheckResult, MathQuestion

REQUIRED_OPTION_COUNT = 5


def normalize_answer(answer: str | None) -> str:
    """Lowercase, collapse whitespace and drop trailing decimal zeros."""
    value = re.sub(r"\s+", " ", (answer or "").lower()).strip()
    value = re.sub(r"(\.\d*?)0+$", r"\1", value)
    return re.sub(r"\.$", "", value)


def find_option_for(question: MathQuestion, answer: str) -> str | None:
    """Key of the first option equal to ``answer`` after normalisation."""
    target = normalize_answer(answer)
    for key, value in question.options.items():
        if normalize_answer(value) == target:
            return key
    return None


def _duplicates(values: list[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for value in values:
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)
    return duplicates


def validate_consistency(question: MathQuestion) -> list[CheckResult]:
    results: list[CheckResult] = []
    option_values = list(question.options.values())
    computed = question.computed_answer

    matching_key = find_option_for(question, computed)
    answer_in_options = matching_key is not None
    results.append(CheckResult(
        check_name="answer_exists_in_options",
        passed=answer_in_options,
        details=(
            f'Computed answer "{computed}" found in options'
            if answer_in_options
            else f'Computed answer "{computed}" NOT found in options: [{", ".join(option_values)}]'
        ),
        severity="critical",
    ))

    selected = question.options.get(question.correct_option)
    option_matches = selected is not None and normalize_answer(selected) == normalize_answer(computed)
    results.append(CheckResult(
        check_name="correct_option_matches_computed",
        passed=option_matches,
        details=(
            f'Option {question.correct_option} ("{selected}") matches computed answer'
            if option_matches
            else f'MISMATCH: Option {question.correct_option} is "{selected}" '
                 f'but computed answer is "{computed}"'
        ),
        severity="critical",
    ))

    if answer_in_options and not option_matches:
        results.append(CheckResult(
            check_name="suggested_correction",
            passed=False,
            details=f'correct_option should be "{matching_key}" not "{question.correct_option}"',
            severity="error",
        ))

    status = question.verification.verification_status
    self_verified = status == "VERIFIED"
    results.append(CheckResult(
        check_name="self_verification_status",
        passed=self_verified,
        details="Generator self-verification passed" if self_verified else f"Generator self-reported: {status}",
        severity="warning" if self_verified else "error",
    ))

    normalized = [normalize_answer(v) for v in option_values]
    duplicates = _duplicates(normalized)
    results.append(CheckResult(
        check_name="no_duplicate_options",
        passed=not duplicates,
        details="All options are unique" if not duplicates else f"Duplicate options detected: {', '.join(duplicates)}",
        severity="error",
    ))

    has_required = bool(
        question.question_id
        and question.subject
        and question.topic
        and question.question_text
        and question.computed_answer
        and question.correct_option
        and len(question.options) == REQUIRED_OPTION_COUNT
    )
    results.append(CheckResult(
        check_name="required_fields_present",
        passed=has_required,
        details="All required fields present" if has_required else "Missing required fields",
        severity="critical",
    ))

    return results
