"""
Ember Ascent - Fraction Checks
Mixed number conversion and simplification rules for fraction answers.
"""
import math
import re

from ember_ascent.services.validation.types import CheckResult, MathQuestion

FRACTION_FORMATS = ("fraction", "mixed_number", "mixed_number_unsimplified")

_MIXED = re.compile(r"(-?\d+)\s+(\d+)/(\d+)")
_FRACTION = re.compile(r"(\d+)/(\d+)")


def to_mixed_number(numerator: int, denominator: int) -> tuple[int, int, int]:
    return numerator // denominator, numerator % denominator, denominator


def check_mixed_number_conversion(computed: str, displayed: str) -> CheckResult:
    mixed = _MIXED.search(displayed)
    if not mixed:
        return CheckResult(
            check_name="mixed_number_format",
            passed=False,
            details=f'Cannot parse mixed number format: "{displayed}"',
            severity="error",
        )

    whole, numerator, denominator = (int(g) for g in mixed.groups())
    improper = _FRACTION.search(computed or "")
    if not improper:
        return CheckResult(
            check_name="mixed_number_conversion",
            passed=True,
            details="Could not fully verify conversion, format appears correct",
            severity="warning",
        )

    original_num, original_den = int(improper.group(1)), int(improper.group(2))
    valid = whole * denominator + numerator == original_num and denominator == original_den
    if valid:
        details = f"{computed} correctly converts to {displayed}"
    else:
        expected_whole, expected_num, _ = to_mixed_number(original_num, original_den)
        details = (
            f"Conversion error: {computed} should be "
            f"{expected_whole} {expected_num}/{original_den}, got {displayed}"
        )
    return CheckResult(
        check_name="mixed_number_conversion",
        passed=valid,
        details=details,
        severity="critical",
    )


def check_unsimplified(answer: str) -> CheckResult:
    """Informational only: unsimplified formats never fail."""
    match = _FRACTION.search(answer)
    if not match:
        return CheckResult("simplification_status", True, "No fraction component to check", "warning")

    num, den = int(match.group(1)), int(match.group(2))
    gcd = math.gcd(num, den)
    if gcd > 1:
        details = f"Fraction {num}/{den} is unsimplified (GCD={gcd}), as expected for this format"
    else:
        details = (
            f"Fraction {num}/{den} is already in simplest form "
            f"(might not be intentional for unsimplified format)"
        )
    return CheckResult("simplification_status", True, details, "warning")


def check_simplified(answer: str) -> CheckResult:
    match = _FRACTION.search(answer)
    if not match:
        return CheckResult("simplification_status", True, "No fraction to check", "warning")

    num, den = int(match.group(1)), int(match.group(2))
    gcd = math.gcd(num, den)
    if gcd <= 1:
        return CheckResult(
            "simplification_status", True, f"Fraction {num}/{den} is properly simplified", "warning"
        )
    return CheckResult(
        check_name="simplification_status",
        passed=False,
        details=(
            f"Fraction {num}/{den} can be simplified further (GCD={gcd}). "
            f"Should be {num // gcd}/{den // gcd}"
        ),
        severity="error",
    )


def validate_fractions(question: MathQuestion) -> list[CheckResult]:
    answer_format = question.answer_format
    if answer_format not in FRACTION_FORMATS:
        return []

    results = []
    if answer_format.startswith("mixed_number"):
        results.append(check_mixed_number_conversion(
            question.working.get("computed_result", ""),
            question.computed_answer,
        ))

    if answer_format == "mixed_number_unsimplified":
        results.append(check_unsimplified(question.computed_answer))
    else:
        results.append(check_simplified(question.computed_answer))

    return results
