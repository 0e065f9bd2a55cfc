"""
Ember Ascent - Arithmetic Checks
Re-computes the verification expression exactly and compares it with
both the expected result and the displayed answer.
"""
import ast
import operator
import re
from fractions import Fraction

from ember_ascent.services.validation.types import CheckResult, MathQuestion

NUMERIC_TOLERANCE = 0.0001
MAX_EXPONENT = 64

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")


def evaluate_expression(expression: str) -> Fraction:
    """
    Evaluate an arithmetic expression over exact fractions.

    Only numbers, + - * / // % **, unary signs and ``Fraction(a, b)`` are
    allowed; anything else raises ``ValueError``.
    """
    source = expression.replace("×", "*").replace("÷", "/").replace("^", "**").strip()
    tree = ast.parse(source, mode="eval")
    return _evaluate(tree.body)


def _evaluate(node: ast.AST) -> Fraction:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ValueError(f"Unsupported constant: {node.value!r}")
        # str() keeps 0.1 as 1/10 instead of the binary float
        return Fraction(str(node.value))

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        left, right = _evaluate(node.left), _evaluate(node.right)
        if isinstance(node.op, ast.Pow):
            if right.denominator != 1 or abs(right) > MAX_EXPONENT:
                raise ValueError("Exponent must be a small whole number")
            right = int(right)
        return Fraction(op(left, right))

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        return op(_evaluate(node.operand))

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id != "Fraction" or node.keywords:
            raise ValueError("Only Fraction(numerator, denominator) calls are allowed")
        if not 1 <= len(node.args) <= 2:
            raise ValueError("Fraction takes one or two arguments")
        args = [_evaluate(arg) for arg in node.args]
        return Fraction(*args)

    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def _leading_float(value: str) -> float | None:
    match = _NUMBER.match(value)
    return float(match.group(0)) if match else None


def parse_expected_result(result: str, result_format: str) -> Fraction | float | None:
    """Parse ``Fraction(8, 7)``, ``8/7`` or a plain number."""
    if result_format == "fraction":
        match = re.search(r"Fraction\((-?\d+),\s*(\d+)\)", result)
        if match:
            return Fraction(int(match.group(1)), int(match.group(2)))
        match = re.search(r"(-?\d+)/(\d+)", result)
        if match:
            return Fraction(int(match.group(1)), int(match.group(2)))
    return _leading_float(result)


def parse_display_answer(answer: str, answer_format: str) -> Fraction | float | None:
    if answer_format in ("mixed_number", "mixed_number_unsimplified"):
        match = re.search(r"(-?\d+)\s+(\d+)/(\d+)", answer)
        if match:
            whole, numerator, denominator = (int(g) for g in match.groups())
            return Fraction(whole * denominator + numerator, denominator)
    elif answer_format == "fraction":
        match = re.search(r"(-?\d+)/(\d+)", answer)
        if match:
            return Fraction(int(match.group(1)), int(match.group(2)))
    elif answer_format == "percentage":
        return _leading_float(answer.replace("%", ""))
    return _leading_float(answer)


def compare_results(a: Fraction | float | None, b: Fraction | float | None) -> bool:
    if a is None or b is None:
        return False
    if isinstance(a, Fraction) and isinstance(b, Fraction):
        return a == b
    return abs(float(a) - float(b)) < NUMERIC_TOLERANCE


def validate_arithmetic(question: MathQuestion) -> list[CheckResult]:
    verification = question.computational_verification
    if verification is None or not verification.expression:
        return [CheckResult(
            check_name="has_verification_expression",
            passed=False,
            details="No computational_verification.expression provided",
            severity="error",
        )]

    results: list[CheckResult] = []
    expression = verification.expression
    try:
        computed = evaluate_expression(expression)
        expected = parse_expected_result(verification.expected_result, verification.result_format)

        matches = compare_results(computed, expected)
        results.append(CheckResult(
            check_name="computation_verification",
            passed=matches,
            details=(
                f'Expression "{expression}" = {computed}'
                if matches
                else f'Expression "{expression}" = {computed}, but generator expected {expected}'
            ),
            severity="critical",
        ))

        displayed = parse_display_answer(question.computed_answer, question.answer_format)
        display_matches = compare_results(computed, displayed)
        results.append(CheckResult(
            check_name="display_answer_verification",
            passed=display_matches,
            details=(
                f'Computed result matches displayed answer "{question.computed_answer}"'
                if display_matches
                else f'Computed {computed} but displayed answer is "{question.computed_answer}"'
            ),
            severity="critical",
        ))
    except (SyntaxError, ValueError, TypeError, ZeroDivisionError, OverflowError) as e:
        results.append(CheckResult(
            check_name="computation_execution",
            passed=False,
            details=f"Failed to evaluate expression: {e}",
            severity="critical",
        ))

    return results
