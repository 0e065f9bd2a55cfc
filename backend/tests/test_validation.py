"""
Ember Ascent - Question Validation Tests
"""
from fractions import Fraction

import pytest
from httpx import AsyncClient

from ember_ascent.services.validation import (
    MathQuestion,
    generate_validation_report,
    validate_batch,
    validate_question,
)
from ember_ascent.services.validation.arithmetic import evaluate_expression
from ember_ascent.services.validation.consistency import normalize_answer


def make_question(**overrides) -> dict:
    question = {
        "question_id": "frac-001",
        "subject": "Mathematics",
        "topic": "Fractions",
        "difficulty": "Standard",
        "year_group": "Year 5",
        "question_text": "What is 2/3 + 1/2?",
        "working": {
            "step_1": "Common denominator is 6",
            "step_2": "4/6 + 3/6 = 7/6",
            "computed_result": "7/6",
        },
        "answer_format": "mixed_number",
        "computed_answer": "1 1/6",
        "options": {"a": "1 1/6", "b": "5/6", "c": "1 1/5", "d": "3/5", "e": "7/12"},
        "correct_option": "a",
        "verification": {
            "computed_answer_matches_option": True,
            "matched_option_value": "1 1/6",
            "verification_status": "VERIFIED",
        },
        "computational_verification": {
            "expression": "Fraction(2, 3) + Fraction(1, 2)",
            "expected_result": "Fraction(7, 6)",
            "result_format": "fraction",
        },
    }
    question.update(overrides)
    return question


def _failed(result) -> set[str]:
    return {c.check_name for c in result.checks if not c.passed}


# ============================================================================
# Pipeline
# ============================================================================

def test_valid_question_passes():
    result = validate_question(MathQuestion(**make_question()))
    assert result.passed
    assert result.errors == []
    assert result.corrected_data is None


def test_wrong_correct_option_is_auto_corrected():
    result = validate_question(MathQuestion(**make_question(correct_option="b")))

    assert not result.passed
    assert {"correct_option_matches_computed", "suggested_correction"} <= _failed(result)
    fixable = [e for e in result.errors if e.auto_fixable]
    assert fixable[0].field == "correct_option"
    assert fixable[0].suggested_fix == 'Set correct_option to "a"'
    assert result.corrected_data == {"correct_option": "a"}


def test_answer_missing_from_options_cannot_be_corrected():
    options = {"a": "5/6", "b": "1 1/5", "c": "3/5", "d": "7/12", "e": "2"}
    result = validate_question(MathQuestion(**make_question(options=options)))
    assert not result.passed
    assert "answer_exists_in_options" in _failed(result)
    assert result.corrected_data is None


def test_expression_disagreeing_with_answer_fails():
    question = make_question(computational_verification={
        "expression": "Fraction(2, 3) + Fraction(1, 3)",
        "expected_result": "Fraction(7, 6)",
        "result_format": "fraction",
    })
    result = validate_question(MathQuestion(**question))
    assert {"computation_verification", "display_answer_verification"} <= _failed(result)


def test_division_by_zero_is_reported_not_raised():
    question = make_question(computational_verification={
        "expression": "1 / 0",
        "expected_result": "0",
        "result_format": "integer",
    })
    result = validate_question(MathQuestion(**question))
    assert "computation_execution" in _failed(result)


def test_bad_mixed_number_conversion():
    question = make_question(working={"computed_result": "7/6"}, computed_answer="1 2/6")
    result = validate_question(MathQuestion(**question))
    assert "mixed_number_conversion" in _failed(result)


def test_unsimplified_fraction_fails_only_for_simplified_formats():
    base = {
        "answer_format": "fraction",
        "computed_answer": "4/6",
        "working": {"computed_result": "4/6"},
        "options": {"a": "4/6", "b": "1/6", "c": "5/6", "d": "3/6", "e": "1"},
        "computational_verification": {
            "expression": "Fraction(1, 6) * 4",
            "expected_result": "Fraction(2, 3)",
            "result_format": "fraction",
        },
    }
    assert "simplification_status" in _failed(validate_question(MathQuestion(**make_question(**base))))

    unsimplified = {**base, "answer_format": "mixed_number_unsimplified", "computed_answer": "0 4/6"}
    result = validate_question(MathQuestion(**make_question(**unsimplified)))
    assert "simplification_status" not in _failed(result)


def test_self_reported_mismatch_is_an_error():
    question = make_question(verification={"verification_status": "MISMATCH"})
    result = validate_question(MathQuestion(**question))
    assert not result.passed
    assert "self_verification_status" in _failed(result)


def test_non_maths_subject_skips_computation():
    question = make_question(
        subject="English",
        answer_format="integer",
        computed_answer="joyful",
        options={"a": "joyful", "b": "sad", "c": "angry", "d": "tired", "e": "calm"},
        computational_verification=None,
    )
    result = validate_question(MathQuestion(**question))
    assert result.passed
    assert "has_verification_expression" not in {c.check_name for c in result.checks}


def test_duplicate_options_detected():
    options = {"a": "1 1/6", "b": "2.50", "c": "2.5", "d": "3/5", "e": "7/12"}
    result = validate_question(MathQuestion(**make_question(options=options)))
    assert "no_duplicate_options" in _failed(result)


def test_evaluate_expression_is_exact_and_restricted():
    assert evaluate_expression("0.1 + 0.2") == Fraction(3, 10)
    assert evaluate_expression("3 × 4 ÷ 6") == 2
    with pytest.raises(ValueError):
        evaluate_expression("__import__('os').system('true')")


def test_normalize_answer():
    assert normalize_answer("  2.50 ") == "2.5"
    assert normalize_answer("3.0") == "3"
    assert normalize_answer("1  1/6") == "1 1/6"


def test_batch_counts_corrected_as_passed():
    questions = [
        MathQuestion(**make_question(question_id="ok")),
        MathQuestion(**make_question(question_id="fixable", correct_option="c")),
        MathQuestion(**make_question(question_id="broken", verification={"verification_status": "MISMATCH"})),
    ]
    batch = validate_batch(questions)

    assert batch.total == 3
    assert [q.question_id for q in batch.passed] == ["ok", "fixable"]
    assert batch.passed[1].correct_option == "a"
    assert batch.auto_corrected == 1
    assert [r.question_id for r in batch.failed] == ["broken"]


def test_report_lists_failed_questions():
    results = [
        validate_question(MathQuestion(**make_question(question_id="ok"))),
        validate_question(MathQuestion(**make_question(question_id="bad", correct_option="b"))),
    ]
    report = generate_validation_report(results)
    assert "Total Questions: 2" in report
    assert "Passed: 1 (50%)" in report
    assert "Question ID: bad" in report
    assert 'Fix: Set correct_option to "a"' in report


# ============================================================================
# API
# ============================================================================

@pytest.mark.asyncio
async def test_validate_requires_admin(client: AsyncClient, factory):
    parent = await factory.user()
    response = await client.post(
        "/api/validate",
        json={"question": make_question()},
        headers=factory.headers(parent),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_validate_single_question(client: AsyncClient, factory):
    admin = await factory.admin()
    response = await client.post(
        "/api/validate",
        json={"question": make_question(correct_option="b")},
        headers=factory.headers(admin),
    )
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["question_id"] == "frac-001"
    assert result["passed"] is False
    assert result["corrected_data"] == {"correct_option": "a"}


@pytest.mark.asyncio
async def test_validate_batch(client: AsyncClient, factory):
    admin = await factory.admin(role="super_admin")
    response = await client.post(
        "/api/validate",
        json={"questions": [
            make_question(question_id="q1"),
            make_question(question_id="q2", correct_option="d"),
            make_question(question_id="q3", options={"a": "1", "b": "2", "c": "3", "d": "4", "e": "5"}),
        ]},
        headers=factory.headers(admin),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["passed"] == 2
    assert body["failed"] == 1
    assert body["auto_corrected"] == 1
    assert body["failed_details"][0]["question_id"] == "q3"
    assert "Passed: 2 (67%)" in body["report"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {},
    {"question": make_question(), "questions": [make_question()]},
    {"questions": []},
    {"question": {**make_question(), "unexpected": True}},
])
async def test_validate_rejects_bad_envelopes(client: AsyncClient, factory, payload):
    admin = await factory.admin()
    response = await client.post("/api/validate", json=payload, headers=factory.headers(admin))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_validate_rejects_oversized_batch(client: AsyncClient, factory):
    admin = await factory.admin()
    questions = [make_question(question_id=f"q{i}") for i in range(101)]
    response = await client.post(
        "/api/validate", json={"questions": questions}, headers=factory.headers(admin)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_validation_history_and_stats(client: AsyncClient, factory):
    admin = await factory.admin()
    headers = factory.headers(admin)
    await client.post("/api/validate", json={"question": make_question()}, headers=headers)
    await client.post(
        "/api/validate", json={"question": make_question(correct_option="b")}, headers=headers
    )
    await client.post(
        "/api/validate", json={"question": make_question(question_id="other")}, headers=headers
    )

    history = await client.get("/api/validate", params={"questionId": "frac-001"}, headers=headers)
    assert history.status_code == 200
    records = history.json()["data"]
    assert len(records) == 2
    assert {r["passed"] for r in records} == {True, False}
    assert all(r["validatedBy"] == str(admin.id) for r in records)

    stats = await client.get("/api/validate", headers=headers)
    assert stats.json()["data"] == {"total": 3, "passed": 2, "failed": 1, "passRate": 66.7}
