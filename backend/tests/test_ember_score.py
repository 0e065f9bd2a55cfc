"""
Ember Ascent - Ember Score Tests
"""
import uuid

import pytest
from httpx import AsyncClient

from ember_ascent.models.question import ErrorReport
from ember_ascent.services.ember_score import (
    calculate_ember_score,
    community_score,
    curriculum_score,
)


@pytest.mark.parametrize("reference,expected", [
    ("KS2 Maths - Fractions", 40),
    ("Y5 Number", 40),
    ("year 6 ratio", 40),
    ("Custom reference", 20),
    ("  ", 0),
    (None, 0),
])
def test_curriculum_score(reference, expected):
    assert curriculum_score(reference) == expected


def test_community_score_penalises_reports_and_caps():
    assert community_score(0, 0, 0) == 16
    assert community_score(20, 0, 0) == 20
    assert community_score(0, 0, 3) == 10
    assert community_score(0, 0, 10) == 0
    # Usage counts only while no reports are pending
    assert community_score(0, 1000, 0) == 17
    assert community_score(0, 1000, 1) == 14


def test_reviewed_question_is_verified():
    score, breakdown = calculate_ember_score("KS2 Fractions", "reviewed", helpful_count=8)
    assert breakdown.expert_verification == 40
    assert breakdown.community_feedback == 20
    assert score == 100


def test_ai_only_question_is_draft():
    score, _ = calculate_ember_score(None, "ai_only")
    assert score == 26


@pytest.mark.asyncio
async def test_ember_score_endpoint(client: AsyncClient, factory, db_session):
    parent = await factory.user()
    question = await factory.question(
        curriculum_reference="KS2 Fractions",
        review_status="spot_checked",
        helpful_count=2,
    )
    db_session.add(ErrorReport(question_id=question.id, report_type="wrong_answer"))
    db_session.add(ErrorReport(question_id=question.id, report_type="typo", status="fixed"))
    await db_session.commit()

    response = await client.get(
        f"/api/questions/{question.id}/ember-score", headers=factory.headers(parent)
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["breakdown"] == {
        "curriculumAlignment": 40,
        "expertVerification": 25,
        "communityFeedback": 15,
    }
    assert data["score"] == 80
    assert data["tier"] == "confident"
    assert data["pendingReports"] == 1


@pytest.mark.asyncio
async def test_ember_score_unknown_question(client: AsyncClient, factory):
    parent = await factory.user()
    response = await client.get(
        f"/api/questions/{uuid.uuid4()}/ember-score", headers=factory.headers(parent)
    )
    assert response.status_code == 404
