"""
Ember Ascent - Score Tiering Tests
"""
import pytest

from ember_ascent.services.tiering import (
    MASTERY_ORDER,
    NO_DATA,
    READINESS_ORDER,
    RISK_ORDER,
    confidence_for,
    fatigue_level,
    mastery_level,
    mastery_tier,
    priority_for_accuracy,
    readiness_tier,
    rush_factor_level,
    stagnant_topics_level,
    trend_direction,
    trust_tier,
)


@pytest.mark.parametrize("accuracy,expected", [
    (100, "mastered"),
    (85, "mastered"),
    (84.9, "proficient"),
    (75, "proficient"),
    (74.9, "developing"),
    (65, "developing"),
    (64.9, "needs_practice"),
    (0, "needs_practice"),
])
def test_mastery_boundaries_are_inclusive(accuracy, expected):
    assert mastery_level(accuracy, total=10) == expected


def test_mastery_and_readiness_are_monotonic():
    mastery = [MASTERY_ORDER.index(mastery_level(v / 2, total=10)) for v in range(0, 201)]
    readiness = [READINESS_ORDER.index(readiness_tier(v, total=10).level) for v in range(0, 101)]
    assert mastery == sorted(mastery)
    assert readiness == sorted(readiness)


def test_risk_levels_defined_for_every_input():
    levels = [rush_factor_level(v / 2).level for v in range(1, 201)]
    assert all(level in RISK_ORDER for level in levels)
    assert [RISK_ORDER.index(l) for l in levels] == sorted(RISK_ORDER.index(l) for l in levels)
    counts = [RISK_ORDER.index(stagnant_topics_level(n).level) for n in range(0, 12)]
    assert counts == sorted(counts)


def test_mastery_without_attempts_is_no_data():
    assert mastery_level(0, total=0) == NO_DATA
    assert mastery_level(None) == NO_DATA
    assert mastery_tier(None).label == "No data"


@pytest.mark.parametrize("score,expected", [
    (85, "excellent"),
    (70, "good"),
    (69, "developing"),
    (55, "developing"),
    (54, "needs_focus"),
])
def test_readiness_boundaries(score, expected):
    assert readiness_tier(score, total=40).level == expected


def test_readiness_without_attempts_is_no_data():
    assert readiness_tier(0, total=0).level == NO_DATA


@pytest.mark.parametrize("score,expected", [
    (95, "verified"),
    (90, "verified"),
    (89, "confident"),
    (75, "confident"),
    (74, "draft"),
])
def test_trust_boundaries(score, expected):
    assert trust_tier(score).level == expected


@pytest.mark.parametrize("value,expected", [
    (0, NO_DATA),
    (5, "healthy"),
    (10, "warning"),
    (20, "warning"),
    (20.5, "critical"),
])
def test_rush_and_fatigue_share_bands(value, expected):
    assert rush_factor_level(value).level == expected
    assert fatigue_level(value).level == expected


@pytest.mark.parametrize("count,expected", [
    (0, "healthy"),
    (2, "warning"),
    (3, "critical"),
    (5, "critical"),
    (6, "severe"),
])
def test_stagnant_topic_levels(count, expected):
    assert stagnant_topics_level(count).level == expected


def test_priority_for_accuracy():
    assert priority_for_accuracy(49.9) == "high"
    assert priority_for_accuracy(50) == "medium"
    assert priority_for_accuracy(65) == "low"


def test_trend_uses_relative_threshold():
    assert trend_direction(106, 100) == "up"
    assert trend_direction(104, 100) == "stable"
    assert trend_direction(94, 100) == "down"


def test_confidence_levels():
    assert confidence_for(10)[:2] == ("low", 20)
    assert confidence_for(30)[:2] == ("medium", 70)
    assert confidence_for(150) == ("high", 0, "High confidence based on extensive practice data.")
