"""
Ember Ascent - Recommendation Tests
"""
import uuid
from datetime import datetime, timedelta, timezone

from ember_ascent.models.practice import RecommendationInteraction
from ember_ascent.schemas.analytics import TopicAccuracy
from ember_ascent.services.recommendation_interactions import summarize_interactions
from ember_ascent.services.recommendations import build_recommendations, weak_topics

CHILD_ID = uuid.UUID("0c8a4a8e-3d5b-4a44-8a8e-5b0f7f1e2d33")


def _records(*rows):
    return [TopicAccuracy(subject=s, topic=t, accuracy=a) for s, t, a in rows]


def test_only_weak_subjects_get_recommendations():
    records = _records(("mathematics", "Fractions", 42), ("english", "Synonyms", 91))

    result = build_recommendations(records, current_streak=5, overall_accuracy=60)

    assert len(result.recommendations) == 1
    rec = result.recommendations[0]
    assert rec.subject == "mathematics"
    assert rec.topics == ["Fractions"]
    assert rec.priority == "high"
    assert rec.title == "Improve Mathematics"
    assert all(r.subject != "english" for r in result.recommendations)


def test_exactly_seventy_is_not_weak():
    records = _records(("mathematics", "Ratio", 70), ("mathematics", "Area", 69.9))
    assert [r.topic for r in weak_topics(records)] == ["Area"]


def test_focus_areas_are_weakest_first_and_capped():
    records = _records(
        ("mathematics", "Fractions", 60),
        ("mathematics", "Decimals", 40),
        ("mathematics", "Percentages", 55),
        ("english", "Synonyms", 30),
        ("english", "Antonyms", 45),
        ("english", "Spelling", 50),
        ("verbal_reasoning", "Codes", 20),
        ("verbal_reasoning", "Sequences", 65),
    )

    result = build_recommendations(records, current_streak=5)

    assert [r.subject for r in result.recommendations] == [
        "verbal_reasoning", "english", "mathematics",
    ]
    assert len(result.focus_areas) == 5
    assert result.focus_areas[0].topic == "Codes"
    # Two focus areas per subject at most
    assert [f.topic for f in result.focus_areas if f.subject == "english"] == ["Synonyms", "Antonyms"]
    assert result.focus_areas[0].suggested_questions == 65


def test_standing_recommendations():
    result = build_recommendations([], current_streak=0, overall_accuracy=82)
    assert [r.id for r in result.recommendations] == ["rec_consistency", "rec_challenge"]

    result = build_recommendations([], current_streak=3, overall_accuracy=79)
    assert result.recommendations == []


def test_recommendations_are_deterministic():
    records = _records(
        ("mathematics", "Fractions", 42),
        ("english", "Spelling", 42),
        ("mathematics", "Area", 58),
    )
    first = build_recommendations(records, current_streak=1, overall_accuracy=50)
    second = build_recommendations(list(records), current_streak=1, overall_accuracy=50)
    assert first.model_dump() == second.model_dump()
    assert [r.subject for r in first.recommendations][:2] == ["mathematics", "english"]


def _interaction(kind, at, subject="mathematics", topic="Fractions", active=True, reason=None):
    return RecommendationInteraction(
        child_id=CHILD_ID,
        recommendation_type="topic",
        subject=subject,
        topic=topic,
        interaction_type=kind,
        performed_by=CHILD_ID,
        performed_at=at,
        is_active=active,
        dismissed_reason=reason,
    )


def test_interaction_stats_per_subject_and_topic():
    t0 = datetime(2026, 10, 12, 9, tzinfo=timezone.utc)
    interactions = [
        _interaction("started", t0),
        _interaction("completed", t0 + timedelta(hours=1)),
        _interaction("started", t0 + timedelta(days=1)),
        _interaction("started", t0, subject="english"),
    ]

    data = summarize_interactions(interactions)

    assert data.total_interactions == 4
    fractions, english = data.stats
    assert (fractions.subject, fractions.topic) == ("mathematics", "Fractions")
    assert fractions.started_count == 2
    assert fractions.completed_count == 1
    assert fractions.last_attempted == t0 + timedelta(days=1)
    assert english.started_count == 1
    assert english.is_dismissed is False


def test_only_active_dismissals_count():
    t0 = datetime(2026, 10, 12, 9, tzinfo=timezone.utc)
    data = summarize_interactions([
        _interaction("dismissed", t0, active=False, reason="old"),
    ])
    assert data.stats[0].is_dismissed is False
    assert data.stats[0].last_attempted is None

    data = summarize_interactions([
        _interaction("dismissed", t0, reason="first"),
        _interaction("dismissed", t0 + timedelta(days=2), reason="latest"),
    ])
    assert data.stats[0].is_dismissed is True
    assert data.stats[0].dismissed_reason == "latest"
    assert data.stats[0].dismissed_at == t0 + timedelta(days=2)


def test_naive_timestamps_read_as_utc():
    at = datetime(2026, 10, 12, 9)
    data = summarize_interactions([_interaction("completed", at)])
    assert data.stats[0].last_attempted == at.replace(tzinfo=timezone.utc)
