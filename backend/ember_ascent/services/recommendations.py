"""
Ember Ascent - Study Recommendations
Deterministic recommendation synthesis from topic accuracies.
"""
import math
from collections.abc import Iterable

from ember_ascent.models.question import subject_label
from ember_ascent.schemas.analytics import (
    FocusArea,
    Recommendation,
    RecommendationSet,
    TopicAccuracy,
)
from ember_ascent.services.tiering import priority_for_accuracy

WEAK_TOPIC_THRESHOLD = 70
TARGET_ACCURACY = 85
MAX_FOCUS_AREAS = 5
STREAK_NUDGE_BELOW = 3
CHALLENGE_NUDGE_FROM = 80


def weak_topics(records: Iterable[TopicAccuracy]) -> list[TopicAccuracy]:
    """Topics strictly below 70%, weakest first. Ties keep input order."""
    weak = [r for r in records if r.accuracy < WEAK_TOPIC_THRESHOLD]
    return sorted(weak, key=lambda r: r.accuracy)


def build_recommendations(
    records: Iterable[TopicAccuracy],
    current_streak: int = 0,
    overall_accuracy: float = 0,
) -> RecommendationSet:
    """
    Build study recommendations and focus areas.

    One recommendation per subject that has weak topics, in the order of
    each subject's weakest topic, followed by at most two standing
    recommendations (practice streak, challenge questions).
    """
    by_subject: dict[str, list[TopicAccuracy]] = {}
    for record in weak_topics(records):
        by_subject.setdefault(record.subject, []).append(record)

    recommendations: list[Recommendation] = []
    focus_areas: list[FocusArea] = []

    for subject, topics in by_subject.items():
        label = topics[0].subject_label or subject_label(subject)
        avg_accuracy = sum(t.accuracy for t in topics) / len(topics)

        if avg_accuracy < 50:
            description = "These topics need focused practice to build foundation skills."
        else:
            description = (
                "Close to mastery! A few more practice sessions will help solidify understanding."
            )

        recommendations.append(Recommendation(
            id=f"rec_{subject}",
            title=f"Improve {label}",
            description=description,
            priority=priority_for_accuracy(avg_accuracy),
            subject=subject,
            topics=[t.topic for t in topics[:3]],
            estimated_minutes=len(topics) * 10,
            action_url=f"/practice?subject={subject}",
        ))

        for topic in topics[:2]:
            focus_areas.append(FocusArea(
                topic=topic.topic,
                subject=subject,
                reason=f"{topic.accuracy:.0f}% accuracy - needs improvement",
                current_accuracy=topic.accuracy,
                target_accuracy=TARGET_ACCURACY,
                importance=8,
                suggested_questions=math.ceil((TARGET_ACCURACY - topic.accuracy) / 5) * 5,
                priority=priority_for_accuracy(topic.accuracy),
            ))

    if current_streak < STREAK_NUDGE_BELOW:
        recommendations.append(Recommendation(
            id="rec_consistency",
            title="Build a Practice Streak",
            description="Regular practice is key to success. Try to practice a little bit every day.",
            priority="medium",
            subject="all",
            topics=["Daily practice"],
            estimated_minutes=15,
            action_url="/practice",
        ))

    if overall_accuracy >= CHALLENGE_NUDGE_FROM:
        recommendations.append(Recommendation(
            id="rec_challenge",
            title="Ready for Challenge Questions",
            description="Great progress! Try some harder questions to push your skills further.",
            priority="low",
            subject="all",
            topics=["Challenge level"],
            estimated_minutes=20,
            action_url="/practice?difficulty=challenge",
        ))

    return RecommendationSet(
        recommendations=recommendations,
        focus_areas=focus_areas[:MAX_FOCUS_AREAS],
    )
