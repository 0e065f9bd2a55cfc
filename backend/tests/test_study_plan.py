"""
Ember Ascent - Study Plan Tests
"""
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from ember_ascent.schemas.analytics import HeatmapCell
from ember_ascent.services.study_plan import (
    PlanOptions,
    generate_study_plan,
    topic_importance,
    topic_priority,
    week_bounds,
    weigh_topics,
)

# A Wednesday
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
CHILD_ID = uuid.UUID("7d1f7c4e-52a3-4b7a-9c61-0b7f3d2f9a10")


def cell(subject, topic, accuracy, days_ago=1):
    return HeatmapCell(
        subject=subject,
        topic=topic,
        accuracy=accuracy,
        last_practiced_at=None if days_ago is None else NOW - timedelta(days=days_ago),
    )


@pytest.mark.parametrize("topic,expected", [
    ("Fractions", 10),
    ("Fractions of Amounts", 10),
    ("analogies", 10),
    ("Series", 8),
    ("Time", 5),
])
def test_topic_importance(topic, expected):
    assert topic_importance(topic) == expected


@pytest.mark.parametrize("accuracy,importance,days,expected", [
    (40, 10, 0, 90),
    (90, 10, None, 30),
    (60, 5, 3, 37.5),
    (60, 5, 4, 42.5),
    (60, 5, 8, 47.5),
    (60, 5, 15, 57.5),
])
def test_topic_priority(accuracy, importance, days, expected):
    assert topic_priority(accuracy, importance, days) == expected


@pytest.mark.parametrize("today,start,end", [
    (date(2026, 10, 14), date(2026, 10, 12), date(2026, 10, 18)),
    (date(2026, 10, 12), date(2026, 10, 12), date(2026, 10, 18)),
    (date(2026, 10, 17), date(2026, 10, 12), date(2026, 10, 18)),
    # Sunday plans the week ahead
    (date(2026, 10, 18), date(2026, 10, 19), date(2026, 10, 25)),
])
def test_week_bounds(today, start, end):
    assert week_bounds(today) == (start, end)


def test_never_practised_topic_jumps_the_queue():
    weights = weigh_topics([
        cell("mathematics", "Area", 70, days_ago=0),
        cell("mathematics", "Time", 80, days_ago=None),
    ], NOW)
    assert [w.topic for w in weights] == ["Time", "Area"]
    assert [w.priority for w in weights] == [37.5, 22.5]


def test_weekly_plan():
    cells = [
        cell("english", "Spelling", 95),
        cell("english", "Synonyms & Antonyms", 65),
        cell("mathematics", "Fractions", 40),
    ]

    plan = generate_study_plan(CHILD_ID, cells, NOW)

    assert plan.week_start == date(2026, 10, 12)
    assert plan.week_end == date(2026, 10, 18)
    assert [d.day_of_week for d in plan.daily_plans] == [
        "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
    ]

    monday, tuesday, wednesday = plan.daily_plans[:3]
    assert [a.topic for a in monday.activities] == ["Fractions"]
    fractions = monday.activities[0]
    assert fractions.id == "activity_2026-10-12_1"
    assert fractions.question_count == 13
    assert fractions.estimated_minutes == 20
    assert fractions.type == "practice"
    assert fractions.difficulty == "foundation"
    assert fractions.priority == "high"
    assert fractions.reason == "Priority: 90 - Needs improvement"

    synonyms = tuesday.activities[0]
    assert len(tuesday.activities) == 1
    assert synonyms.question_count == 12
    assert synonyms.difficulty == "standard"
    assert synonyms.priority == "medium"
    assert tuesday.recommended_minutes == 18

    # The list wraps: Spelling then Fractions again with the minutes left
    assert [a.topic for a in wednesday.activities] == ["Spelling", "Fractions"]
    assert wednesday.activities[0].type == "review"
    assert wednesday.activities[0].reason == "Priority: 0 - Maintain mastery"
    assert wednesday.activities[0].priority == "low"
    assert wednesday.activities[1].estimated_minutes == 8
    assert wednesday.activities[1].question_count == 5

    assert plan.total_recommended_minutes == 114
    goals = {g.id: g for g in plan.weekly_goals}
    assert goals["goal_questions"].target_value == 75
    assert goals["goal_accuracy"].target_value == 75
    assert goals["goal_streak"].target_value == 6
    assert all(g.deadline == date(2026, 10, 18) for g in plan.weekly_goals)


def test_focus_areas_and_reasoning():
    cells = [
        cell("english", "Spelling", 95),
        cell("english", "Synonyms & Antonyms", 65),
        cell("mathematics", "Fractions", 40),
    ]

    plan = generate_study_plan(CHILD_ID, cells, NOW)

    assert [(f.topic, f.priority) for f in plan.focus_areas] == [
        ("Fractions", "high"),
        ("Synonyms & Antonyms", "medium"),
    ]
    assert plan.focus_areas[0].reason == "Needs significant improvement (40% accuracy)"
    assert plan.focus_areas[1].reason == "Below target mastery (65% vs 85% target)"
    assert plan.focus_areas[0].importance == 10
    assert plan.focus_areas[0].suggested_questions == 15
    assert plan.reasoning == (
        "Prioritising Fractions (mathematics) at 40%, Synonyms & Antonyms (english) at 65% "
        "because they sit below the 70% mastery threshold and are high-weight topics this term."
    )


def test_focus_areas_are_capped_at_three():
    cells = [cell("mathematics", f"Topic {i}", 30 + i) for i in range(5)]
    plan = generate_study_plan(CHILD_ID, cells, NOW)
    assert [f.topic for f in plan.focus_areas] == ["Topic 0", "Topic 1", "Topic 2"]


def test_plan_without_data():
    plan = generate_study_plan(CHILD_ID, [], NOW)

    assert len(plan.daily_plans) == 6
    assert all(d.activities == [] for d in plan.daily_plans)
    assert plan.total_recommended_minutes == 0
    assert plan.focus_areas == []
    assert plan.reasoning.startswith("All tracked topics are above the mastery target")


def test_plan_is_deterministic():
    cells = [cell("mathematics", "Fractions", 40), cell("english", "Grammar", 55)]
    first = generate_study_plan(CHILD_ID, cells, NOW)
    second = generate_study_plan(CHILD_ID, cells, NOW)
    assert first.model_dump() == second.model_dump()


def test_balanced_mode_mixes_subjects():
    cells = [
        cell("mathematics", "Time", 30),
        cell("mathematics", "Area", 40),
        cell("english", "Poetry", 50),
    ]

    focused = generate_study_plan(CHILD_ID, cells, NOW, PlanOptions(daily_minutes=60))
    balanced = generate_study_plan(
        CHILD_ID, cells, NOW, PlanOptions(daily_minutes=60, focus_mode="balanced")
    )

    assert [a.topic for a in focused.daily_plans[0].activities] == ["Time", "Area", "Poetry"]
    assert [a.topic for a in balanced.daily_plans[0].activities] == ["Time", "Poetry", "Area"]


def test_custom_active_days():
    plan = generate_study_plan(
        CHILD_ID,
        [cell("mathematics", "Fractions", 40)],
        NOW,
        PlanOptions(active_days=(0, 2, 4)),
    )
    assert [d.day_of_week for d in plan.daily_plans] == ["Monday", "Wednesday", "Friday"]
    assert plan.weekly_goals[2].target_value == 3
