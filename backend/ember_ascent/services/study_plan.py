"""
Ember Ascent - Weekly Study Plan
Turns heatmap cells into a Monday-to-Saturday plan that spends the daily
time budget on the highest-priority topics first.
"""
import math
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal

from ember_ascent.schemas.analytics import (
    DailyPlan,
    FocusArea,
    HeatmapCell,
    PlannedActivity,
    StudyGoal,
    StudyPlan,
)

DEFAULT_DAILY_MINUTES = 20
# date.weekday(): Monday=0 .. Sunday=6
DEFAULT_ACTIVE_DAYS = (0, 1, 2, 3, 4, 5)
DEFAULT_MAX_ACTIVITIES = 3
WEAK_THRESHOLD = 70
MASTERY_TARGET = 85
MINUTES_PER_QUESTION = 1.5
MIN_ACTIVITY_MINUTES = 5
MAX_FOCUS_AREAS = 3
WEEKLY_ACCURACY_GOAL = 75
DEFAULT_IMPORTANCE = 5
NEVER_PRACTISED_BOOST = 30

TOPIC_IMPORTANCE: dict[str, int] = {
    "Synonyms & Antonyms": 10,
    "Analogies": 10,
    "Odd One Out": 9,
    "Word Codes": 9,
    "Letter Series": 8,
    "Number Series": 8,
    "Reading Comprehension": 10,
    "Grammar": 9,
    "Vocabulary": 9,
    "Spelling": 8,
    "Punctuation": 8,
    "Fractions": 10,
    "Percentages": 10,
    "Ratio & Proportion": 9,
    "Algebra": 9,
    "Word Problems": 10,
    "Geometry": 8,
    "Data Handling": 7,
}

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

FocusMode = Literal["weak_areas", "balanced"]


@dataclass
class PlanOptions:
    daily_minutes: int = DEFAULT_DAILY_MINUTES
    active_days: tuple[int, ...] = DEFAULT_ACTIVE_DAYS
    max_activities_per_day: int = DEFAULT_MAX_ACTIVITIES
    focus_mode: FocusMode = "weak_areas"


@dataclass
class TopicWeight:
    topic: str
    subject: str
    accuracy: float
    importance: int
    priority: float
    suggested_questions: int


def topic_importance(topic: str) -> int:
    """Exam weight of a topic, matched exactly first and then by substring."""
    if topic in TOPIC_IMPORTANCE:
        return TOPIC_IMPORTANCE[topic]
    needle = topic.lower()
    for name, weight in TOPIC_IMPORTANCE.items():
        key = name.lower()
        if key in needle or needle in key:
            return weight
    return DEFAULT_IMPORTANCE


def topic_priority(accuracy: float, importance: int, days_since_practice: int | None) -> float:
    weakness = max(0.0, MASTERY_TARGET - accuracy)
    if days_since_practice is None:
        recency = NEVER_PRACTISED_BOOST
    elif days_since_practice > 14:
        recency = 20
    elif days_since_practice > 7:
        recency = 10
    elif days_since_practice > 3:
        recency = 5
    else:
        recency = 0
    return weakness * (1 + importance / 10) + recency


def suggested_questions(accuracy: float) -> int:
    if accuracy < 50:
        return 15
    if accuracy < 70:
        return 12
    if accuracy < 85:
        return 10
    return 8


def week_bounds(today: date) -> tuple[date, date]:
    """Monday-to-Sunday week holding ``today``. On a Sunday, the week ahead."""
    start = today - timedelta(days=today.weekday())
    if today.weekday() == 6:
        start = today + timedelta(days=1)
    return start, start + timedelta(days=6)


def weigh_topics(cells: Iterable[HeatmapCell], now: datetime) -> list[TopicWeight]:
    """Highest priority first; ties keep cell order."""
    weights = []
    for cell in cells:
        importance = topic_importance(cell.topic)
        days_since = None
        if cell.last_practiced_at is not None:
            days_since = math.floor((now - cell.last_practiced_at).total_seconds() / 86400)
        weights.append(TopicWeight(
            topic=cell.topic,
            subject=cell.subject,
            accuracy=cell.accuracy,
            importance=importance,
            priority=topic_priority(cell.accuracy, importance, days_since),
            suggested_questions=suggested_questions(cell.accuracy),
        ))
    weights.sort(key=lambda w: w.priority, reverse=True)
    return weights


def _focus_areas(weights: list[TopicWeight]) -> list[FocusArea]:
    areas = []
    for weight in [w for w in weights if w.accuracy < WEAK_THRESHOLD][:MAX_FOCUS_AREAS]:
        if weight.accuracy < 50:
            reason = f"Needs significant improvement ({weight.accuracy:.0f}% accuracy)"
        else:
            reason = f"Below target mastery ({weight.accuracy:.0f}% vs {MASTERY_TARGET}% target)"
        if weight.priority > 60:
            priority = "high"
        elif weight.priority > 35:
            priority = "medium"
        else:
            priority = "low"
        areas.append(FocusArea(
            topic=weight.topic,
            subject=weight.subject,
            reason=reason,
            current_accuracy=weight.accuracy,
            target_accuracy=MASTERY_TARGET,
            importance=weight.importance,
            suggested_questions=weight.suggested_questions,
            priority=priority,
        ))
    return areas


def _reasoning(focus_areas: list[FocusArea]) -> str:
    if not focus_areas:
        return (
            "All tracked topics are above the mastery target, so this week balances "
            "maintenance practice across core subjects."
        )
    listed = ", ".join(
        f"{area.topic} ({area.subject}) at {area.current_accuracy:.0f}%" for area in focus_areas
    )
    return (
        f"Prioritising {listed} because they sit below the {WEAK_THRESHOLD}% mastery "
        f"threshold and are high-weight topics this term."
    )


def _activity(weight: TopicWeight, minutes: float, activity_id: str) -> PlannedActivity:
    if weight.priority > 50:
        priority = "high"
    elif weight.priority > 25:
        priority = "medium"
    else:
        priority = "low"
    label = "Needs improvement" if weight.accuracy < WEAK_THRESHOLD else "Maintain mastery"
    return PlannedActivity(
        id=activity_id,
        type="practice" if weight.accuracy < 80 else "review",
        subject=weight.subject,
        topic=weight.topic,
        difficulty="foundation" if weight.accuracy < 50 else "standard",
        question_count=round(minutes / MINUTES_PER_QUESTION),
        estimated_minutes=minutes,
        reason=f"Priority: {round(weight.priority)} - {label}",
        priority=priority,
    )


def generate_study_plan(
    child_id: uuid.UUID,
    cells: Iterable[HeatmapCell],
    now: datetime,
    options: PlanOptions | None = None,
) -> StudyPlan:
    """
    Build the weekly plan.

    Topics are scheduled in priority order across the active days and the
    list wraps around when it runs out. Each day stops at the activity cap
    or once five minutes or less remain. In balanced mode a day prefers a
    subject it has not covered yet.
    """
    options = options or PlanOptions()
    weights = weigh_topics(cells, now)
    focus_areas = _focus_areas(weights)
    week_start, week_end = week_bounds(now.date())

    daily_plans: list[DailyPlan] = []
    index = 0
    for offset in range(7):
        day = week_start + timedelta(days=offset)
        if day.weekday() not in options.active_days:
            continue

        activities: list[PlannedActivity] = []
        remaining = float(options.daily_minutes)
        used_subjects: set[str] = set()
        while (
            weights
            and len(activities) < options.max_activities_per_day
            and remaining > MIN_ACTIVITY_MINUTES
        ):
            if options.focus_mode == "balanced" and weights[index].subject in used_subjects:
                for j in range(index + 1, len(weights)):
                    if weights[j].subject not in used_subjects:
                        weights[index], weights[j] = weights[j], weights[index]
                        break
            weight = weights[index]

            minutes = min(remaining, weight.suggested_questions * MINUTES_PER_QUESTION)
            activity_id = f"activity_{day.isoformat()}_{len(activities) + 1}"
            activities.append(_activity(weight, minutes, activity_id))
            remaining -= minutes
            used_subjects.add(weight.subject)
            index = (index + 1) % len(weights)

        daily_plans.append(DailyPlan(
            date=day,
            day_of_week=DAY_NAMES[day.weekday()],
            activities=activities,
            recommended_minutes=options.daily_minutes - remaining,
        ))

    weekly_goals = [
        StudyGoal(
            id="goal_questions",
            description="Complete practice questions",
            target_value=sum(a.question_count for d in daily_plans for a in d.activities),
            unit="questions",
            deadline=week_end,
        ),
        StudyGoal(
            id="goal_accuracy",
            description="Achieve target accuracy",
            target_value=WEEKLY_ACCURACY_GOAL,
            unit="%",
            deadline=week_end,
        ),
        StudyGoal(
            id="goal_streak",
            description="Practice every active day",
            target_value=len(options.active_days),
            unit="days",
            deadline=week_end,
        ),
    ]

    return StudyPlan(
        child_id=child_id,
        week_start=week_start,
        week_end=week_end,
        generated_at=now,
        reasoning=_reasoning(focus_areas),
        daily_plans=daily_plans,
        focus_areas=focus_areas,
        weekly_goals=weekly_goals,
        total_recommended_minutes=sum(d.recommended_minutes for d in daily_plans),
    )
