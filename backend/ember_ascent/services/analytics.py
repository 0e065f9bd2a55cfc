"""
Ember Ascent - Analytics Service
Aggregates practice attempts into the parent dashboard analytics:
comprehensive summary, weakness heatmap, readiness score, learning health,
cohort benchmark and study recommendations.
"""
import logging
import re
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.models.practice import QuestionAttempt
from ember_ascent.models.question import Difficulty, Question, Subject, subject_label
from ember_ascent.models.user import Child, SubscriptionTier, as_utc, utcnow
from ember_ascent.schemas.analytics import (
    AnalyticsSummary,
    BenchmarkData,
    ChildAnalytics,
    ComparisonGroup,
    DailyActivity,
    DashboardComprehensive,
    DashboardData,
    DashboardHeatmap,
    DashboardLearningHealth,
    DashboardMeta,
    DashboardReadiness,
    DashboardSummary,
    DateRange,
    DifficultyPerformance,
    HealthIndicator,
    HeatmapCell,
    HeatmapTopic,
    LearningHealthData,
    PerformanceTrends,
    ReadinessBreakdown,
    ReadinessComponents,
    ReadinessConfidence,
    ReadinessScoreData,
    ReadinessTrend,
    RecommendationSet,
    StudyPlan,
    SubjectBreakdownItem,
    SubjectPercentile,
    SubjectPerformance,
    SubjectReadiness,
    TopicAccuracy,
    TopicBreakdownItem,
    TopicPerformance,
    WeaknessHeatmapData,
)
from ember_ascent.services.children import ChildService
from ember_ascent.services.recommendations import build_recommendations
from ember_ascent.services.study_plan import PlanOptions, generate_study_plan
from ember_ascent.services.tiering import (
    confidence_for,
    fatigue_level,
    mastery_level,
    readiness_tier,
    rush_factor_level,
    stagnant_topics_level,
    trend_direction,
)

logger = logging.getLogger(__name__)

READINESS_DISCLAIMER = (
    "This score is an estimate based on practice performance and does not guarantee exam results."
)

# Readiness component maxima
ACCURACY_MAX = 40
COVERAGE_MAX = 20
CONSISTENCY_MAX = 15
DIFFICULTY_MAX = 15
IMPROVEMENT_MAX = 10

COVERAGE_TARGET_TOPICS = 10
CONSISTENCY_TARGET_DAYS = 20

HEATMAP_MIN_ATTEMPTS = 3
RUSH_THRESHOLD_SECONDS = 10
FATIGUE_MIN_SESSION_ATTEMPTS = 8
STAGNANT_WINDOW_DAYS = 7
STAGNANT_MIN_ATTEMPTS = 3
STUDY_PLAN_WINDOW_DAYS = 30

BENCHMARK_MIN_ATTEMPTS = 10
BENCHMARK_MIN_SUBJECT_ATTEMPTS = 5
BENCHMARK_SIGNIFICANT_ATTEMPTS = 50
BENCHMARK_SUBJECTS = (Subject.VERBAL_REASONING.value, Subject.ENGLISH.value, Subject.MATHEMATICS.value)
DEFAULT_COHORT_AVERAGE = 62.0

DIFFICULTY_ORDER = [d.value for d in Difficulty]
ALL_TIME_START = datetime(2020, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class AttemptRow:
    """A question attempt joined with the question's classification."""
    session_id: uuid.UUID | None
    question_id: uuid.UUID
    subject: str
    topic: str
    difficulty: str
    is_correct: bool
    time_taken_seconds: int | None
    created_at: datetime


# ============================================================================
# Pure helpers
# ============================================================================

def resolve_date_range(preset: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Translate a range preset into (start, end). Weeks start on Sunday."""
    end = now or utcnow()
    if preset == "all_time":
        return ALL_TIME_START, end
    if preset == "this_week":
        # isoweekday: Monday=1 .. Sunday=7
        days_since_sunday = end.isoweekday() % 7
        start = (end - timedelta(days=days_since_sunday)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        return start, end
    if preset == "this_month":
        return end.replace(day=1, hour=0, minute=0, second=0, microsecond=0), end

    match = re.fullmatch(r"last_(\d+)_days", preset)
    days = int(match.group(1)) if match else 30
    return end - timedelta(days=days), end


def percentage(correct: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(correct / total * 100, 1)


def _tally(rows: list[AttemptRow]) -> tuple[int, int]:
    return len(rows), sum(1 for r in rows if r.is_correct)


def _accuracy(rows: list[AttemptRow]) -> float:
    total, correct = _tally(rows)
    return percentage(correct, total)


def _between(rows: list[AttemptRow], start: datetime, end: datetime) -> list[AttemptRow]:
    return [r for r in rows if start <= r.created_at < end]


def _average_time(rows: list[AttemptRow]) -> float:
    timed = [r.time_taken_seconds for r in rows if r.time_taken_seconds is not None]
    if not timed:
        return 0.0
    return round(sum(timed) / len(timed), 1)


def _weekly_trend(rows: list[AttemptRow], now: datetime) -> str:
    """Accuracy over the last 7 days against the 7 days before that."""
    week = timedelta(days=7)
    recent = _between(rows, now - week, now + timedelta(seconds=1))
    previous = _between(rows, now - 2 * week, now - week)
    if not recent or not previous:
        return "stable"
    return trend_direction(_accuracy(recent), _accuracy(previous))


def compute_streaks(practice_days: set[date], today: date) -> tuple[int, int]:
    """Return (current, longest) runs of consecutive practice days.

    The current streak survives until the end of the day after the last
    practice, so a child who practised yesterday still has a live streak.
    """
    if not practice_days:
        return 0, 0

    ordered = sorted(practice_days)
    longest = run = 1
    for prev, day in zip(ordered, ordered[1:]):
        run = run + 1 if (day - prev).days == 1 else 1
        longest = max(longest, run)

    current = 0
    cursor = today if today in practice_days else today - timedelta(days=1)
    while cursor in practice_days:
        current += 1
        cursor -= timedelta(days=1)
    return current, longest


def compute_heatmap_cells(rows: list[AttemptRow], now: datetime) -> list[HeatmapCell]:
    """Group by (subject, topic); cells need at least three attempts."""
    grouped: dict[tuple[str, str], list[AttemptRow]] = defaultdict(list)
    for row in rows:
        grouped[(row.subject, row.topic)].append(row)

    cells = []
    for (subject, topic), topic_rows in grouped.items():
        total, correct = _tally(topic_rows)
        if total < HEATMAP_MIN_ATTEMPTS:
            continue
        accuracy = percentage(correct, total)
        level = mastery_level(accuracy, total)
        cells.append(HeatmapCell(
            subject=subject,
            topic=topic,
            accuracy=accuracy,
            total_questions=total,
            correct_answers=correct,
            trend=_weekly_trend(topic_rows, now),
            mastery_level=level,
            last_practiced_at=max(r.created_at for r in topic_rows),
            needs_focus=level == "needs_practice",
        ))

    cells.sort(key=lambda c: (c.accuracy, -c.total_questions))
    return cells


def build_heatmap(cells: list[HeatmapCell], now: datetime) -> WeaknessHeatmapData:
    subjects: list[str] = []
    topics: list[HeatmapTopic] = []
    seen_topics: set[tuple[str, str]] = set()
    for cell in cells:
        if cell.subject not in subjects:
            subjects.append(cell.subject)
        if (cell.subject, cell.topic) not in seen_topics:
            seen_topics.add((cell.subject, cell.topic))
            slug = re.sub(r"\s+", "-", cell.topic.lower())
            topics.append(HeatmapTopic(
                id=f"{cell.subject}-{slug}",
                name=cell.topic,
                subject=cell.subject,
                display_order=len(topics),
            ))
    return WeaknessHeatmapData(subjects=subjects, topics=topics, cells=cells, last_updated=now)


def compute_readiness_components(
    rows: list[AttemptRow],
    prior_rows: list[AttemptRow],
    days: int,
) -> ReadinessComponents | None:
    """Weighted readiness components, or None when there is nothing to score."""
    if not rows:
        return None

    accuracy = _accuracy(rows)
    accuracy_score = accuracy / 100 * ACCURACY_MAX

    unique_topics = len({(r.subject, r.topic) for r in rows})
    coverage_score = min(COVERAGE_MAX, unique_topics / COVERAGE_TARGET_TOPICS * COVERAGE_MAX)

    days_active = len({as_utc(r.created_at).date() for r in rows})
    target_days = max(1, min(CONSISTENCY_TARGET_DAYS, days))
    consistency_score = min(CONSISTENCY_MAX, days_active / target_days * CONSISTENCY_MAX)

    harder = [r for r in rows if r.difficulty != Difficulty.FOUNDATION.value]
    difficulty_score = _accuracy(harder) / 100 * DIFFICULTY_MAX if harder else 0.0

    if prior_rows:
        delta = accuracy - _accuracy(prior_rows)
        improvement_score = IMPROVEMENT_MAX * min(1.0, max(0.0, 0.5 + delta / 20))
    else:
        improvement_score = IMPROVEMENT_MAX / 2

    return ReadinessComponents(
        accuracy_score=round(accuracy_score, 1),
        coverage_score=round(coverage_score, 1),
        consistency_score=round(consistency_score, 1),
        difficulty_score=round(difficulty_score, 1),
        improvement_score=round(improvement_score, 1),
    )


def readiness_total(components: ReadinessComponents | None) -> int:
    if components is None:
        return 0
    total = (
        components.accuracy_score
        + components.coverage_score
        + components.consistency_score
        + components.difficulty_score
        + components.improvement_score
    )
    return int(min(100, max(0, round(total))))


def empty_readiness(child_id: uuid.UUID, days: int, now: datetime) -> ReadinessScoreData:
    """Explicit zero state for a child with no attempts in the window."""
    level, needed, message = confidence_for(0)
    return ReadinessScoreData(
        child_id=child_id,
        calculated_at=now,
        overall_score=0,
        overall_tier=readiness_tier(None, 0).level,
        components=ReadinessComponents(),
        subject_scores=[],
        confidence=ReadinessConfidence(level=level, questions_needed=needed, message=message),
        trend=ReadinessTrend(period_days=days),
        total_questions=0,
        disclaimer=READINESS_DISCLAIMER,
    )


def compute_rush_factor(rows: list[AttemptRow]) -> float:
    """Percentage of answers given in under ten seconds."""
    if not rows:
        return 0.0
    rushed = sum(
        1 for r in rows
        if r.time_taken_seconds is not None and 0 < r.time_taken_seconds < RUSH_THRESHOLD_SECONDS
    )
    return percentage(rushed, len(rows))


def compute_fatigue_drop_off(rows: list[AttemptRow]) -> float:
    """Mean accuracy drop from first to second half across long sessions."""
    sessions: dict[uuid.UUID, list[AttemptRow]] = defaultdict(list)
    for row in rows:
        if row.session_id is not None:
            sessions[row.session_id].append(row)

    drops = []
    for session_rows in sessions.values():
        if len(session_rows) < FATIGUE_MIN_SESSION_ATTEMPTS:
            continue
        ordered = sorted(session_rows, key=lambda r: r.created_at)
        half = len(ordered) // 2
        drop = _accuracy(ordered[:half]) - _accuracy(ordered[half:])
        drops.append(max(0.0, drop))

    if not drops:
        return 0.0
    return round(sum(drops) / len(drops), 1)


def compute_stagnant_topics(rows: list[AttemptRow], now: datetime) -> list[str]:
    """Topics whose accuracy did not improve over the last two weeks.

    Topics are keyed by (subject, topic) so a name shared across subjects
    is judged separately in each. Names are returned as "Topic (Subject)".
    """
    window = timedelta(days=STAGNANT_WINDOW_DAYS)
    recent: dict[tuple[str, str], list[AttemptRow]] = defaultdict(list)
    previous: dict[tuple[str, str], list[AttemptRow]] = defaultdict(list)
    for row in rows:
        key = (row.subject, row.topic)
        if now - window <= row.created_at <= now:
            recent[key].append(row)
        elif now - 2 * window <= row.created_at < now - window:
            previous[key].append(row)

    stagnant = []
    for (subject, topic), recent_rows in recent.items():
        previous_rows = previous.get((subject, topic), [])
        if len(recent_rows) < STAGNANT_MIN_ATTEMPTS or len(previous_rows) < STAGNANT_MIN_ATTEMPTS:
            continue
        if _accuracy(recent_rows) <= _accuracy(previous_rows):
            stagnant.append(f"{topic} ({subject_label(subject)})")
    return sorted(stagnant)


def percentile_rank(value: float, cohort: list[float]) -> int:
    """Share of the cohort at or below ``value``, as a whole percentage."""
    if not cohort:
        return 50
    at_or_below = sum(1 for other in cohort if other <= value)
    return round(at_or_below / len(cohort) * 100)


# ============================================================================
# Service
# ============================================================================

class AnalyticsService:
    """
    Service for aggregating child practice analytics for the parent view.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    async def get_child_for_parent(self, child_id: uuid.UUID, parent_id: uuid.UUID) -> Child:
        """Load a child and check it belongs to the parent."""
        return await ChildService(self.db).get_for_parent(child_id, parent_id)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load_attempts(
        self,
        child_id: uuid.UUID,
        start: datetime,
        end: datetime | None = None,
    ) -> list[AttemptRow]:
        query = (
            select(
                QuestionAttempt.session_id,
                QuestionAttempt.question_id,
                Question.subject,
                Question.topic,
                Question.difficulty,
                QuestionAttempt.is_correct,
                QuestionAttempt.time_taken_seconds,
                QuestionAttempt.created_at,
            )
            .join(Question, Question.id == QuestionAttempt.question_id)
            .where(
                QuestionAttempt.child_id == child_id,
                QuestionAttempt.created_at >= start,
            )
            .order_by(QuestionAttempt.created_at)
        )
        if end is not None:
            query = query.where(QuestionAttempt.created_at <= end)

        result = await self.db.execute(query)
        return [
            AttemptRow(
                session_id=row.session_id,
                question_id=row.question_id,
                subject=row.subject,
                topic=row.topic,
                difficulty=(row.difficulty or Difficulty.STANDARD.value).lower(),
                is_correct=bool(row.is_correct),
                time_taken_seconds=row.time_taken_seconds,
                created_at=as_utc(row.created_at),
            )
            for row in result.all()
        ]

    async def get_streaks(self, child_id: uuid.UUID, now: datetime | None = None) -> tuple[int, int]:
        now = now or utcnow()
        result = await self.db.execute(
            select(QuestionAttempt.created_at).where(QuestionAttempt.child_id == child_id)
        )
        days = {as_utc(value).date() for value in result.scalars().all()}
        return compute_streaks(days, now.date())

    async def _topic_totals(self) -> dict[str, int]:
        """Distinct topics available per subject in the question bank."""
        result = await self.db.execute(
            select(Question.subject, func.count(distinct(Question.topic))).group_by(Question.subject)
        )
        return {subject: count for subject, count in result.all()}

    # ------------------------------------------------------------------
    # Comprehensive analytics
    # ------------------------------------------------------------------

    async def get_comprehensive(
        self,
        child: Child,
        preset: str = "last_30_days",
        now: datetime | None = None,
    ) -> ChildAnalytics:
        now = now or utcnow()
        start, end = resolve_date_range(preset, now)
        rows = await self._load_attempts(child.id, start, end)
        current_streak, longest_streak = await self.get_streaks(child.id, now)

        total, correct = _tally(rows)
        session_ids = {r.session_id for r in rows if r.session_id is not None}
        practice_seconds = sum(r.time_taken_seconds or 0 for r in rows)
        practice_minutes = round(practice_seconds / 60)

        summary = AnalyticsSummary(
            total_sessions=len(session_ids),
            total_questions_answered=total,
            total_correct_answers=correct,
            overall_accuracy=percentage(correct, total),
            total_practice_minutes=practice_minutes,
            average_session_length=round(practice_minutes / len(session_ids), 1) if session_ids else 0,
            current_streak=current_streak,
            longest_streak=longest_streak,
            last_practice_date=rows[-1].created_at if rows else None,
        )

        return ChildAnalytics(
            child_id=child.id,
            child_name=child.name,
            date_range=DateRange(start_date=start, end_date=end, preset=preset),
            summary=summary,
            subject_breakdown=self._subject_breakdown(rows, now),
            topic_breakdown=self._topic_breakdown(rows, now),
            difficulty_breakdown=self._difficulty_breakdown(rows),
            daily_activity=self._daily_activity(rows),
            trends=self._trends(rows, now),
        )

    @staticmethod
    def _subject_breakdown(rows: list[AttemptRow], now: datetime) -> list[SubjectPerformance]:
        grouped: dict[str, list[AttemptRow]] = defaultdict(list)
        for row in rows:
            grouped[row.subject].append(row)

        breakdown = []
        for subject, subject_rows in grouped.items():
            total, correct = _tally(subject_rows)
            accuracy = percentage(correct, total)
            breakdown.append(SubjectPerformance(
                subject=subject,
                subject_label=subject_label(subject),
                total_questions=total,
                correct_answers=correct,
                accuracy=accuracy,
                average_time_seconds=_average_time(subject_rows),
                mastery_level=mastery_level(accuracy, total),
                trend=_weekly_trend(subject_rows, now),
                topic_count=len({r.topic for r in subject_rows}),
            ))
        breakdown.sort(key=lambda s: s.subject)
        return breakdown

    @staticmethod
    def _topic_breakdown(rows: list[AttemptRow], now: datetime) -> list[TopicPerformance]:
        grouped: dict[tuple[str, str], list[AttemptRow]] = defaultdict(list)
        for row in rows:
            grouped[(row.subject, row.topic)].append(row)

        breakdown = []
        for (subject, topic), topic_rows in grouped.items():
            total, correct = _tally(topic_rows)
            accuracy = percentage(correct, total)
            distribution = {d: 0 for d in DIFFICULTY_ORDER}
            for r in topic_rows:
                distribution[r.difficulty] = distribution.get(r.difficulty, 0) + 1
            breakdown.append(TopicPerformance(
                topic=topic,
                subject=subject,
                subject_label=subject_label(subject),
                total_questions=total,
                correct_answers=correct,
                accuracy=accuracy,
                average_time_seconds=_average_time(topic_rows),
                mastery_level=mastery_level(accuracy, total),
                trend=_weekly_trend(topic_rows, now),
                last_practiced_at=max(r.created_at for r in topic_rows),
                difficulty_distribution=distribution,
            ))
        breakdown.sort(key=lambda t: (t.accuracy, -t.total_questions))
        return breakdown

    @staticmethod
    def _difficulty_breakdown(rows: list[AttemptRow]) -> list[DifficultyPerformance]:
        grouped: dict[str, list[AttemptRow]] = defaultdict(list)
        for row in rows:
            grouped[row.difficulty].append(row)

        def order(name: str) -> int:
            return DIFFICULTY_ORDER.index(name) if name in DIFFICULTY_ORDER else len(DIFFICULTY_ORDER)

        breakdown = []
        for difficulty in sorted(grouped, key=order):
            total, correct = _tally(grouped[difficulty])
            breakdown.append(DifficultyPerformance(
                difficulty=difficulty,
                total=total,
                correct=correct,
                accuracy=percentage(correct, total),
            ))
        return breakdown

    @staticmethod
    def _daily_activity(rows: list[AttemptRow]) -> list[DailyActivity]:
        grouped: dict[date, list[AttemptRow]] = defaultdict(list)
        for row in rows:
            grouped[row.created_at.date()].append(row)

        activity = []
        for day in sorted(grouped):
            day_rows = grouped[day]
            total, correct = _tally(day_rows)
            activity.append(DailyActivity(
                date=day,
                questions_answered=total,
                correct_answers=correct,
                accuracy=percentage(correct, total),
                practice_minutes=round(sum(r.time_taken_seconds or 0 for r in day_rows) / 60),
                sessions_completed=len({r.session_id for r in day_rows if r.session_id}),
            ))
        return activity

    @staticmethod
    def _trends(rows: list[AttemptRow], now: datetime) -> PerformanceTrends:
        if not rows:
            return PerformanceTrends()

        week = timedelta(days=7)
        upper = now + timedelta(seconds=1)
        current = _between(rows, now - week, upper)
        previous = _between(rows, now - 2 * week, now - week)
        current_avg = _accuracy(current)
        previous_avg = _accuracy(previous)

        return PerformanceTrends(
            accuracy_trend=trend_direction(current_avg, previous_avg),
            volume_trend=trend_direction(len(current), len(previous)),
            week_over_week_change=(
                round((current_avg - previous_avg) / previous_avg * 100, 1) if previous_avg > 0 else 0
            ),
            four_week_average=_accuracy(_between(rows, now - 4 * week, upper)),
            current_week_average=current_avg,
        )

    # ------------------------------------------------------------------
    # Heatmap
    # ------------------------------------------------------------------

    async def get_heatmap(
        self,
        child_id: uuid.UUID,
        days: int = 30,
        now: datetime | None = None,
    ) -> WeaknessHeatmapData:
        now = now or utcnow()
        rows = await self._load_attempts(child_id, now - timedelta(days=days))
        return build_heatmap(compute_heatmap_cells(rows, now), now)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    async def get_readiness(
        self,
        child_id: uuid.UUID,
        days: int = 30,
        now: datetime | None = None,
    ) -> ReadinessScoreData:
        """
        Readiness score for the trailing window, with the previous window
        of the same length used for the improvement component and trend.
        """
        now = now or utcnow()
        window = timedelta(days=days)
        all_rows = await self._load_attempts(child_id, now - 2 * window)
        rows = [r for r in all_rows if r.created_at >= now - window]
        prior_rows = [r for r in all_rows if r.created_at < now - window]

        if not rows:
            return empty_readiness(child_id, days, now)

        components = compute_readiness_components(rows, prior_rows, days)
        score = readiness_total(components)
        previous_score = readiness_total(compute_readiness_components(prior_rows, [], days))

        if prior_rows:
            change = score - previous_score
            trend = ReadinessTrend(
                direction=trend_direction(score, previous_score),
                previous_score=previous_score,
                current_score=score,
                change_amount=change,
                change_percentage=round(change / previous_score * 100, 1) if previous_score else 0,
                period_days=days,
            )
        else:
            trend = ReadinessTrend(current_score=score, period_days=days)

        level, needed, message = confidence_for(len(rows))

        return ReadinessScoreData(
            child_id=child_id,
            calculated_at=now,
            overall_score=score,
            overall_tier=readiness_tier(score, len(rows)).level,
            components=components,
            subject_scores=self._subject_readiness(rows, await self._topic_totals()),
            confidence=ReadinessConfidence(level=level, questions_needed=needed, message=message),
            trend=trend,
            total_questions=len(rows),
            disclaimer=READINESS_DISCLAIMER,
        )

    @staticmethod
    def _subject_readiness(
        rows: list[AttemptRow],
        topic_totals: dict[str, int],
    ) -> list[SubjectReadiness]:
        grouped: dict[str, list[AttemptRow]] = defaultdict(list)
        for row in rows:
            grouped[row.subject].append(row)

        scores = []
        for subject in sorted(grouped):
            subject_rows = grouped[subject]
            accuracy = _accuracy(subject_rows)

            topic_accuracy: dict[str, float] = {}
            by_topic: dict[str, list[AttemptRow]] = defaultdict(list)
            for r in subject_rows:
                by_topic[r.topic].append(r)
            for topic, topic_rows in by_topic.items():
                topic_accuracy[topic] = _accuracy(topic_rows)

            covered = len(by_topic)
            total_topics = max(topic_totals.get(subject, covered), covered)
            coverage = round(covered / total_topics * 100, 1) if total_topics else 0.0
            score = round(accuracy * 0.8 + coverage * 0.2)

            ranked = sorted(topic_accuracy.items(), key=lambda item: item[1])
            scores.append(SubjectReadiness(
                subject=subject,
                subject_label=subject_label(subject),
                score=score,
                tier=readiness_tier(score, len(subject_rows)).level,
                topics_covered=covered,
                total_topics=total_topics,
                coverage_percentage=coverage,
                weakest_areas=[t for t, acc in ranked if acc < 70][:3],
                strongest_areas=[t for t, acc in reversed(ranked) if acc >= 85][:3],
            ))
        return scores

    # ------------------------------------------------------------------
    # Learning health
    # ------------------------------------------------------------------

    async def get_learning_health(
        self,
        child_id: uuid.UUID,
        days: int = 30,
        now: datetime | None = None,
    ) -> LearningHealthData:
        now = now or utcnow()
        lookback = max(days, 2 * STAGNANT_WINDOW_DAYS)
        all_rows = await self._load_attempts(child_id, now - timedelta(days=lookback))
        rows = [r for r in all_rows if r.created_at >= now - timedelta(days=days)]
        return self._learning_health(rows, all_rows, now)

    @staticmethod
    def _learning_health(
        rows: list[AttemptRow],
        stagnant_rows: list[AttemptRow],
        now: datetime,
    ) -> LearningHealthData:
        rush = compute_rush_factor(rows)
        fatigue = compute_fatigue_drop_off(rows)
        stagnant = compute_stagnant_topics(stagnant_rows, now)

        def indicator(value: float, tier) -> HealthIndicator:
            return HealthIndicator(value=value, level=tier.level, label=tier.label, classes=tier.classes)

        return LearningHealthData(
            rush_factor=rush,
            fatigue_drop_off=fatigue,
            stagnant_topics=len(stagnant),
            stagnant_topic_names=stagnant,
            indicators={
                "rushFactor": indicator(rush, rush_factor_level(rush)),
                "fatigueDropOff": indicator(fatigue, fatigue_level(fatigue)),
                "stagnantTopics": indicator(len(stagnant), stagnant_topics_level(len(stagnant))),
            },
            calculated_at=now,
        )

    # ------------------------------------------------------------------
    # Benchmark
    # ------------------------------------------------------------------

    async def get_benchmark(self, child: Child, now: datetime | None = None) -> BenchmarkData:
        """
        Percentile of the child's accuracy within their year-group cohort.

        Cohort members need 10 attempts overall (5 per subject for subject
        percentiles) to be counted.
        """
        now = now or utcnow()
        correct_expr = func.sum(case((QuestionAttempt.is_correct.is_(True), 1), else_=0))

        overall_query = (
            select(QuestionAttempt.child_id, func.count(QuestionAttempt.id), correct_expr)
            .join(Child, Child.id == QuestionAttempt.child_id)
            .where(Child.year_group == child.year_group)
            .group_by(QuestionAttempt.child_id)
        )
        subject_query = (
            select(QuestionAttempt.child_id, Question.subject, func.count(QuestionAttempt.id), correct_expr)
            .join(Child, Child.id == QuestionAttempt.child_id)
            .join(Question, Question.id == QuestionAttempt.question_id)
            .where(Child.year_group == child.year_group)
            .group_by(QuestionAttempt.child_id, Question.subject)
        )
        overall_rows = (await self.db.execute(overall_query)).all()
        subject_rows = (await self.db.execute(subject_query)).all()

        cohort_size = (await self.db.execute(
            select(func.count(Child.id)).where(Child.year_group == child.year_group)
        )).scalar() or 0

        child_total, child_correct = 0, 0
        cohort_overall: list[float] = []
        for child_id, total, correct in overall_rows:
            if child_id == child.id:
                child_total, child_correct = total, int(correct or 0)
            if total >= BENCHMARK_MIN_ATTEMPTS:
                cohort_overall.append(percentage(int(correct or 0), total))

        child_subjects: dict[str, tuple[int, int]] = {}
        cohort_subjects: dict[str, list[float]] = defaultdict(list)
        for child_id, subject, total, correct in subject_rows:
            if child_id == child.id:
                child_subjects[subject] = (total, int(correct or 0))
            if total >= BENCHMARK_MIN_SUBJECT_ATTEMPTS:
                cohort_subjects[subject].append(percentage(int(correct or 0), total))

        if child_total >= BENCHMARK_MIN_ATTEMPTS:
            overall_percentile = percentile_rank(percentage(child_correct, child_total), cohort_overall)
        else:
            overall_percentile = 50

        subject_percentiles = []
        subjects = list(child_subjects) + [s for s in BENCHMARK_SUBJECTS if s not in child_subjects]
        for subject in subjects:
            cohort = cohort_subjects.get(subject, [])
            average = round(sum(cohort) / len(cohort), 1) if cohort else DEFAULT_COHORT_AVERAGE
            total, correct = child_subjects.get(subject, (0, 0))
            child_score = percentage(correct, total)
            subject_percentiles.append(SubjectPercentile(
                subject=subject,
                percentile=(
                    percentile_rank(child_score, cohort)
                    if total >= BENCHMARK_MIN_SUBJECT_ATTEMPTS else 50
                ),
                average_score=average,
                child_score=child_score,
            ))

        return BenchmarkData(
            child_id=child.id,
            calculated_at=now,
            overall_percentile=overall_percentile,
            subject_percentiles=subject_percentiles,
            comparison_group=ComparisonGroup(
                description=f"Year {child.year_group} students on Ember Ascent",
                total_students=cohort_size,
                min_data_points=BENCHMARK_SIGNIFICANT_ATTEMPTS,
                is_statistically_significant=child_total >= BENCHMARK_SIGNIFICANT_ATTEMPTS,
            ),
        )

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    async def get_recommendations(
        self,
        child: Child,
        preset: str = "last_30_days",
        now: datetime | None = None,
    ) -> RecommendationSet:
        analytics = await self.get_comprehensive(child, preset, now)
        records = [
            TopicAccuracy(
                subject=t.subject,
                topic=t.topic,
                accuracy=t.accuracy,
                subject_label=t.subject_label,
            )
            for t in analytics.topic_breakdown
        ]
        return build_recommendations(
            records,
            current_streak=analytics.summary.current_streak,
            overall_accuracy=analytics.summary.overall_accuracy,
        )

    async def get_study_plan(
        self,
        child: Child,
        options: PlanOptions | None = None,
        now: datetime | None = None,
    ) -> StudyPlan:
        """Weekly plan built from the last 30 days of heatmap cells."""
        now = now or utcnow()
        rows = await self._load_attempts(child.id, now - timedelta(days=STUDY_PLAN_WINDOW_DAYS))
        plan = generate_study_plan(child.id, compute_heatmap_cells(rows, now), now, options)
        logger.info(
            f"Study plan for child {child.id}: {len(plan.focus_areas)} focus areas, "
            f"{plan.total_recommended_minutes:.0f} minutes"
        )
        return plan

    # ------------------------------------------------------------------
    # Consolidated dashboard
    # ------------------------------------------------------------------

    async def get_dashboard(
        self,
        child: Child,
        subscription_tier: str,
        date_range: str = "last_30_days",
        days: int = 30,
        now: datetime | None = None,
    ) -> DashboardData:
        """All dashboard slices computed from one load of recent attempts."""
        now = now or utcnow()
        window = timedelta(days=days)
        lookback = max(2 * window, timedelta(days=2 * STAGNANT_WINDOW_DAYS))
        logger.info(f"Fetching dashboard analytics for child {child.id}, days={days}")

        all_rows = await self._load_attempts(child.id, now - lookback)
        rows = [r for r in all_rows if r.created_at >= now - window]
        prior_rows = [r for r in all_rows if now - 2 * window <= r.created_at < now - window]

        total, correct = _tally(rows)
        cells = compute_heatmap_cells(rows, now)

        subject_totals: dict[str, list[AttemptRow]] = defaultdict(list)
        for row in rows:
            subject_totals[row.subject].append(row)

        comprehensive = DashboardComprehensive(
            summary=DashboardSummary(
                total_questions_answered=total,
                overall_accuracy=percentage(correct, total),
            ),
            subject_breakdown=[
                SubjectBreakdownItem(
                    subject=subject,
                    total=len(subject_rows),
                    correct=_tally(subject_rows)[1],
                    accuracy=_accuracy(subject_rows),
                )
                for subject, subject_rows in sorted(subject_totals.items())
            ],
            difficulty_breakdown=self._difficulty_breakdown(rows),
            topic_breakdown=[
                TopicBreakdownItem(
                    topic=cell.topic,
                    subject=cell.subject,
                    total=cell.total_questions,
                    correct=cell.correct_answers,
                    accuracy=cell.accuracy,
                )
                for cell in cells
            ],
        )

        components = compute_readiness_components(rows, prior_rows, days)
        score = readiness_total(components)
        if components is not None:
            breakdown = ReadinessBreakdown(
                accuracy=round(components.accuracy_score / ACCURACY_MAX * 100),
                coverage=round(components.coverage_score / COVERAGE_MAX * 100),
                consistency=round(components.consistency_score / CONSISTENCY_MAX * 100),
            )
        else:
            breakdown = ReadinessBreakdown()

        benchmark = None
        if subscription_tier in (SubscriptionTier.ASCENT.value, SubscriptionTier.SUMMIT.value):
            benchmark = await self.get_benchmark(child, now)

        health = self._learning_health(rows, all_rows, now)

        return DashboardData(
            comprehensive=comprehensive,
            readiness=DashboardReadiness(
                overall_score=score,
                tier=readiness_tier(score if components else None, total).level,
                breakdown=breakdown,
            ),
            heatmap=DashboardHeatmap(cells=cells),
            benchmark=benchmark,
            learning_health=DashboardLearningHealth(
                rush_factor=health.rush_factor,
                fatigue_drop_off=health.fatigue_drop_off,
                stagnant_topics=health.stagnant_topics,
            ),
            meta=DashboardMeta(child_id=child.id, range=date_range, days=days, timestamp=now),
        )
