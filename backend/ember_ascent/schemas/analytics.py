"""
Ember Ascent - Analytics Schemas
Pydantic schemas for the parent analytics dashboard
"""
import uuid
from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import Field

from ember_ascent.models.practice import InteractionType, RecommendationType
from ember_ascent.schemas.common import CamelModel, CamelRequest

TrendDirection = Literal["up", "down", "stable"]
DateRangePreset = Literal[
    "last_7_days",
    "last_14_days",
    "last_30_days",
    "last_90_days",
    "this_week",
    "this_month",
    "all_time",
]


# ============================================================================
# Comprehensive Analytics
# ============================================================================

class DateRange(CamelModel):
    start_date: datetime
    end_date: datetime
    preset: str | None = None


class AnalyticsSummary(CamelModel):
    total_sessions: int = 0
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    overall_accuracy: float = 0
    total_practice_minutes: int = 0
    average_session_length: float = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: datetime | None = None


class SubjectPerformance(CamelModel):
    subject: str
    subject_label: str
    total_questions: int = 0
    correct_answers: int = 0
    accuracy: float = 0
    average_time_seconds: float = 0
    mastery_level: str = "no_data"
    trend: TrendDirection = "stable"
    topic_count: int = 0


class TopicPerformance(CamelModel):
    topic: str
    subject: str
    subject_label: str
    total_questions: int = 0
    correct_answers: int = 0
    accuracy: float = 0
    average_time_seconds: float = 0
    mastery_level: str = "no_data"
    trend: TrendDirection = "stable"
    last_practiced_at: datetime | None = None
    difficulty_distribution: dict[str, int] = Field(default_factory=dict)


class DifficultyPerformance(CamelModel):
    difficulty: str
    total: int = 0
    correct: int = 0
    accuracy: float = 0


class DailyActivity(CamelModel):
    date: date
    questions_answered: int = 0
    correct_answers: int = 0
    accuracy: float = 0
    practice_minutes: int = 0
    sessions_completed: int = 0


class PerformanceTrends(CamelModel):
    accuracy_trend: TrendDirection = "stable"
    volume_trend: TrendDirection = "stable"
    week_over_week_change: float = 0
    four_week_average: float = 0
    current_week_average: float = 0


class ChildAnalytics(CamelModel):
    child_id: uuid.UUID
    child_name: str
    date_range: DateRange
    summary: AnalyticsSummary
    subject_breakdown: list[SubjectPerformance] = Field(default_factory=list)
    topic_breakdown: list[TopicPerformance] = Field(default_factory=list)
    difficulty_breakdown: list[DifficultyPerformance] = Field(default_factory=list)
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    trends: PerformanceTrends = Field(default_factory=PerformanceTrends)


# ============================================================================
# Weakness Heatmap
# ============================================================================

class HeatmapTopic(CamelModel):
    id: str
    name: str
    subject: str
    display_order: int


class HeatmapCell(CamelModel):
    subject: str
    topic: str
    accuracy: float = 0
    total_questions: int = 0
    correct_answers: int = 0
    trend: TrendDirection = "stable"
    mastery_level: str = "no_data"
    last_practiced_at: datetime | None = None
    needs_focus: bool = False


class WeaknessHeatmapData(CamelModel):
    subjects: list[str] = Field(default_factory=list)
    topics: list[HeatmapTopic] = Field(default_factory=list)
    cells: list[HeatmapCell] = Field(default_factory=list)
    last_updated: datetime | None = None


# ============================================================================
# Readiness Score
# ============================================================================

class ReadinessComponents(CamelModel):
    accuracy_score: float = 0  # max 40
    coverage_score: float = 0  # max 20
    consistency_score: float = 0  # max 15
    difficulty_score: float = 0  # max 15
    improvement_score: float = 0  # max 10


class SubjectReadiness(CamelModel):
    subject: str
    subject_label: str
    score: int = 0
    tier: str = "no_data"
    topics_covered: int = 0
    total_topics: int = 0
    coverage_percentage: float = 0
    weakest_areas: list[str] = Field(default_factory=list)
    strongest_areas: list[str] = Field(default_factory=list)


class ReadinessConfidence(CamelModel):
    level: Literal["low", "medium", "high"] = "low"
    questions_needed: int = 0
    message: str = ""


class ReadinessTrend(CamelModel):
    direction: TrendDirection = "stable"
    previous_score: int = 0
    current_score: int = 0
    change_amount: int = 0
    change_percentage: float = 0
    period_days: int = 0


class ReadinessScoreData(CamelModel):
    child_id: uuid.UUID
    calculated_at: datetime
    overall_score: int = 0
    overall_tier: str = "no_data"
    components: ReadinessComponents = Field(default_factory=ReadinessComponents)
    subject_scores: list[SubjectReadiness] = Field(default_factory=list)
    confidence: ReadinessConfidence = Field(default_factory=ReadinessConfidence)
    trend: ReadinessTrend = Field(default_factory=ReadinessTrend)
    total_questions: int = 0
    disclaimer: str = ""


# ============================================================================
# Benchmark
# ============================================================================

class SubjectPercentile(CamelModel):
    subject: str
    percentile: int = 50
    average_score: float = 0
    child_score: float = 0


class ComparisonGroup(CamelModel):
    description: str
    total_students: int = 0
    min_data_points: int = 50
    is_statistically_significant: bool = False


class BenchmarkData(CamelModel):
    child_id: uuid.UUID
    calculated_at: datetime
    overall_percentile: int = 50
    subject_percentiles: list[SubjectPercentile] = Field(default_factory=list)
    comparison_group: ComparisonGroup


# ============================================================================
# Learning Health
# ============================================================================

class HealthIndicator(CamelModel):
    """A tiered risk indicator as shown on the dashboard."""
    value: float
    level: str
    label: str
    classes: str


class LearningHealthData(CamelModel):
    rush_factor: float = 0
    fatigue_drop_off: float = 0
    stagnant_topics: int = 0
    stagnant_topic_names: list[str] = Field(default_factory=list)
    indicators: dict[str, HealthIndicator] = Field(default_factory=dict)
    calculated_at: datetime | None = None


class LearningHealthMeta(CamelModel):
    child_id: uuid.UUID
    child_name: str
    days_analyzed: int


# ============================================================================
# Recommendations
# ============================================================================

class TopicAccuracy(CamelModel):
    """Input record for recommendation synthesis."""
    subject: str
    topic: str
    accuracy: float
    subject_label: str | None = None


class Recommendation(CamelModel):
    id: str
    title: str
    description: str
    priority: Literal["high", "medium", "low"]
    subject: str
    topics: list[str] = Field(default_factory=list)
    estimated_minutes: int
    action_url: str


class FocusArea(CamelModel):
    topic: str
    subject: str
    reason: str
    current_accuracy: float
    target_accuracy: float = 85
    importance: int = 8
    suggested_questions: int
    priority: Literal["high", "medium", "low"]


class RecommendationSet(CamelModel):
    recommendations: list[Recommendation] = Field(default_factory=list)
    focus_areas: list[FocusArea] = Field(default_factory=list)


class RecommendationInteractionCreate(CamelRequest):
    child_id: uuid.UUID
    recommendation_type: RecommendationType
    subject: Annotated[str, Field(min_length=1, max_length=50)]
    topic: Annotated[str, Field(max_length=200)] | None = None
    difficulty: Literal["Foundation", "Standard", "Challenge"] | None = None
    interaction_type: InteractionType
    session_id: uuid.UUID | None = None
    dismissed_reason: Annotated[str, Field(max_length=500)] | None = None


class RecommendationInteractionData(CamelModel):
    id: uuid.UUID
    child_id: uuid.UUID
    recommendation_type: str
    subject: str
    topic: str | None = None
    difficulty: str | None = None
    interaction_type: str
    session_id: uuid.UUID | None = None
    performed_by: uuid.UUID
    performed_at: datetime
    is_active: bool
    dismissed_reason: str | None = None


class RecommendationStat(CamelModel):
    """Engagement with one subject/topic recommendation."""
    subject: str
    topic: str | None = None
    started_count: int = 0
    completed_count: int = 0
    last_attempted: datetime | None = None
    is_dismissed: bool = False
    dismissed_at: datetime | None = None
    dismissed_reason: str | None = None


class RecommendationStatsData(CamelModel):
    stats: list[RecommendationStat] = Field(default_factory=list)
    total_interactions: int = 0


# ============================================================================
# Study Plan
# ============================================================================

class PlannedActivity(CamelModel):
    id: str
    type: Literal["practice", "review"]
    subject: str
    topic: str
    difficulty: str
    question_count: int
    estimated_minutes: float
    reason: str
    priority: Literal["high", "medium", "low"]
    completed: bool = False


class DailyPlan(CamelModel):
    date: date
    day_of_week: str
    activities: list[PlannedActivity] = Field(default_factory=list)
    recommended_minutes: float = 0
    completed: bool = False


class StudyGoal(CamelModel):
    id: str
    description: str
    target_value: float
    current_value: float = 0
    unit: str
    progress: float = 0
    deadline: date


class StudyPlan(CamelModel):
    child_id: uuid.UUID
    week_start: date
    week_end: date
    generated_at: datetime
    reasoning: str
    daily_plans: list[DailyPlan] = Field(default_factory=list)
    focus_areas: list[FocusArea] = Field(default_factory=list)
    weekly_goals: list[StudyGoal] = Field(default_factory=list)
    total_recommended_minutes: float = 0


# ============================================================================
# Envelopes
# ============================================================================

class ComprehensiveResponse(CamelModel):
    success: bool = True
    data: ChildAnalytics


class ReadinessResponse(CamelModel):
    success: bool = True
    data: ReadinessScoreData | None = None
    preview: bool = False
    message: str | None = None


class HeatmapResponse(CamelModel):
    success: bool = True
    data: WeaknessHeatmapData | None = None
    preview: bool = False
    message: str | None = None


class BenchmarkResponse(CamelModel):
    success: bool = True
    data: BenchmarkData


class LearningHealthResponse(CamelModel):
    success: bool = True
    data: LearningHealthData
    meta: LearningHealthMeta


class RecommendationsResponse(CamelModel):
    success: bool = True
    data: RecommendationSet


class RecommendationStatsResponse(CamelModel):
    success: bool = True
    data: RecommendationStatsData


class RecommendationInteractionResponse(CamelModel):
    success: bool = True
    interaction: RecommendationInteractionData


class UndoDismissalResponse(CamelModel):
    success: bool = True
    restored: int = 0


class StudyPlanResponse(CamelModel):
    success: bool = True
    data: StudyPlan


# ============================================================================
# Consolidated Dashboard
# ============================================================================

class DashboardSummary(CamelModel):
    total_questions_answered: int = 0
    overall_accuracy: float = 0


class TopicBreakdownItem(CamelModel):
    topic: str
    subject: str
    total: int = 0
    correct: int = 0
    accuracy: float = 0


class SubjectBreakdownItem(CamelModel):
    subject: str
    total: int = 0
    correct: int = 0
    accuracy: float = 0


class DashboardComprehensive(CamelModel):
    summary: DashboardSummary = Field(default_factory=DashboardSummary)
    subject_breakdown: list[SubjectBreakdownItem] = Field(default_factory=list)
    difficulty_breakdown: list[DifficultyPerformance] = Field(default_factory=list)
    topic_breakdown: list[TopicBreakdownItem] = Field(default_factory=list)


class ReadinessBreakdown(CamelModel):
    accuracy: int = 0
    coverage: int = 0
    consistency: int = 0


class DashboardReadiness(CamelModel):
    overall_score: int = 0
    tier: str = "no_data"
    breakdown: ReadinessBreakdown = Field(default_factory=ReadinessBreakdown)


class DashboardHeatmap(CamelModel):
    cells: list[HeatmapCell] = Field(default_factory=list)


class DashboardLearningHealth(CamelModel):
    rush_factor: float = 0
    fatigue_drop_off: float = 0
    stagnant_topics: int = 0


class DashboardMeta(CamelModel):
    child_id: uuid.UUID
    range: str
    days: int
    timestamp: datetime


class DashboardData(CamelModel):
    comprehensive: DashboardComprehensive
    readiness: DashboardReadiness
    heatmap: DashboardHeatmap
    benchmark: BenchmarkData | None = None
    learning_health: DashboardLearningHealth
    meta: DashboardMeta


class DashboardResponse(CamelModel):
    success: bool = True
    data: DashboardData
