"""
Ember Ascent - Analytics API Router
Parent dashboard analytics: consolidated dashboard plus the individual slices
"""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from ember_ascent.api.deps import Auth, AuthContext, DbSession, SubscriptionTierName
from ember_ascent.core.exceptions import ForbiddenError
from ember_ascent.models.user import Child, SubscriptionTier
from ember_ascent.schemas.analytics import (
    BenchmarkResponse,
    ComprehensiveResponse,
    DashboardResponse,
    DateRangePreset,
    HeatmapResponse,
    LearningHealthMeta,
    LearningHealthResponse,
    ReadinessResponse,
    RecommendationInteractionCreate,
    RecommendationInteractionData,
    RecommendationInteractionResponse,
    RecommendationsResponse,
    RecommendationStatsResponse,
    StudyPlanResponse,
    UndoDismissalResponse,
)
from ember_ascent.services.analytics import AnalyticsService
from ember_ascent.services.recommendation_interactions import RecommendationInteractionService
from ember_ascent.services.study_plan import DEFAULT_DAILY_MINUTES, FocusMode, PlanOptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

PAID_TIERS = (SubscriptionTier.ASCENT.value, SubscriptionTier.SUMMIT.value)

ChildId = Annotated[uuid.UUID, Query(alias="childId")]
RangeParam = Annotated[DateRangePreset, Query(alias="range")]
DaysParam = Annotated[int, Query(ge=1, le=365)]


async def _child(service: AnalyticsService, child_id: uuid.UUID, auth: AuthContext) -> Child:
    return await service.get_child_for_parent(child_id, auth.effective_user_id)


# ============================================================================
# Consolidated dashboard
# ============================================================================

@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
    date_range: RangeParam = "last_30_days",
    days: DaysParam = 30,
):
    """
    Every dashboard slice in one response.

    The benchmark slice is only computed for Ascent and Summit; other tiers
    get ``null``.
    """
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    data = await service.get_dashboard(child, tier, date_range, days)
    return DashboardResponse(data=data)


# ============================================================================
# Individual slices
# ============================================================================

@router.get("/comprehensive", response_model=ComprehensiveResponse)
async def get_comprehensive(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
    date_range: RangeParam = "last_30_days",
):
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    if tier not in PAID_TIERS:
        raise ForbiddenError("Comprehensive analytics require an Ascent or Summit subscription")
    return ComprehensiveResponse(data=await service.get_comprehensive(child, date_range))


@router.get("/readiness", response_model=ReadinessResponse)
async def get_readiness(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
    days: DaysParam = 30,
):
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    if tier not in PAID_TIERS:
        return ReadinessResponse(
            preview=True,
            message="Upgrade to Ascent to unlock the full readiness score",
        )

    data = await service.get_readiness(child.id, days)
    if data.total_questions == 0:
        return ReadinessResponse(
            data=data,
            message="Complete some practice questions to see a readiness score",
        )
    return ReadinessResponse(data=data)


@router.get("/heatmap", response_model=HeatmapResponse)
async def get_heatmap(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
    days: DaysParam = 30,
):
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    if tier not in PAID_TIERS:
        return HeatmapResponse(
            preview=True,
            message="Upgrade to Ascent to unlock the weakness heatmap",
        )
    return HeatmapResponse(data=await service.get_heatmap(child.id, days))


@router.get("/benchmark", response_model=BenchmarkResponse)
async def get_benchmark(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
):
    """Percentile ranking within the year-group cohort. Summit only."""
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    if tier != SubscriptionTier.SUMMIT.value:
        raise ForbiddenError("Benchmarking requires a Summit subscription")
    return BenchmarkResponse(data=await service.get_benchmark(child))


@router.get("/learning-health", response_model=LearningHealthResponse)
async def get_learning_health(
    auth: Auth,
    db: DbSession,
    child_id: ChildId,
    days: DaysParam = 30,
):
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    data = await service.get_learning_health(child.id, days)
    logger.info(
        f"Learning health for {child.id}: rush={data.rush_factor} "
        f"fatigue={data.fatigue_drop_off} stagnant={data.stagnant_topics}"
    )
    return LearningHealthResponse(
        data=data,
        meta=LearningHealthMeta(child_id=child.id, child_name=child.name, days_analyzed=days),
    )


@router.get("/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(
    auth: Auth,
    db: DbSession,
    child_id: ChildId,
    date_range: RangeParam = "last_30_days",
):
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    return RecommendationsResponse(data=await service.get_recommendations(child, date_range))


# ============================================================================
# Recommendation interactions
# ============================================================================

@router.get("/recommendations/interactions", response_model=RecommendationStatsResponse)
async def get_recommendation_stats(auth: Auth, db: DbSession, child_id: ChildId):
    """Started/completed counts and active dismissals per subject/topic."""
    child = await _child(AnalyticsService(db), child_id, auth)
    data = await RecommendationInteractionService(db).get_stats(child.id)
    return RecommendationStatsResponse(data=data)


@router.post(
    "/recommendations/interactions",
    response_model=RecommendationInteractionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_recommendation_interaction(
    data: RecommendationInteractionCreate,
    auth: Auth,
    db: DbSession,
):
    await _child(AnalyticsService(db), data.child_id, auth)
    interaction = await RecommendationInteractionService(db).record(data, auth.effective_user_id)
    return RecommendationInteractionResponse(
        interaction=RecommendationInteractionData.model_validate(interaction)
    )


@router.delete("/recommendations/interactions", response_model=UndoDismissalResponse)
async def undo_recommendation_dismissal(
    auth: Auth,
    db: DbSession,
    child_id: ChildId,
    subject: Annotated[str, Query(min_length=1)],
    topic: Annotated[str | None, Query()] = None,
):
    """Bring a dismissed recommendation back."""
    child = await _child(AnalyticsService(db), child_id, auth)
    restored = await RecommendationInteractionService(db).undo_dismissal(child.id, subject, topic)
    return UndoDismissalResponse(restored=restored)


# ============================================================================
# Study plan
# ============================================================================

@router.get("/study-plan", response_model=StudyPlanResponse)
async def get_study_plan(
    auth: Auth,
    db: DbSession,
    tier: SubscriptionTierName,
    child_id: ChildId,
    daily_minutes: Annotated[int, Query(alias="dailyMinutes", ge=10, le=120)] = DEFAULT_DAILY_MINUTES,
    focus_mode: Annotated[FocusMode, Query(alias="focusMode")] = "weak_areas",
):
    """Monday-to-Saturday practice plan. Ascent and Summit only."""
    service = AnalyticsService(db)
    child = await _child(service, child_id, auth)
    if tier not in PAID_TIERS:
        raise ForbiddenError("Study plans require an Ascent or Summit subscription")
    options = PlanOptions(daily_minutes=daily_minutes, focus_mode=focus_mode)
    return StudyPlanResponse(data=await service.get_study_plan(child, options))
