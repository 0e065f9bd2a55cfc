"""
Ember Ascent - Profile API Router
Mirrored subscription state for the parent account
"""
from fastapi import APIRouter

from ember_ascent.api.deps import EffectiveProfile
from ember_ascent.models.user import SubscriptionStatus, SubscriptionTier
from ember_ascent.schemas.user import SubscriptionFeatures, SubscriptionResponse

router = APIRouter(prefix="/profile", tags=["Profile"])

PAID_TIERS = (SubscriptionTier.ASCENT.value, SubscriptionTier.SUMMIT.value)
LIVE_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


def features_for(tier: str) -> SubscriptionFeatures:
    return SubscriptionFeatures(
        readiness_score=tier in PAID_TIERS,
        weakness_heatmap=tier in PAID_TIERS,
        comprehensive_analytics=tier in PAID_TIERS,
        benchmarking=tier == SubscriptionTier.SUMMIT.value,
        # Explanations are free on every tier
        ai_explanations=True,
    )


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(profile: EffectiveProfile):
    """Subscription tier and status as last mirrored from billing."""
    tier = profile.subscription_tier or SubscriptionTier.FREE.value
    return SubscriptionResponse(
        tier=tier,
        status=profile.subscription_status,
        current_period_end=profile.current_period_end,
        is_active=profile.subscription_status in LIVE_STATUSES,
        features=features_for(tier),
    )
