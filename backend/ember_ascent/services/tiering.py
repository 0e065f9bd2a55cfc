"""
Ember Ascent - Score Tiering
Fixed, per-metric threshold tables used to label analytics values.

Each metric keeps its own cut points.
All lower bounds are inclusive. A zero-data input always maps to the
``no_data`` level instead of the lowest numeric bucket.
"""
from dataclasses import dataclass

NO_DATA = "no_data"


@dataclass(frozen=True)
class TierResult:
    """A tier label plus what the dashboard needs to render it."""
    level: str
    label: str
    classes: str


NO_DATA_TIER = TierResult(NO_DATA, "No data", "text-slate-500 bg-slate-50")


# ============================================================================
# Heatmap mastery: >=85 mastered, >=75 proficient, >=65 developing
# ============================================================================

MASTERY_ORDER = ("needs_practice", "developing", "proficient", "mastered")

_MASTERY_TIERS = (
    (85, TierResult("mastered", "Mastered", "text-green-600 bg-green-50")),
    (75, TierResult("proficient", "Proficient", "text-blue-600 bg-blue-50")),
    (65, TierResult("developing", "Developing", "text-amber-600 bg-amber-50")),
)
_NEEDS_PRACTICE = TierResult("needs_practice", "Needs Practice", "text-red-600 bg-red-50")


def mastery_tier(accuracy: float | None, total: int | None = None) -> TierResult:
    if accuracy is None or total == 0:
        return NO_DATA_TIER
    for threshold, tier in _MASTERY_TIERS:
        if accuracy >= threshold:
            return tier
    return _NEEDS_PRACTICE


def mastery_level(accuracy: float | None, total: int | None = None) -> str:
    return mastery_tier(accuracy, total).level


# ============================================================================
# Readiness: >=85 excellent, >=70 good, >=55 developing
# ============================================================================

READINESS_ORDER = ("needs_focus", "developing", "good", "excellent")

_READINESS_TIERS = (
    (85, TierResult("excellent", "Excellent", "text-green-600 bg-green-50")),
    (70, TierResult("good", "Good", "text-blue-600 bg-blue-50")),
    (55, TierResult("developing", "Developing", "text-amber-600 bg-amber-50")),
)
_NEEDS_FOCUS = TierResult("needs_focus", "Needs Focus", "text-red-600 bg-red-50")


def readiness_tier(score: float | None, total: int | None = None) -> TierResult:
    if score is None or total == 0:
        return NO_DATA_TIER
    for threshold, tier in _READINESS_TIERS:
        if score >= threshold:
            return tier
    return _NEEDS_FOCUS


# ============================================================================
# Ember trust score: >=90 verified, >=75 confident, else draft
# ============================================================================

_TRUST_TIERS = (
    (90, TierResult("verified", "Verified", "text-blue-600 bg-blue-50")),
    (75, TierResult("confident", "Confident", "text-green-600 bg-green-50")),
)
_DRAFT = TierResult("draft", "Draft", "text-slate-600 bg-slate-50")

TRUST_DESCRIPTIONS = {
    "verified": "Expert reviewed with strong community validation",
    "confident": "Reviewed or well-validated by the community",
    "draft": "AI-generated, meets quality threshold",
}


def trust_tier(score: float | None) -> TierResult:
    if score is None:
        return NO_DATA_TIER
    for threshold, tier in _TRUST_TIERS:
        if score >= threshold:
            return tier
    return _DRAFT


# ============================================================================
# Learning health risk indicators
# ============================================================================

RISK_ORDER = ("healthy", "warning", "critical", "severe")

_HEALTHY = TierResult("healthy", "Healthy", "text-green-600 bg-green-50")


def _percentage_risk(value: float | None) -> TierResult:
    """Shared bands for rush factor and fatigue: <10 healthy, <=20 monitor, else act."""
    if value is None or value <= 0:
        return NO_DATA_TIER
    if value < 10:
        return _HEALTHY
    if value <= 20:
        return TierResult("warning", "Monitor", "text-amber-600 bg-amber-50")
    return TierResult("critical", "Action Needed", "text-red-600 bg-red-50")


def rush_factor_level(percentage: float | None) -> TierResult:
    """Share of answers given in under ten seconds."""
    return _percentage_risk(percentage)


def fatigue_level(drop_off: float | None) -> TierResult:
    """Accuracy lost between the first and second half of a session."""
    return _percentage_risk(drop_off)


def stagnant_topics_level(count: int | None) -> TierResult:
    if count is None or count <= 0:
        return _HEALTHY
    if count <= 2:
        return TierResult("warning", "Needs Attention", "text-amber-600 bg-amber-50")
    if count <= 5:
        return TierResult("critical", "High Priority", "text-orange-600 bg-orange-50")
    return TierResult("severe", "Critical", "text-red-600 bg-red-50")


# ============================================================================
# Shared helpers
# ============================================================================

def priority_for_accuracy(accuracy: float) -> str:
    """<50 high, <65 medium, else low."""
    if accuracy < 50:
        return "high"
    if accuracy < 65:
        return "medium"
    return "low"


def trend_direction(current: float, previous: float) -> str:
    """Direction of change using a 5% threshold relative to the previous value."""
    diff = current - previous
    threshold = abs(previous) * 0.05
    if diff > threshold:
        return "up"
    if diff < -threshold:
        return "down"
    return "stable"


def confidence_for(total_questions: int) -> tuple[str, int, str]:
    """Return (level, questions_needed, message) for a readiness estimate."""
    if total_questions >= 100:
        return "high", 0, "High confidence based on extensive practice data."
    if total_questions >= 30:
        needed = 100 - total_questions
        return "medium", needed, (
            f"Good confidence. Answer {needed} more questions to improve accuracy."
        )
    needed = 30 - total_questions
    return "low", needed, f"Limited data. Answer {needed} more questions for a reliable score."
