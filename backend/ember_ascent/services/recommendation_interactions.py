"""
Ember Ascent - Recommendation Interaction Service
Tracks what parents do with study recommendations so the dashboard can show
attempt counts and hide dismissed suggestions.
"""
import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ember_ascent.core.exceptions import NotFoundError
from ember_ascent.models.practice import (
    InteractionType,
    PracticeSession,
    RecommendationInteraction,
)
from ember_ascent.models.user import as_utc, utcnow
from ember_ascent.schemas.analytics import (
    RecommendationInteractionCreate,
    RecommendationStat,
    RecommendationStatsData,
)

logger = logging.getLogger(__name__)


def summarize_interactions(
    interactions: Iterable[RecommendationInteraction],
) -> RecommendationStatsData:
    """
    Fold interactions into one stat per (subject, topic).

    Stats appear in order of their most recent interaction. Only active
    dismissals count; the latest one supplies the dismissal details.
    """
    ordered = sorted(interactions, key=lambda i: as_utc(i.performed_at), reverse=True)
    stats: dict[tuple[str, str | None], RecommendationStat] = {}

    for interaction in ordered:
        key = (interaction.subject, interaction.topic)
        stat = stats.get(key)
        if stat is None:
            stat = stats[key] = RecommendationStat(
                subject=interaction.subject,
                topic=interaction.topic,
            )
        performed_at = as_utc(interaction.performed_at)

        if interaction.interaction_type == InteractionType.STARTED.value:
            stat.started_count += 1
        elif interaction.interaction_type == InteractionType.COMPLETED.value:
            stat.completed_count += 1
        elif interaction.is_active and not stat.is_dismissed:
            stat.is_dismissed = True
            stat.dismissed_at = performed_at
            stat.dismissed_reason = interaction.dismissed_reason
            continue
        else:
            continue

        if stat.last_attempted is None or performed_at > stat.last_attempted:
            stat.last_attempted = performed_at

    return RecommendationStatsData(stats=list(stats.values()), total_interactions=len(ordered))


class RecommendationInteractionService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        data: RecommendationInteractionCreate,
        performed_by: uuid.UUID,
    ) -> RecommendationInteraction:
        """
        Store one interaction. The caller has already checked the child.

        Raises:
            NotFoundError: the session does not belong to the child
        """
        if data.session_id is not None:
            result = await self.db.execute(
                select(PracticeSession.id).where(
                    PracticeSession.id == data.session_id,
                    PracticeSession.child_id == data.child_id,
                )
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Session not found")

        interaction = RecommendationInteraction(
            child_id=data.child_id,
            recommendation_type=data.recommendation_type.value,
            subject=data.subject,
            topic=data.topic or None,
            difficulty=data.difficulty,
            interaction_type=data.interaction_type.value,
            session_id=data.session_id,
            performed_by=performed_by,
            performed_at=utcnow(),
            is_active=True,
            dismissed_reason=data.dismissed_reason or None,
        )
        self.db.add(interaction)
        await self.db.flush()
        logger.info(
            f"Recommendation {interaction.interaction_type} for child {data.child_id}: "
            f"{data.subject}/{data.topic or '-'}"
        )
        return interaction

    async def get_stats(self, child_id: uuid.UUID) -> RecommendationStatsData:
        result = await self.db.execute(
            select(RecommendationInteraction).where(RecommendationInteraction.child_id == child_id)
        )
        return summarize_interactions(result.scalars().all())

    async def undo_dismissal(
        self,
        child_id: uuid.UUID,
        subject: str,
        topic: str | None = None,
    ) -> int:
        """Deactivate active dismissals for a subject/topic. Returns how many."""
        query = update(RecommendationInteraction).where(
            RecommendationInteraction.child_id == child_id,
            RecommendationInteraction.subject == subject,
            RecommendationInteraction.interaction_type == InteractionType.DISMISSED.value,
            RecommendationInteraction.is_active.is_(True),
        )
        if topic:
            query = query.where(RecommendationInteraction.topic == topic)
        else:
            query = query.where(RecommendationInteraction.topic.is_(None))

        result = await self.db.execute(
            query.values(is_active=False, updated_at=utcnow()).execution_options(
                synchronize_session=False
            )
        )
        await self.db.flush()
        logger.info(f"Restored {result.rowcount} dismissed recommendation(s) for child {child_id}")
        return result.rowcount
