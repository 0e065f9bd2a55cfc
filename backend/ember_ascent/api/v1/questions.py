"""
Ember Ascent - Questions API Router
"""
import dataclasses
import uuid

from fastapi import APIRouter

from ember_ascent.api.deps import Auth, DbSession
from ember_ascent.schemas.question import EmberScoreData, EmberScoreResponse
from ember_ascent.services.ember_score import EmberScoreService

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.get("/{question_id}/ember-score", response_model=EmberScoreResponse)
async def get_ember_score(question_id: uuid.UUID, auth: Auth, db: DbSession):
    """Recalculate and return the question's Ember trust score."""
    scored = await EmberScoreService(db).score_question(question_id)
    scored["breakdown"] = dataclasses.asdict(scored["breakdown"])
    return EmberScoreResponse(data=EmberScoreData(**scored))
