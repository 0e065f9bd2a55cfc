"""Ember Ascent - API Router."""
from fastapi import APIRouter

from ember_ascent.api.v1.auth import router as auth_router
from ember_ascent.api.v1.children import router as children_router
from ember_ascent.api.v1.profile import router as profile_router
from ember_ascent.api.v1.practice import router as practice_router
from ember_ascent.api.v1.analytics import router as analytics_router
from ember_ascent.api.v1.explanations import router as explanations_router
from ember_ascent.api.v1.questions import router as questions_router
from ember_ascent.api.v1.reports import router as reports_router
from ember_ascent.api.v1.validate import router as validate_router
from ember_ascent.api.v1.admin import router as admin_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(children_router)
api_router.include_router(profile_router)
api_router.include_router(practice_router)
api_router.include_router(analytics_router)
api_router.include_router(explanations_router)
api_router.include_router(questions_router)
api_router.include_router(reports_router)
api_router.include_router(validate_router)
api_router.include_router(admin_router)
