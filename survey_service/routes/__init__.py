"""APIRouter registration for the survey service."""

from __future__ import annotations

from fastapi import APIRouter

from survey_service.routes.admin import router as admin_router
from survey_service.routes.survey import router as survey_router

api_router = APIRouter()
api_router.include_router(survey_router, tags=["Survey"])
api_router.include_router(admin_router, tags=["Admin"])

__all__ = ["api_router"]
