"""Stub portal route grouping."""
from fastapi import APIRouter

from citizen_portal.api.routes.profile import router as profile_router
from citizen_portal.api.routes.settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(profile_router)
