"""Aggregates all function routers into a single router."""

from fastapi import APIRouter

from invite_api.api.v1.config import router as config_router
from invite_api.api.v1.diagnostics import router as diagnostics_router
from invite_api.api.v1.gallery import router as gallery_router
from invite_api.api.v1.guests import router as guests_router
from invite_api.api.v1.health import router as health_router
from invite_api.api.v1.rsvp import router as rsvp_router
from invite_api.api.v1.uploads import router as uploads_router

v1_router = APIRouter(prefix="/functions/v1")

v1_router.include_router(config_router)
v1_router.include_router(diagnostics_router)
v1_router.include_router(gallery_router)
v1_router.include_router(guests_router)
v1_router.include_router(health_router)
v1_router.include_router(rsvp_router)
v1_router.include_router(uploads_router)
