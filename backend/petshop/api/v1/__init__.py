"""Versioned API router."""

from fastapi import APIRouter

from . import appointments, health, packages, pets, reports, scheduling

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(
    appointments.router, prefix="/appointments", tags=["appointments"]
)
router.include_router(scheduling.router, prefix="/scheduling", tags=["scheduling"])
router.include_router(packages.router, tags=["packages"])
router.include_router(pets.router, prefix="/pets", tags=["pets"])
router.include_router(reports.router, prefix="/reports", tags=["reports"])

__all__ = ["router"]
