"""API router package."""

from fastapi import APIRouter

from taskhub.api.v1 import health, projects, tasks

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
