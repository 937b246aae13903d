"""
API routes for the project manager.
"""

from fastapi import APIRouter

from app.api import analyzers, calculations, expenses, projects, tasks

router = APIRouter()

# Include sub-routers
router.include_router(projects.router, prefix="/projects", tags=["projects"])
router.include_router(analyzers.router, prefix="/projects", tags=["analyzers"])
router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
router.include_router(tasks.lists_router, prefix="/task-lists", tags=["task lists"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
