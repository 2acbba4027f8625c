from fastapi import APIRouter

from goalplan.api.v1.routes import budget, goals, plan, progress

api_router = APIRouter()

api_router.include_router(goals.router)
api_router.include_router(budget.router)
api_router.include_router(plan.router)
api_router.include_router(progress.router)
