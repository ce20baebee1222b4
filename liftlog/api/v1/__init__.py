"""API v1 router aggregation."""

from fastapi import APIRouter

from liftlog.api.v1.endpoints import auth, health, programs, workouts

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(programs.router, prefix="/programs", tags=["programs"])
api_router.include_router(workouts.router, prefix="/workouts", tags=["workouts"])
