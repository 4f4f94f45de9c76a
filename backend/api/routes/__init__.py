"""API Routes."""

from fastapi import APIRouter

from .ai import router as ai_router
from .health import router as health_router
from .user import router as user_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["Health"])
api_router.include_router(ai_router)
api_router.include_router(user_router)
