"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from hirepath.api.routes.auth_routes import router as auth_router
from hirepath.api.routes.user_routes import router as user_router
from hirepath.api.routes.application_routes import router as application_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(application_router)
