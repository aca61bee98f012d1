"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from startupteam.api.routes.auth_routes import router as auth_router
from startupteam.api.routes.founder_routes import router as founder_router
from startupteam.api.routes.member_routes import router as member_router
from startupteam.api.routes.upload_routes import router as upload_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(founder_router)
api_router.include_router(member_router)
api_router.include_router(upload_router)
