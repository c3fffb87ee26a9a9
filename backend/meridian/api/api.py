"""
Main API router for Meridian

This module combines all API endpoint routers.
"""

from fastapi import APIRouter

from meridian.api.endpoints import admin, auth, trades

# Create main API router
api_router = APIRouter()

# Include endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(trades.router, tags=["trades"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
