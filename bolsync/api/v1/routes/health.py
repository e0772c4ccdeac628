"""
Health Check Routes
System status and diagnostics
"""
import logging
from fastapi import APIRouter

from bolsync.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}


@router.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "bolsync",
        "version": "1.0.0",
        "description": "Multi-tenant bol.com Retailer + Advertising API sync",
        "endpoints": {
            "health": "/health",
            "sync": {
                "main": "/bol/sync/start",
                "complete": "/bol/sync/complete",
                "extended": "/bol/sync/extended",
                "manual": "/bol/sync/manual",
                "trigger": "/bol/sync/trigger",
                "enqueue": "/bol/sync/enqueue/{sync_type}",
            },
        }
    }
