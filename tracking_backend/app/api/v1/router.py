"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from tracking_backend.app.api.v1.endpoints import (
    auth, shipments, tracking, admin, admin_shipments, locations
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Customer shipments
router.include_router(shipments.router)

# Public tracking (no auth)
router.include_router(tracking.router)

# Staff
router.include_router(admin_shipments.router)
router.include_router(admin.router)

# Locations
router.include_router(locations.router)
router.include_router(locations.admin_router)
