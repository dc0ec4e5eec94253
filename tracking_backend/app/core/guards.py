"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from tracking_backend.app.models.enums import UserRole, STAFF_ROLES
from tracking_backend.app.core.dependencies import get_current_user


def _role_of(current_user: dict) -> Optional[UserRole]:
    try:
        return UserRole(current_user.get("role"))
    except ValueError:
        return None


def is_staff(current_user: dict) -> bool:
    """True for admins and superadmins."""
    return _role_of(current_user) in STAFF_ROLES


def is_superadmin(current_user: dict) -> bool:
    """True for elevated staff."""
    return _role_of(current_user) == UserRole.SUPERADMIN


def require_role(allowed_roles: List[UserRole], message: Optional[str] = None):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/shipments")
        async def list_shipments(current_user: dict = Depends(require_role(STAFF_ROLES))):
            ...

    Args:
        allowed_roles: Roles allowed to access the endpoint
        message: Optional error message for the 403 response

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role = _role_of(current_user)

        if user_role is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message or f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


# Shipment progress updates, dashboards, exports
require_staff = require_role(STAFF_ROLES, "Admin access required")

# Deletes, receiver/weight corrections, user and location management
require_superadmin = require_role([UserRole.SUPERADMIN], "SuperAdmin access required")


class OwnershipGuard:
    """
    Ownership guard for shipments.

    Users only see their own shipments; staff see all of them.

    Usage:
        ownership_guard = OwnershipGuard()
        shipment = await repository.get(shipment_id)
        ownership_guard.enforce(shipment.user_id, current_user, "shipment")
    """

    def enforce(
        self,
        resource_owner_id: int,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless the caller owns the resource or is staff.

        Raises:
            HTTPException 403 if ownership check fails
        """
        if is_staff(current_user):
            return
        if current_user.get("user_id") != resource_owner_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. You do not have permission to access this {resource_name}."
            )

    def filter_by_ownership(self, current_user: dict) -> Optional[int]:
        """
        Owner id to filter queries by; None for staff (no filtering).
        """
        if is_staff(current_user):
            return None
        return current_user.get("user_id")
