"""
Admin API Endpoints.

Staff dashboard, user administration and audit trail. Staff may read
users; only SuperAdmins create accounts, change roles and see the audit
trail.
"""

import math

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from tracking_backend.app.db.session import get_db
from tracking_backend.app.models.user import User
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.enums import UserRole
from tracking_backend.app.schemas.admin import (
    UserListItem, UserListResponse, UserCreate, UserRoleUpdate,
    DashboardResponse, AuditLogResponse, AuditTrailResponse
)
from tracking_backend.app.schemas.analytics import AnalyticsResponse
from tracking_backend.app.core.guards import require_staff, require_superadmin, is_superadmin
from tracking_backend.app.core.security import get_password_hash
from tracking_backend.app.services.analytics import AnalyticsService
from tracking_backend.app.services.audit import get_audit_trail, log_staff_action, AuditAction

router = APIRouter(prefix="/admin", tags=["Admin"])

# Roles a SuperAdmin may hand out; superadmin itself is seeded, never granted
ASSIGNABLE_ROLES = [UserRole.USER, UserRole.ADMIN]


def _user_item(user: User, shipment_count: int) -> UserListItem:
    item = UserListItem.model_validate(user)
    item.shipment_count = shipment_count or 0
    return item


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_user: dict = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
):
    """Shipment counters and recent shipments; user counts for SuperAdmins."""
    return await AnalyticsService.get_dashboard(db, include_user_counts=is_superadmin(current_user))


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    current_user: dict = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
):
    """Creation trend, status distribution and busiest routes."""
    return await AnalyticsService.get_analytics(db)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    search: str = Query(None, description="Email or name"),
    role: UserRole = Query(None, description="Filter by role"),
    current_user: dict = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
):
    """
    List accounts with the number of shipments each one submitted.
    """
    conditions = []
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        conditions.append(or_(User.email.ilike(pattern), User.full_name.ilike(pattern)))
    if role:
        conditions.append(User.role == role)

    total = (await db.execute(select(func.count(User.id)).where(*conditions))).scalar() or 0

    shipment_counts = (
        select(Shipment.user_id, func.count(Shipment.id).label("shipment_count"))
        .group_by(Shipment.user_id)
        .subquery()
    )
    query = (
        select(User, shipment_counts.c.shipment_count)
        .outerjoin(shipment_counts, shipment_counts.c.user_id == User.id)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)

    return UserListResponse(
        users=[_user_item(user, count) for user, count in result.all()],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit)
    )


@router.post("/users", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Create a user or admin account (SuperAdmin only)."""
    if user_data.role not in ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Role must be 'user' or 'admin'"
        )

    email = user_data.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=email,
        full_name=user_data.full_name,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        location=user_data.location,
        is_active=True
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.USER_CREATED,
        target_type="user",
        target_id=new_user.id,
        metadata={"email": new_user.email, "role": new_user.role.value}
    )

    return _user_item(new_user, 0)


@router.patch("/users/{user_id}", response_model=UserListItem)
async def update_user(
    update_data: UserRoleUpdate,
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Change an account's role and/or location (SuperAdmin only)."""
    fields = update_data.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )

    if update_data.role is not None and update_data.role not in ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Role must be 'user' or 'admin'"
        )

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.role == UserRole.SUPERADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="SuperAdmin accounts cannot be modified"
        )

    previous_role = user.role.value
    if update_data.role is not None:
        user.role = update_data.role
    if update_data.location is not None:
        user.location = update_data.location.strip() or None

    await db.commit()
    await db.refresh(user)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.USER_UPDATED,
        target_type="user",
        target_id=user.id,
        metadata={"previous_role": previous_role, "role": user.role.value, "location": user.location}
    )

    count = (await db.execute(
        select(func.count(Shipment.id)).where(Shipment.user_id == user.id)
    )).scalar()
    return _user_item(user, count)


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def list_audit_logs(
    action: str = Query(None, description="Filter by action"),
    target_type: str = Query(None, description="Filter by target type"),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail, most recent first (SuperAdmin only)."""
    logs, total = await get_audit_trail(db, action=action, target_type=target_type, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total
    )
