"""
Admin API Schema Definitions.

Pydantic schemas for staff endpoints (users, dashboard, audit trail).
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List
from tracking_backend.app.models.enums import UserRole
from tracking_backend.app.schemas.shipment import ShipmentResponse


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
    location: Optional[str] = None
    is_active: bool
    last_sign_in_at: Optional[datetime] = None
    created_at: datetime
    shipment_count: int = 0

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class UserCreate(BaseModel):
    """Account created by a SuperAdmin."""
    email: EmailStr
    password: str = Field(..., min_length=8, description="Initial password (min 8 characters)")
    full_name: Optional[str] = Field(None, max_length=200)
    role: UserRole = UserRole.USER
    location: Optional[str] = Field(None, max_length=200)


class UserRoleUpdate(BaseModel):
    """Role and/or branch change. Only user and admin may be assigned."""
    role: Optional[UserRole] = None
    location: Optional[str] = Field(None, max_length=200)


class DashboardResponse(BaseModel):
    """Staff dashboard counters. User counts are only filled for SuperAdmins."""
    total_shipments: int
    active_shipments: int
    total_users: Optional[int] = None
    total_admins: Optional[int] = None
    recent_shipments: List[ShipmentResponse]
    is_superadmin: bool


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_email: Optional[str]
    action: str
    target_type: Optional[str]
    target_id: Optional[int]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
