"""
Location Management Endpoints.

Signed-in users read the active locations offered in the shipment form;
SuperAdmins maintain the list. Deleting a location only deactivates it so
shipments referencing it by name are unaffected.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from tracking_backend.app.db.session import get_db
from tracking_backend.app.models.location import Location
from tracking_backend.app.schemas.location import (
    LocationCreate, LocationUpdate, LocationResponse, LocationListResponse
)
from tracking_backend.app.core.guards import require_superadmin
from tracking_backend.app.core.dependencies import get_current_user
from tracking_backend.app.services.audit import log_staff_action, AuditAction

router = APIRouter(prefix="/locations", tags=["Locations"])
admin_router = APIRouter(prefix="/admin/locations", tags=["Admin - Locations"])


async def _find_by_name(db: AsyncSession, name: str):
    result = await db.execute(select(Location).where(func.lower(Location.name) == name.lower()))
    return result.scalar_one_or_none()


async def _get_or_404(db: AsyncSession, location_id: int) -> Location:
    location = await db.get(Location, location_id)
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Location not found"
        )
    return location


@router.get("", response_model=LocationListResponse)
async def list_active_locations(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active locations sorted by name."""
    result = await db.execute(
        select(Location).where(Location.is_active == True).order_by(Location.name)
    )
    locations = result.scalars().all()

    return LocationListResponse(
        locations=[LocationResponse.model_validate(loc) for loc in locations],
        total=len(locations)
    )


@admin_router.get("", response_model=LocationListResponse)
async def list_all_locations(
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Every location, active or not, sorted by name."""
    result = await db.execute(select(Location).order_by(Location.name))
    locations = result.scalars().all()

    return LocationListResponse(
        locations=[LocationResponse.model_validate(loc) for loc in locations],
        total=len(locations)
    )


@admin_router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a location, or re-activate an existing one with the same name.
    """
    name = location_data.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location name is required"
        )

    location = await _find_by_name(db, name)
    if location:
        location.is_active = True
    else:
        location = Location(name=name, is_active=True)
        db.add(location)

    await db.commit()
    await db.refresh(location)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.LOCATION_CREATED,
        target_type="location",
        target_id=location.id,
        metadata={"name": location.name}
    )

    return LocationResponse.model_validate(location)


@admin_router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_data: LocationUpdate,
    location_id: int = Path(..., description="Location ID"),
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Rename or (de)activate a location."""
    location = await _get_or_404(db, location_id)

    if location_data.name is not None:
        name = location_data.name.strip()
        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Location name is required"
            )
        clash = await _find_by_name(db, name)
        if clash and clash.id != location.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Location '{name}' already exists"
            )
        location.name = name

    if location_data.is_active is not None:
        location.is_active = location_data.is_active

    await db.commit()
    await db.refresh(location)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.LOCATION_UPDATED,
        target_type="location",
        target_id=location.id,
        metadata=location_data.model_dump(exclude_none=True)
    )

    return LocationResponse.model_validate(location)


@admin_router.delete("/{location_id}", response_model=LocationResponse)
async def deactivate_location(
    location_id: int = Path(..., description="Location ID"),
    current_user: dict = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a location (soft delete)."""
    location = await _get_or_404(db, location_id)
    location.is_active = False

    await db.commit()
    await db.refresh(location)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.LOCATION_DEACTIVATED,
        target_type="location",
        target_id=location.id,
        metadata={"name": location.name}
    )

    return LocationResponse.model_validate(location)
