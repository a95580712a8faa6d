"""Reservation management API endpoints"""

from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    RestaurantTableResponse,
)
from app.services.reservations import ReservationService
from app.api.auth import get_current_user, require_role, verify_reservation_access

router = APIRouter()


def get_reservation_service(db: AsyncSession = Depends(get_db)) -> ReservationService:
    return ReservationService(db)


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    # Malformed ids are left for the validator to reject with a typed error
    try:
        return UUID(str(value)) if value else None
    except ValueError:
        return None


def _as_int(value: str) -> Any:
    # Non-numeric input is left for the validator to reject with a typed error
    try:
        return int(value)
    except ValueError:
        return value


@router.get("", response_model=List[ReservationResponse])
async def list_reservations(
    status: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    current_user: User = Depends(require_role(UserRole.MANAGER)),
    service: ReservationService = Depends(get_reservation_service),
):
    """List all reservations, newest first (managers and admins)"""
    return await service.get_all(status=status, from_date=from_date, to_date=to_date)


@router.get("/user/{user_id}", response_model=List[ReservationResponse])
async def list_user_reservations(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """List a user's reservations, earliest first"""
    verify_reservation_access(user_id, current_user)
    return await service.get_by_user_id(user_id)


@router.get("/availability/tables", response_model=List[RestaurantTableResponse])
async def list_available_tables(
    restaurant_id: str,
    start: str,
    end: str,
    guest_count: str,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Tables that can seat the party for [start, end), smallest first"""
    return await service.get_available_tables(restaurant_id, start, end, _as_int(guest_count))


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Get reservation details"""
    reservation = await service.get_by_id(reservation_id)
    verify_reservation_access(reservation.user_id, current_user)
    return reservation


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Create a new reservation"""
    verify_reservation_access(_as_uuid(reservation_data.user_id), current_user)
    return await service.create(reservation_data.model_dump())


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Update reservation"""
    existing = await service.get_by_id(reservation_id)
    verify_reservation_access(existing.user_id, current_user)
    return await service.update(reservation_id, reservation_data.model_dump(exclude_unset=True))


@router.delete("/{reservation_id}", status_code=204)
async def delete_reservation(
    reservation_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    """Delete a reservation"""
    existing = await service.get_by_id(reservation_id)
    verify_reservation_access(existing.user_id, current_user)
    await service.delete(reservation_id)
    return Response(status_code=204)
