"""Reservation schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID
from pydantic import BaseModel


class ReservationCreate(BaseModel):
    """
    Create reservation request.

    Fields are deliberately loose; the reservation validator owns the
    checks so that every rejection carries a typed error code.
    """
    user_id: Any = None
    item_kind: Any = None
    item_id: Any = None
    start_datetime: Any = None
    end_datetime: Any = None
    guest_count: Any = None
    status: Any = None
    special_requests: Optional[str] = None


class ReservationUpdate(BaseModel):
    """Update reservation request; loose for the same reason as ReservationCreate"""
    start_datetime: Any = None
    end_datetime: Any = None
    guest_count: Any = None
    status: Any = None
    special_requests: Optional[str] = None


class UserSummary(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str]

    class Config:
        from_attributes = True


class PlaceSummary(BaseModel):
    id: UUID
    name: Optional[str]
    location: Optional[str]

    class Config:
        from_attributes = True


class RestaurantSummary(BaseModel):
    id: UUID
    cuisine_type: Optional[str]
    place: Optional[PlaceSummary]

    class Config:
        from_attributes = True


class AccommodationSummary(BaseModel):
    id: UUID
    type: Optional[str]
    place: Optional[PlaceSummary]

    class Config:
        from_attributes = True


class RestaurantTableResponse(BaseModel):
    """Restaurant table"""
    id: UUID
    restaurant_id: Optional[UUID]
    table_name: Optional[str]
    seating_capacity: Optional[int]
    deposit: Optional[Decimal]
    is_available: bool

    class Config:
        from_attributes = True


class RestaurantTableDetail(RestaurantTableResponse):
    restaurant: Optional[RestaurantSummary] = None


class AccommodationUnitDetail(BaseModel):
    id: UUID
    accommodation_id: UUID
    name: Optional[str]
    type: Optional[str]
    max_occupancy: Optional[int]
    accommodation: Optional[AccommodationSummary] = None

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    """Reservation with the user and booked item resolved"""
    id: UUID
    user_id: UUID
    item_kind: str
    item_id: UUID
    start_datetime: datetime
    end_datetime: datetime
    guest_count: int
    status: str
    special_requests: Optional[str]
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    restaurant_table: Optional[RestaurantTableDetail] = None
    accommodation_unit: Optional[AccommodationUnitDetail] = None

    class Config:
        from_attributes = True
