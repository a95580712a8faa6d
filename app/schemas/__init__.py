"""Pydantic schemas for request/response validation"""

from app.schemas.auth import (
    Token,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    RestaurantTableResponse,
)

__all__ = [
    "Token",
    "RefreshRequest",
    "RegisterRequest",
    "UserResponse",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationResponse",
    "RestaurantTableResponse",
]
