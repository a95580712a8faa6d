"""Database models"""

from app.models.user import User, UserRole
from app.models.place import Place, Restaurant, RestaurantTable, Accommodation, AccommodationUnit
from app.models.reservation import Reservation, ReservationStatus, ItemKind

__all__ = [
    "User",
    "UserRole",
    "Place",
    "Restaurant",
    "RestaurantTable",
    "Accommodation",
    "AccommodationUnit",
    "Reservation",
    "ReservationStatus",
    "ItemKind",
]
