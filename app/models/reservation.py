"""Reservation model"""

import enum
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Index, Uuid
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.database import Base


class ItemKind(str, enum.Enum):
    """Kinds of bookable items sharing the reservations table"""
    RESTAURANT_TABLE = "restaurant_table"
    ACCOMMODATION_UNIT = "accommodation_unit"

    @classmethod
    def _missing_(cls, value):
        # Legacy clients send the accommodation kind under its table name
        if value == "accom_unit":
            return cls.ACCOMMODATION_UNIT
        return None


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Statuses that release the item for other bookings
NON_BLOCKING_STATUSES = (ReservationStatus.CANCELLED.value, ReservationStatus.NO_SHOW.value)


class Reservation(Base):
    """Reservations of restaurant tables and accommodation units"""
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_item", "item_kind", "item_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Booked item; item_id points into restaurant_tables or accom_units depending on item_kind
    item_kind = Column(String(50), nullable=False)
    item_id = Column(Uuid, nullable=False)

    # Half-open interval [start_datetime, end_datetime), naive UTC
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)

    guest_count = Column(Integer, nullable=False)

    # Status
    status = Column(String(50), nullable=False, default=ReservationStatus.PENDING.value)

    special_requests = Column(Text)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="reservations")

    @property
    def is_blocking(self) -> bool:
        return self.status not in NON_BLOCKING_STATUSES
