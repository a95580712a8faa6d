"""Place-related models: places, restaurants and accommodations with their bookable items"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.database import Base


class Place(Base):
    """A listed place; restaurants and accommodations share its id"""
    __tablename__ = "places"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255))
    location = Column(String(255))
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)


class Restaurant(Base):
    """Restaurant details for a place"""
    __tablename__ = "restaurants"

    id = Column(Uuid, ForeignKey("places.id"), primary_key=True)
    cuisine_type = Column(String(100))
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    place = relationship("Place")
    tables = relationship("RestaurantTable", back_populates="restaurant")


class RestaurantTable(Base):
    """Bookable restaurant table"""
    __tablename__ = "restaurant_tables"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), index=True)
    table_name = Column(String(100))
    seating_capacity = Column(Integer)
    deposit = Column(Numeric(10, 2))

    # Derived from confirmed reservations; also set false by hand to hold a table out
    is_available = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="tables")


class Accommodation(Base):
    """Accommodation details for a place"""
    __tablename__ = "accommodations"

    id = Column(Uuid, ForeignKey("places.id"), primary_key=True)
    type = Column(String(50))  # hotel, hostel, guesthouse, ...
    rating = Column(Float)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    place = relationship("Place")
    units = relationship("AccommodationUnit", back_populates="accommodation")


class AccommodationUnit(Base):
    """Bookable accommodation unit (room, suite, dorm bed)"""
    __tablename__ = "accom_units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    accommodation_id = Column(Uuid, ForeignKey("accommodations.id"), nullable=False, index=True)
    name = Column(String(255))
    type = Column(String(50))
    max_occupancy = Column(Integer)
    unit_price = Column(Numeric(10, 2))
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    accommodation = relationship("Accommodation", back_populates="units")
