#!/usr/bin/env python3
"""
Seed script to create a demo restaurant, accommodation and users
"""

import asyncio
import uuid
from decimal import Decimal

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_TABLES = [
    ("T1", 2, Decimal("0")),
    ("T2", 2, Decimal("0")),
    ("T3", 4, Decimal("10.00")),
    ("T4", 4, Decimal("10.00")),
    ("T5", 6, Decimal("20.00")),
    ("Chef's table", 8, Decimal("50.00")),
]

DEMO_UNITS = [
    ("Single room", "room", 1, Decimal("45.00")),
    ("Double room", "room", 2, Decimal("70.00")),
    ("Family suite", "suite", 4, Decimal("120.00")),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models.place import Place, Restaurant, RestaurantTable, Accommodation, AccommodationUnit
    from app.models.user import User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        result = await db.execute(select(Place).where(Place.name == "Trattoria da Lucia"))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo places...")

        restaurant_place = Place(
            id=uuid.uuid4(),
            name="Trattoria da Lucia",
            location="Via Roma 12, Bologna",
            description="Family-run trattoria",
        )
        hotel_place = Place(
            id=uuid.uuid4(),
            name="Albergo Centrale",
            location="Piazza Maggiore 3, Bologna",
            description="Small hotel in the old town",
        )
        db.add_all([restaurant_place, hotel_place])
        await db.flush()

        restaurant = Restaurant(id=restaurant_place.id, cuisine_type="Italian")
        accommodation = Accommodation(id=hotel_place.id, type="hotel", rating=4.2)
        db.add_all([restaurant, accommodation])
        await db.flush()

        for name, capacity, deposit in DEMO_TABLES:
            db.add(RestaurantTable(
                restaurant_id=restaurant.id,
                table_name=name,
                seating_capacity=capacity,
                deposit=deposit,
                is_available=True,
            ))

        for name, unit_type, occupancy, price in DEMO_UNITS:
            db.add(AccommodationUnit(
                accommodation_id=accommodation.id,
                name=name,
                type=unit_type,
                max_occupancy=occupancy,
                unit_price=price,
            ))

        admin = User(
            email="admin@travel.example",
            hashed_password=pwd_context.hash("admin123"),
            full_name="Platform Admin",
            role=UserRole.ADMIN,
        )
        traveller = User(
            email="guest@travel.example",
            hashed_password=pwd_context.hash("guest123"),
            full_name="Demo Traveller",
            role=UserRole.CUSTOMER,
        )
        db.add_all([admin, traveller])

        await db.commit()

        print(f"""
Demo data created successfully!

Restaurant: {restaurant_place.name}
  ID: {restaurant.id}
  Tables: {len(DEMO_TABLES)}

Accommodation: {hotel_place.name}
  ID: {accommodation.id}
  Units: {len(DEMO_UNITS)}

Users:
  Admin:
    Email: admin@travel.example
    Password: admin123

  Customer:
    Email: guest@travel.example
    Password: guest123
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
