"""Test configuration and fixtures"""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from app.main import app
from app.database import Base, get_db
from app.models.place import Place, Restaurant, RestaurantTable, Accommodation, AccommodationUnit
from app.models.user import User, UserRole
from app.api.auth import get_password_hash
from app.services.locks import LocalItemLocks
from app.services.reservations import ReservationService
from tests.helpers import auth_headers, iso, slot


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_user(test_db):
    """Create a customer"""
    user = User(
        id=uuid4(),
        email="traveller@example.com",
        hashed_password=get_password_hash("testpass123"),
        full_name="Test Traveller",
        role=UserRole.CUSTOMER,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def other_user(test_db):
    """Create a second customer"""
    user = User(
        id=uuid4(),
        email="other@example.com",
        hashed_password=get_password_hash("otherpass123"),
        full_name="Other Traveller",
        role=UserRole.CUSTOMER,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def test_admin_user(test_db):
    """Create an admin"""
    user = User(
        id=uuid4(),
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def test_restaurant(test_db):
    """Create a restaurant with tables seating 2, 4 and 6"""
    place = Place(id=uuid4(), name="Test Trattoria", location="1 Test Street")
    test_db.add(place)
    await test_db.flush()

    restaurant = Restaurant(id=place.id, cuisine_type="Italian")
    test_db.add(restaurant)
    await test_db.commit()

    return restaurant


@pytest.fixture
async def test_tables(test_db, test_restaurant):
    """Tables keyed by seating capacity"""
    tables = {}
    # Inserted largest first so ordering by capacity is not insertion order
    for capacity in (6, 4, 2):
        table = RestaurantTable(
            id=uuid4(),
            restaurant_id=test_restaurant.id,
            table_name=f"T{capacity}",
            seating_capacity=capacity,
            deposit=Decimal("0"),
            is_available=True,
        )
        test_db.add(table)
        tables[capacity] = table

    await test_db.commit()
    return tables


@pytest.fixture
async def test_table(test_tables):
    """The four-seat table"""
    return test_tables[4]


@pytest.fixture
async def test_unit(test_db):
    """Create an accommodation with a two-person unit"""
    place = Place(id=uuid4(), name="Test Hotel", location="2 Test Square")
    test_db.add(place)
    await test_db.flush()

    accommodation = Accommodation(id=place.id, type="hotel", rating=4.0)
    test_db.add(accommodation)
    await test_db.flush()

    unit = AccommodationUnit(
        id=uuid4(),
        accommodation_id=accommodation.id,
        name="Double room",
        type="room",
        max_occupancy=2,
        is_available=True,
    )
    test_db.add(unit)
    await test_db.commit()

    return unit


@pytest.fixture
def service(test_db):
    """Reservation service over the test session"""
    return ReservationService(test_db, locks=LocalItemLocks())


@pytest.fixture
def reservation_data(test_user, test_table):
    """Build a valid create payload for the four-seat table"""
    def build(**overrides):
        start, end = slot()
        data = {
            "user_id": str(test_user.id),
            "item_kind": "restaurant_table",
            "item_id": str(test_table.id),
            "start_datetime": iso(start),
            "end_datetime": iso(end),
            "guest_count": 4,
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    client.headers.update(auth_headers(test_user))
    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    client.headers.update(auth_headers(test_admin_user))
    return client
