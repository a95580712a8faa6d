"""Shared test helpers"""

from datetime import datetime, timedelta

from app.api.auth import create_access_token
from app.core.clock import utcnow
from app.models.reservation import Reservation
from app.models.user import User


def slot(days: int = 30, hour: int = 18, hours: int = 2):
    """A future (start, end) pair `days` ahead, starting at `hour` and lasting `hours`"""
    start = (utcnow() + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=hours)


def iso(value: datetime) -> str:
    return value.isoformat()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


async def make_reservation(db, user, item, start, end, status="pending", kind="restaurant_table", **fields):
    """Insert a reservation row directly, bypassing the service"""
    reservation = Reservation(
        user_id=user.id,
        item_kind=kind,
        item_id=item.id,
        start_datetime=start,
        end_datetime=end,
        guest_count=fields.pop("guest_count", 2),
        status=status,
        **fields,
    )
    db.add(reservation)
    await db.commit()
    return reservation
