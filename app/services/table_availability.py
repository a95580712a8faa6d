"""
Maintenance of the derived RestaurantTable.is_available flag.

The flag is a listing fast path mirrored from reservation status
transitions. Reservations remain the source of truth: reconcile rebuilds
every flag from them after a failed or out-of-band write.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.errors import storage_errors
from app.models.place import RestaurantTable
from app.models.reservation import ItemKind, Reservation, ReservationStatus

logger = structlog.get_logger()

CONFIRMED = ReservationStatus.CONFIRMED.value
CANCELLED = ReservationStatus.CANCELLED.value


def flag_after_transition(old_status: Optional[str], new_status: str) -> Optional[bool]:
    """
    Flag value implied by a table reservation moving from old_status to new_status.

    old_status is None for a newly created reservation. Returns None when
    the transition leaves the flag alone.
    """
    if new_status == old_status:
        return None
    if new_status == CONFIRMED:
        return False
    if new_status == CANCELLED and old_status == CONFIRMED:
        return True
    return None


async def set_table_availability(db: AsyncSession, table_id: UUID, is_available: bool) -> None:
    """Stage the flag update in the caller's transaction"""
    logger.info("Updating table availability", table_id=str(table_id), is_available=is_available)
    async with storage_errors(db, f"update table availability of {table_id}"):
        await db.execute(
            update(RestaurantTable)
            .where(RestaurantTable.id == table_id)
            .values(is_available=is_available)
        )


async def apply_status_transition(
    db: AsyncSession,
    item_kind: str,
    item_id: UUID,
    old_status: Optional[str],
    new_status: str,
) -> None:
    """Mirror a status transition onto the table flag; other item kinds are untouched"""
    if item_kind != ItemKind.RESTAURANT_TABLE.value:
        return
    flag = flag_after_transition(old_status, new_status)
    if flag is not None:
        await set_table_availability(db, item_id, flag)


async def apply_deletion(db: AsyncSession, reservation: Reservation) -> None:
    """Release the table held by a deleted confirmed reservation"""
    if reservation.item_kind == ItemKind.RESTAURANT_TABLE.value and reservation.status == CONFIRMED:
        await set_table_availability(db, reservation.item_id, True)


async def reconcile_table_availability(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> List[Tuple[UUID, bool]]:
    """
    Rebuild every table's flag from the reservations table and commit.

    A table is unavailable while it holds a confirmed reservation that has
    not ended yet, and available otherwise. Manual hold-outs are cleared.
    Returns the (table_id, new_flag) pairs that changed.
    """
    now = now or utcnow()

    async with storage_errors(db, "reconcile table availability"):
        held_result = await db.execute(
            select(Reservation.item_id).where(
                Reservation.item_kind == ItemKind.RESTAURANT_TABLE.value,
                Reservation.status == CONFIRMED,
                Reservation.end_datetime > now,
            )
        )
        held = set(held_result.scalars().all())

        tables_result = await db.execute(select(RestaurantTable.id, RestaurantTable.is_available))
        corrections = []
        for table_id, is_available in tables_result.all():
            expected = table_id not in held
            if is_available != expected:
                corrections.append((table_id, expected))

        for table_id, expected in corrections:
            await db.execute(
                update(RestaurantTable)
                .where(RestaurantTable.id == table_id)
                .values(is_available=expected)
            )
        await db.commit()

    for table_id, expected in corrections:
        logger.info("Reconciled table availability", table_id=str(table_id), is_available=expected)
    logger.info("Table availability reconciled", corrections=len(corrections))

    return corrections
