"""Interval-overlap conflict detection for bookable items"""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ErrorCode, storage_errors
from app.models.place import RestaurantTable
from app.models.reservation import NON_BLOCKING_STATUSES, ItemKind, Reservation
from app.services.items import ItemRef

logger = structlog.get_logger()


def overlapping(start: datetime, end: datetime):
    """SQL predicate for reservations overlapping the half-open interval [start, end)"""
    return (Reservation.start_datetime < end) & (Reservation.end_datetime > start)


def blocking():
    return Reservation.status.notin_(NON_BLOCKING_STATUSES)


async def find_conflicts(
    db: AsyncSession,
    ref: ItemRef,
    start: datetime,
    end: datetime,
    exclude_id: Optional[UUID] = None,
) -> List[Reservation]:
    """Blocking reservations on the item that overlap [start, end)"""
    query = select(Reservation).where(
        Reservation.item_kind == ref.kind.value,
        Reservation.item_id == ref.id,
        blocking(),
        overlapping(start, end),
    )
    if exclude_id is not None:
        query = query.where(Reservation.id != exclude_id)

    async with storage_errors(db, f"check availability of {ref.kind.value} {ref.id}"):
        result = await db.execute(query)
        return list(result.scalars().all())


async def reserved_item_ids(
    db: AsyncSession,
    kind: ItemKind,
    item_ids: Sequence[UUID],
    start: datetime,
    end: datetime,
) -> set:
    """Ids among item_ids holding a blocking reservation that overlaps [start, end)"""
    if not item_ids:
        return set()
    query = select(Reservation.item_id).where(
        Reservation.item_kind == kind.value,
        Reservation.item_id.in_(list(item_ids)),
        blocking(),
        overlapping(start, end),
    )
    async with storage_errors(db, f"fetch reservations for {kind.value} items"):
        result = await db.execute(query)
        return set(result.scalars().all())


async def check_availability(
    db: AsyncSession,
    ref: ItemRef,
    start: datetime,
    end: datetime,
    exclude_id: Optional[UUID] = None,
) -> None:
    """
    Raise ConflictError unless the item can be booked for [start, end).

    The interval check runs first: any overlapping blocking reservation
    other than exclude_id raises ItemAlreadyReserved. Restaurant tables are
    then also refused while their is_available flag is false, whatever the
    interval.
    """
    logger.info(
        "Checking availability",
        item_kind=ref.kind.value,
        item_id=str(ref.id),
        start=start.isoformat(),
        end=end.isoformat(),
    )

    conflicts = await find_conflicts(db, ref, start, end, exclude_id)
    if conflicts:
        conflicting = conflicts[0]
        logger.warning(
            "Item not available for requested period",
            item_kind=ref.kind.value,
            item_id=str(ref.id),
            conflicting_reservation_id=str(conflicting.id),
        )
        raise ConflictError(
            ErrorCode.ITEM_ALREADY_RESERVED,
            f"{ref.label} is already reserved during this time period",
            conflicting_id=str(conflicting.id),
        )

    if ref.kind is ItemKind.RESTAURANT_TABLE:
        async with storage_errors(db, f"check table availability of {ref.id}"):
            result = await db.execute(
                select(RestaurantTable.is_available).where(RestaurantTable.id == ref.id)
            )
            is_available = result.scalar_one_or_none()

        if is_available is False:
            logger.warning("Table is marked as unavailable", item_id=str(ref.id))
            raise ConflictError(
                ErrorCode.ITEM_TEMPORARILY_UNAVAILABLE,
                "This table is temporarily unavailable for reservations",
            )
