"""
Reservation lifecycle operations.

ReservationService is the only entry point the HTTP layer uses. Each
operation runs against one AsyncSession and commits once, so the
reservation row and the derived table flag are written together.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ErrorCode, NotFoundError, storage_errors
from app.models.place import Accommodation, AccommodationUnit, Restaurant, RestaurantTable
from app.models.reservation import ItemKind, Reservation, ReservationStatus
from app.schemas.reservation import (
    AccommodationUnitDetail,
    ReservationResponse,
    RestaurantTableDetail,
    RestaurantTableResponse,
)
from app.services import conflicts, reservation_validator, table_availability
from app.services.items import item_ref
from app.services.locks import get_item_locks

logger = structlog.get_logger()


class ReservationService:
    """Create, read, update and delete reservations with conflict checks"""

    def __init__(self, db: AsyncSession, locks=None):
        self.db = db
        self.locks = locks or get_item_locks()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _select(self):
        return (
            select(Reservation)
            .options(selectinload(Reservation.user))
            .execution_options(populate_existing=True)
        )

    async def _fetch(self, reservation_id: UUID) -> Reservation:
        async with storage_errors(self.db, f"fetch reservation {reservation_id}"):
            result = await self.db.execute(
                self._select().where(Reservation.id == reservation_id)
            )
            reservation = result.scalar_one_or_none()
        if reservation is None:
            logger.warning("Reservation not found", reservation_id=str(reservation_id))
            raise NotFoundError(ErrorCode.RESERVATION_NOT_FOUND, f"Reservation with ID {reservation_id} not found")
        return reservation

    async def _enrich(self, reservations: Iterable[Reservation]) -> List[ReservationResponse]:
        """Attach the booked table or unit, with its place, to each reservation"""
        reservations = list(reservations)
        table_ids = {r.item_id for r in reservations if r.item_kind == ItemKind.RESTAURANT_TABLE.value}
        unit_ids = {r.item_id for r in reservations if r.item_kind == ItemKind.ACCOMMODATION_UNIT.value}

        tables: Dict[UUID, RestaurantTable] = {}
        units: Dict[UUID, AccommodationUnit] = {}
        async with storage_errors(self.db, "fetch reserved items"):
            if table_ids:
                result = await self.db.execute(
                    select(RestaurantTable)
                    .where(RestaurantTable.id.in_(table_ids))
                    .options(selectinload(RestaurantTable.restaurant).selectinload(Restaurant.place))
                    .execution_options(populate_existing=True)
                )
                tables = {table.id: table for table in result.scalars().all()}
            if unit_ids:
                result = await self.db.execute(
                    select(AccommodationUnit)
                    .where(AccommodationUnit.id.in_(unit_ids))
                    .options(selectinload(AccommodationUnit.accommodation).selectinload(Accommodation.place))
                    .execution_options(populate_existing=True)
                )
                units = {unit.id: unit for unit in result.scalars().all()}

        enriched = []
        for reservation in reservations:
            response = ReservationResponse.model_validate(reservation)
            if reservation.item_id in tables and reservation.item_kind == ItemKind.RESTAURANT_TABLE.value:
                response.restaurant_table = RestaurantTableDetail.model_validate(tables[reservation.item_id])
            elif reservation.item_id in units and reservation.item_kind == ItemKind.ACCOMMODATION_UNIT.value:
                response.accommodation_unit = AccommodationUnitDetail.model_validate(units[reservation.item_id])
            enriched.append(response)
        return enriched

    async def get_by_id(self, reservation_id: UUID) -> ReservationResponse:
        logger.info("Fetching reservation", reservation_id=str(reservation_id))
        reservation = await self._fetch(reservation_id)
        return (await self._enrich([reservation]))[0]

    async def get_all(
        self,
        status: Optional[str] = None,
        from_date: Any = None,
        to_date: Any = None,
    ) -> List[ReservationResponse]:
        """List reservations, newest first, optionally filtered by status and period"""
        logger.info(
            "Fetching reservations",
            status=status,
            from_date=str(from_date) if from_date else None,
            to_date=str(to_date) if to_date else None,
        )
        query = self._select()
        if status:
            query = query.where(Reservation.status == reservation_validator.parse_status(status).value)
        if from_date:
            query = query.where(Reservation.start_datetime >= reservation_validator.parse_datetime(from_date, "from_date"))
        if to_date:
            query = query.where(Reservation.end_datetime <= reservation_validator.parse_datetime(to_date, "to_date"))
        query = query.order_by(Reservation.created_at.desc())

        async with storage_errors(self.db, "fetch reservations"):
            result = await self.db.execute(query)
            reservations = result.scalars().all()
        return await self._enrich(reservations)

    async def get_by_user_id(self, user_id: UUID) -> List[ReservationResponse]:
        """List a user's reservations, earliest start first"""
        logger.info("Fetching reservations for user", user_id=str(user_id))
        await reservation_validator.ensure_user_exists(self.db, user_id)

        async with storage_errors(self.db, f"fetch reservations of user {user_id}"):
            result = await self.db.execute(
                self._select()
                .where(Reservation.user_id == user_id)
                .order_by(Reservation.start_datetime.asc())
            )
            reservations = result.scalars().all()
        return await self._enrich(reservations)

    async def get_available_tables(
        self,
        restaurant_id: Any,
        start_datetime: Any,
        end_datetime: Any,
        guest_count: Any,
    ) -> List[RestaurantTableResponse]:
        """
        Tables of a restaurant that can seat guest_count during [start, end).

        Candidates are flagged available and large enough; any with an
        overlapping blocking reservation is dropped. The smallest sufficient
        table comes first.
        """
        logger.info(
            "Fetching available tables",
            restaurant_id=str(restaurant_id),
            start=str(start_datetime),
            end=str(end_datetime),
            guest_count=guest_count,
        )
        start = reservation_validator.parse_datetime(start_datetime, "start_datetime")
        end = reservation_validator.parse_datetime(end_datetime, "end_datetime")
        reservation_validator.check_date_range(start, end)
        guest_count = reservation_validator.parse_guest_count(guest_count)
        restaurant_id = reservation_validator.parse_uuid(restaurant_id, "restaurant_id")

        async with storage_errors(self.db, f"fetch tables of restaurant {restaurant_id}"):
            result = await self.db.execute(
                select(RestaurantTable)
                .where(
                    RestaurantTable.restaurant_id == restaurant_id,
                    RestaurantTable.is_available.is_(True),
                    RestaurantTable.seating_capacity >= guest_count,
                )
                .order_by(RestaurantTable.seating_capacity.asc())
            )
            candidates = result.scalars().all()

        if not candidates:
            return []

        reserved = await conflicts.reserved_item_ids(
            self.db, ItemKind.RESTAURANT_TABLE, [table.id for table in candidates], start, end
        )
        available = [table for table in candidates if table.id not in reserved]
        logger.info("Found available tables", available=len(available), total=len(candidates))
        return [RestaurantTableResponse.model_validate(table) for table in available]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: Mapping[str, Any]) -> ReservationResponse:
        """Validate, check for conflicts and insert a reservation"""
        logger.info(
            "Creating reservation",
            item_kind=data.get("item_kind"),
            item_id=str(data.get("item_id")),
        )
        validated = await reservation_validator.validate(self.db, data)
        status = (validated.status or ReservationStatus.PENDING).value

        async with self.locks.hold(validated.ref):
            await conflicts.check_availability(self.db, validated.ref, validated.start, validated.end)

            reservation = Reservation(
                user_id=validated.user_id,
                item_kind=validated.ref.kind.value,
                item_id=validated.ref.id,
                start_datetime=validated.start,
                end_datetime=validated.end,
                guest_count=validated.guest_count,
                status=status,
                special_requests=validated.special_requests,
            )
            async with storage_errors(self.db, "create reservation"):
                self.db.add(reservation)
                await self.db.flush()

            await table_availability.apply_status_transition(
                self.db, reservation.item_kind, reservation.item_id, None, status
            )

            async with storage_errors(self.db, "create reservation"):
                await self.db.commit()

        logger.info("Reservation created", reservation_id=str(reservation.id), status=status)
        return await self.get_by_id(reservation.id)

    async def update(self, reservation_id: UUID, patch: Mapping[str, Any]) -> ReservationResponse:
        """
        Apply a patch to a reservation.

        Changing either end of the interval re-runs conflict detection,
        excluding the reservation itself. A status change on a table
        reservation is mirrored onto the table flag. Any status may follow
        any other.
        """
        logger.info("Updating reservation", reservation_id=str(reservation_id))
        current = await self._fetch(reservation_id)
        changes = await reservation_validator.validate_patch(self.db, current, patch)
        ref = item_ref(current.item_kind, current.item_id)
        old_status = current.status

        async with self.locks.hold(ref):
            if "start_datetime" in changes or "end_datetime" in changes:
                await conflicts.check_availability(
                    self.db,
                    ref,
                    changes.get("start_datetime", current.start_datetime),
                    changes.get("end_datetime", current.end_datetime),
                    exclude_id=current.id,
                )

            async with storage_errors(self.db, f"update reservation {reservation_id}"):
                for field, value in changes.items():
                    setattr(current, field, value)
                await self.db.flush()

            if "status" in changes:
                await table_availability.apply_status_transition(
                    self.db, current.item_kind, current.item_id, old_status, changes["status"]
                )

            async with storage_errors(self.db, f"update reservation {reservation_id}"):
                await self.db.commit()

        logger.info(
            "Reservation updated",
            reservation_id=str(reservation_id),
            fields=sorted(changes),
            old_status=old_status,
            status=current.status,
        )
        return await self.get_by_id(reservation_id)

    async def delete(self, reservation_id: UUID) -> None:
        """Delete a reservation, releasing its table if it was confirmed"""
        logger.info("Deleting reservation", reservation_id=str(reservation_id))
        current = await self._fetch(reservation_id)

        async with storage_errors(self.db, f"delete reservation {reservation_id}"):
            await self.db.delete(current)
            await self.db.flush()

        await table_availability.apply_deletion(self.db, current)

        async with storage_errors(self.db, f"delete reservation {reservation_id}"):
            await self.db.commit()

        logger.info("Reservation deleted", reservation_id=str(reservation_id))
