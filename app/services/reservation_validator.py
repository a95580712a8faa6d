"""Validation of reservation requests before conflict detection"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import to_utc_naive, utcnow
from app.core.errors import ErrorCode, NotFoundError, ValidationError, storage_errors
from app.models.reservation import ItemKind, Reservation, ReservationStatus
from app.models.user import User
from app.services.items import ItemRef, item_ref, resolve_item

logger = structlog.get_logger()

REQUIRED_FIELDS = ("user_id", "item_kind", "item_id", "start_datetime", "end_datetime", "guest_count")

PATCHABLE_FIELDS = ("start_datetime", "end_datetime", "guest_count", "status", "special_requests")


@dataclass
class ValidatedReservation:
    """A create request that passed every static check"""
    user_id: UUID
    ref: ItemRef
    item: Any
    start: datetime
    end: datetime
    guest_count: int
    status: Optional[ReservationStatus]
    special_requests: Optional[str]


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_datetime(value: Any, field: str) -> datetime:
    """Parse an ISO 8601 string or datetime into naive UTC"""
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc_naive(datetime.fromisoformat(text))
        except ValueError:
            pass
    raise ValidationError(ErrorCode.INVALID_DATE_FORMAT, f"Invalid date format for {field}: {value!r}")


def parse_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(ErrorCode.INVALID_IDENTIFIER, f"Invalid identifier for {field}: {value!r}")


def parse_item_kind(value: Any) -> ItemKind:
    try:
        return ItemKind(value)
    except ValueError:
        raise ValidationError(
            ErrorCode.INVALID_ITEM_KIND,
            f"Invalid item_kind: {value}. Must be 'restaurant_table' or 'accommodation_unit'",
        )


def parse_status(value: Any) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise ValidationError(ErrorCode.INVALID_STATUS, f"Invalid status: {value}")


def parse_guest_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(ErrorCode.INVALID_GUEST_COUNT, f"guest_count must be a positive integer, got {value!r}")
    return value


def check_date_range(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError(ErrorCode.INVALID_DATE_RANGE, "Start date must be before end date")


def check_capacity(ref: ItemRef, item: Any, guest_count: int) -> None:
    capacity = ref.capacity(item)
    if capacity is not None and capacity < guest_count:
        raise ValidationError(
            ErrorCode.CAPACITY_EXCEEDED,
            f"{ref.label} capacity ({capacity}) is less than requested guest count ({guest_count})",
        )


async def load_item(db: AsyncSession, ref: ItemRef) -> Any:
    async with storage_errors(db, f"fetch {ref.kind.value} {ref.id}"):
        item = await resolve_item(db, ref)
    if item is None:
        raise NotFoundError(ErrorCode.ITEM_NOT_FOUND, f"{ref.label} with ID {ref.id} not found")
    return item


async def ensure_user_exists(db: AsyncSession, user_id: UUID) -> None:
    async with storage_errors(db, f"fetch user {user_id}"):
        result = await db.execute(select(User.id).where(User.id == user_id))
        found = result.scalar_one_or_none()
    if found is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, f"User with ID {user_id} not found")


async def validate(
    db: AsyncSession,
    candidate: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> ValidatedReservation:
    """
    Validate a create request.

    Runs the checks in a fixed order and raises the first failure as a typed
    ValidationError or NotFoundError. Reads the item and user tables but
    writes nothing.
    """
    for field in REQUIRED_FIELDS:
        if _is_missing(candidate.get(field)):
            raise ValidationError(ErrorCode.MISSING_FIELD, f"Missing required field: {field}")

    kind = parse_item_kind(candidate["item_kind"])

    start = parse_datetime(candidate["start_datetime"], "start_datetime")
    end = parse_datetime(candidate["end_datetime"], "end_datetime")
    check_date_range(start, end)

    now = now or utcnow()
    if start < now:
        raise ValidationError(ErrorCode.PAST_DATE, "Cannot create reservations in the past")

    guest_count = parse_guest_count(candidate["guest_count"])
    ref = item_ref(kind, parse_uuid(candidate["item_id"], "item_id"))
    user_id = parse_uuid(candidate["user_id"], "user_id")

    item = await load_item(db, ref)
    await ensure_user_exists(db, user_id)
    check_capacity(ref, item, guest_count)

    status = None
    if not _is_missing(candidate.get("status")):
        status = parse_status(candidate["status"])

    return ValidatedReservation(
        user_id=user_id,
        ref=ref,
        item=item,
        start=start,
        end=end,
        guest_count=guest_count,
        status=status,
        special_requests=candidate.get("special_requests"),
    )


async def validate_patch(
    db: AsyncSession,
    reservation: Reservation,
    patch: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Validate an update patch against the current reservation.

    Only PATCHABLE_FIELDS are considered; the booked item and the owner are
    fixed for the life of a reservation. Past start dates are not rejected
    here. Returns the normalized changes keyed by column name.
    """
    changes: Dict[str, Any] = {}
    for field in PATCHABLE_FIELDS:
        if field in patch and patch[field] is not None:
            changes[field] = patch[field]

    if "status" in changes:
        changes["status"] = parse_status(changes["status"]).value

    if "start_datetime" in changes:
        changes["start_datetime"] = parse_datetime(changes["start_datetime"], "start_datetime")
    if "end_datetime" in changes:
        changes["end_datetime"] = parse_datetime(changes["end_datetime"], "end_datetime")
    if "start_datetime" in changes or "end_datetime" in changes:
        check_date_range(
            changes.get("start_datetime", reservation.start_datetime),
            changes.get("end_datetime", reservation.end_datetime),
        )

    if "guest_count" in changes:
        changes["guest_count"] = parse_guest_count(changes["guest_count"])
        ref = item_ref(reservation.item_kind, reservation.item_id)
        item = await load_item(db, ref)
        check_capacity(ref, item, changes["guest_count"])

    return changes
