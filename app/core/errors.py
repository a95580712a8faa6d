"""
Reservation error taxonomy and the helpers that map it onto HTTP.

Every failure the reservation engine reports is a ReservationError subclass
carrying an HTTP status and a stable machine-readable code. Routes never
build HTTPExceptions for these; the handler registered in app.main does.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Name of the PostgreSQL exclusion constraint created by migration 001.
OVERLAP_CONSTRAINT_NAME = "reservations_no_overlap"


class ErrorCode(str, Enum):
    """Stable codes returned alongside the error message"""
    MISSING_FIELD = "MissingField"
    INVALID_ITEM_KIND = "InvalidItemKind"
    INVALID_DATE_FORMAT = "InvalidDateFormat"
    INVALID_DATE_RANGE = "InvalidDateRange"
    PAST_DATE = "PastDate"
    INVALID_STATUS = "InvalidStatus"
    INVALID_GUEST_COUNT = "InvalidGuestCount"
    INVALID_IDENTIFIER = "InvalidIdentifier"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    ITEM_NOT_FOUND = "ItemNotFound"
    USER_NOT_FOUND = "UserNotFound"
    RESERVATION_NOT_FOUND = "ReservationNotFound"
    ITEM_ALREADY_RESERVED = "ItemAlreadyReserved"
    ITEM_TEMPORARILY_UNAVAILABLE = "ItemTemporarilyUnavailable"
    STORAGE_FAILURE = "StorageFailure"
    INTERNAL_ERROR = "InternalError"


class ReservationError(Exception):
    """Base class for typed reservation failures"""
    status_code = 500

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ValidationError(ReservationError):
    status_code = 400


class NotFoundError(ReservationError):
    status_code = 404


class ConflictError(ReservationError):
    status_code = 409

    def __init__(self, code: ErrorCode, message: str, conflicting_id: Optional[str] = None):
        super().__init__(code, message)
        self.conflicting_id = conflicting_id


class InternalError(ReservationError):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(ErrorCode.STORAGE_FAILURE, message)


def _is_overlap_violation(exc: SQLAlchemyError) -> bool:
    return isinstance(exc, IntegrityError) and OVERLAP_CONSTRAINT_NAME in str(exc.orig)


@asynccontextmanager
async def storage_errors(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Wrap a block of storage I/O.

    SQLAlchemy failures roll the session back and surface as InternalError
    naming the action that failed. A violation of the overlap exclusion
    constraint is a lost race with a concurrent writer and surfaces as
    ItemAlreadyReserved instead.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        if _is_overlap_violation(exc):
            logger.warning("Overlap constraint rejected write", action=action)
            raise ConflictError(
                ErrorCode.ITEM_ALREADY_RESERVED,
                "Item is already reserved during this time period",
            ) from exc
        logger.error("Storage failure", action=action, error=str(exc))
        raise InternalError(f"Failed to {action}: {exc}") from exc


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    """Render a ReservationError as {"detail", "code"} with its status"""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Reservation request failed",
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code.value,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code.value},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any other exception as a 500 InternalError in the same envelope"""
    logger.error(
        "Unhandled error",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": ErrorCode.INTERNAL_ERROR.value},
    )
