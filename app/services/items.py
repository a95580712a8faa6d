"""
Bookable item references.

A reservation points at its item through (item_kind, item_id) with no
foreign key. ItemRef turns that pair into one of two concrete reference
types, each knowing its own model and capacity column, so lookups never
branch on a raw kind string.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Type, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.place import AccommodationUnit, RestaurantTable
from app.models.reservation import ItemKind


@dataclass(frozen=True)
class RestaurantTableRef:
    id: UUID

    kind: ClassVar[ItemKind] = ItemKind.RESTAURANT_TABLE
    model: ClassVar[Type[RestaurantTable]] = RestaurantTable
    label: ClassVar[str] = "Restaurant table"

    @staticmethod
    def capacity(item: RestaurantTable) -> Optional[int]:
        return item.seating_capacity


@dataclass(frozen=True)
class AccommodationUnitRef:
    id: UUID

    kind: ClassVar[ItemKind] = ItemKind.ACCOMMODATION_UNIT
    model: ClassVar[Type[AccommodationUnit]] = AccommodationUnit
    label: ClassVar[str] = "Accommodation unit"

    @staticmethod
    def capacity(item: AccommodationUnit) -> Optional[int]:
        return item.max_occupancy


ItemRef = Union[RestaurantTableRef, AccommodationUnitRef]

_REF_TYPES = {
    ItemKind.RESTAURANT_TABLE: RestaurantTableRef,
    ItemKind.ACCOMMODATION_UNIT: AccommodationUnitRef,
}


def item_ref(kind: Union[ItemKind, str], item_id: UUID) -> ItemRef:
    """Build the reference for an item; raises ValueError for an unknown kind"""
    return _REF_TYPES[ItemKind(kind)](item_id)


def lock_key(ref: ItemRef) -> str:
    return f"{ref.kind.value}:{ref.id}"


async def resolve_item(db: AsyncSession, ref: ItemRef):
    """Load the referenced row, or None when it does not exist"""
    result = await db.execute(select(ref.model).where(ref.model.id == ref.id))
    return result.scalar_one_or_none()
