"""Tests for interval-overlap conflict detection"""

import pytest
from datetime import timedelta

from app.core.errors import ConflictError, ErrorCode
from app.models.reservation import ItemKind
from app.services import conflicts
from app.services.items import AccommodationUnitRef, RestaurantTableRef
from tests.helpers import make_reservation, slot


@pytest.mark.asyncio
async def test_overlapping_reservation_conflicts(test_db, test_user, test_table):
    start, end = slot()
    existing = await make_reservation(test_db, test_user, test_table, start, end)
    ref = RestaurantTableRef(test_table.id)

    with pytest.raises(ConflictError) as exc_info:
        await conflicts.check_availability(
            test_db, ref, start + timedelta(hours=1), end + timedelta(hours=1)
        )

    assert exc_info.value.code == ErrorCode.ITEM_ALREADY_RESERVED
    assert exc_info.value.conflicting_id == str(existing.id)


@pytest.mark.asyncio
async def test_enclosing_interval_conflicts(test_db, test_user, test_table):
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end)

    found = await conflicts.find_conflicts(
        test_db,
        RestaurantTableRef(test_table.id),
        start - timedelta(hours=1),
        end + timedelta(hours=1),
    )

    assert len(found) == 1


@pytest.mark.asyncio
async def test_adjacent_intervals_do_not_conflict(test_db, test_user, test_table):
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end)
    ref = RestaurantTableRef(test_table.id)

    # [start, end) and [end, end + 2h) share only the boundary instant
    await conflicts.check_availability(test_db, ref, end, end + timedelta(hours=2))
    await conflicts.check_availability(test_db, ref, start - timedelta(hours=2), start)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["cancelled", "no_show"])
async def test_non_blocking_statuses_are_ignored(test_db, test_user, test_table, status):
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end, status=status)

    found = await conflicts.find_conflicts(test_db, RestaurantTableRef(test_table.id), start, end)

    assert found == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "confirmed", "completed"])
async def test_blocking_statuses_conflict(test_db, test_user, test_table, status):
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end, status=status)

    found = await conflicts.find_conflicts(test_db, RestaurantTableRef(test_table.id), start, end)

    assert len(found) == 1


@pytest.mark.asyncio
async def test_excluded_reservation_does_not_conflict_with_itself(test_db, test_user, test_table):
    start, end = slot()
    existing = await make_reservation(test_db, test_user, test_table, start, end)

    await conflicts.check_availability(
        test_db,
        RestaurantTableRef(test_table.id),
        start,
        end + timedelta(hours=1),
        exclude_id=existing.id,
    )


@pytest.mark.asyncio
async def test_other_items_do_not_conflict(test_db, test_user, test_tables):
    start, end = slot()
    await make_reservation(test_db, test_user, test_tables[4], start, end)

    await conflicts.check_availability(test_db, RestaurantTableRef(test_tables[6].id), start, end)


@pytest.mark.asyncio
async def test_kind_is_part_of_the_item_identity(test_db, test_user, test_table):
    """A unit reservation never blocks a table even if the ids collide"""
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end, kind="accommodation_unit")

    found = await conflicts.find_conflicts(test_db, RestaurantTableRef(test_table.id), start, end)

    assert found == []


@pytest.mark.asyncio
async def test_flagged_table_is_temporarily_unavailable(test_db, test_table):
    test_table.is_available = False
    await test_db.commit()
    start, end = slot(days=90)

    with pytest.raises(ConflictError) as exc_info:
        await conflicts.check_availability(test_db, RestaurantTableRef(test_table.id), start, end)

    assert exc_info.value.code == ErrorCode.ITEM_TEMPORARILY_UNAVAILABLE


@pytest.mark.asyncio
async def test_overlap_is_reported_before_flag(test_db, test_user, test_table):
    start, end = slot()
    await make_reservation(test_db, test_user, test_table, start, end, status="confirmed")
    test_table.is_available = False
    await test_db.commit()

    with pytest.raises(ConflictError) as exc_info:
        await conflicts.check_availability(test_db, RestaurantTableRef(test_table.id), start, end)

    assert exc_info.value.code == ErrorCode.ITEM_ALREADY_RESERVED


@pytest.mark.asyncio
async def test_unit_flag_does_not_gate_bookings(test_db, test_unit):
    test_unit.is_available = False
    await test_db.commit()
    start, end = slot()

    await conflicts.check_availability(test_db, AccommodationUnitRef(test_unit.id), start, end)


@pytest.mark.asyncio
async def test_unit_overlap_conflicts(test_db, test_user, test_unit):
    start, end = slot(hours=48)
    await make_reservation(test_db, test_user, test_unit, start, end, kind="accommodation_unit")

    with pytest.raises(ConflictError) as exc_info:
        await conflicts.check_availability(
            test_db, AccommodationUnitRef(test_unit.id), start + timedelta(hours=24), end + timedelta(hours=24)
        )

    assert exc_info.value.code == ErrorCode.ITEM_ALREADY_RESERVED
    assert "Accommodation unit" in exc_info.value.message


@pytest.mark.asyncio
async def test_reserved_item_ids(test_db, test_user, test_tables):
    start, end = slot()
    await make_reservation(test_db, test_user, test_tables[2], start, end)
    await make_reservation(test_db, test_user, test_tables[4], start, end, status="cancelled")

    reserved = await conflicts.reserved_item_ids(
        test_db, ItemKind.RESTAURANT_TABLE, [table.id for table in test_tables.values()], start, end
    )

    assert reserved == {test_tables[2].id}


@pytest.mark.asyncio
async def test_reserved_item_ids_without_candidates(test_db):
    start, end = slot()

    assert await conflicts.reserved_item_ids(test_db, ItemKind.RESTAURANT_TABLE, [], start, end) == set()
