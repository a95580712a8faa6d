"""Tests for the derived table availability flag"""

import pytest
from contextlib import asynccontextmanager
from datetime import timedelta

from app.core.clock import utcnow
from app.jobs.tasks import _reconcile
from app.services.table_availability import (
    apply_status_transition,
    flag_after_transition,
    reconcile_table_availability,
)
from tests.helpers import make_reservation, slot


@pytest.mark.parametrize(
    "old_status,new_status,expected",
    [
        (None, "pending", None),
        (None, "confirmed", False),
        ("pending", "confirmed", False),
        ("completed", "confirmed", False),
        ("confirmed", "cancelled", True),
        ("pending", "cancelled", None),
        ("confirmed", "completed", None),
        ("confirmed", "no_show", None),
        ("confirmed", "confirmed", None),
    ],
)
def test_flag_after_transition(old_status, new_status, expected):
    assert flag_after_transition(old_status, new_status) is expected


@pytest.mark.asyncio
async def test_unit_transitions_never_touch_tables(test_db, test_unit, test_table):
    await apply_status_transition(test_db, "accommodation_unit", test_table.id, "pending", "confirmed")
    await test_db.commit()

    await test_db.refresh(test_table)
    assert test_table.is_available is True


@pytest.mark.asyncio
async def test_reconcile_flags_tables_with_upcoming_confirmed(test_db, test_user, test_tables):
    await make_reservation(test_db, test_user, test_tables[4], *slot(), status="confirmed")

    corrections = await reconcile_table_availability(test_db)

    assert corrections == [(test_tables[4].id, False)]
    await test_db.refresh(test_tables[4])
    assert test_tables[4].is_available is False


@pytest.mark.asyncio
async def test_reconcile_releases_finished_and_cancelled(test_db, test_user, test_tables):
    past_start, past_end = slot(days=-3)
    await make_reservation(test_db, test_user, test_tables[2], past_start, past_end, status="confirmed")
    await make_reservation(test_db, test_user, test_tables[4], *slot(), status="cancelled")
    for table in test_tables.values():
        table.is_available = False
    await test_db.commit()

    corrections = await reconcile_table_availability(test_db)

    assert sorted(flag for _, flag in corrections) == [True, True, True]
    for table in test_tables.values():
        await test_db.refresh(table)
        assert table.is_available is True


@pytest.mark.asyncio
async def test_reconcile_treats_in_progress_as_held(test_db, test_user, test_table):
    now = utcnow()
    await make_reservation(
        test_db, test_user, test_table,
        now - timedelta(hours=1), now + timedelta(hours=1),
        status="confirmed",
    )

    corrections = await reconcile_table_availability(test_db, now=now)

    assert corrections == [(test_table.id, False)]


@pytest.mark.asyncio
async def test_reconcile_consistent_flags_is_a_no_op(test_db, test_user, test_tables):
    await make_reservation(test_db, test_user, test_tables[2], *slot(), status="pending")

    assert await reconcile_table_availability(test_db) == []


@pytest.mark.asyncio
async def test_reconcile_job_reports_corrections(test_db, test_user, test_table):
    await make_reservation(test_db, test_user, test_table, *slot(), status="confirmed")

    @asynccontextmanager
    async def session_factory():
        yield test_db

    corrections = await _reconcile(session_factory)

    assert corrections == [{"table_id": str(test_table.id), "is_available": False}]
