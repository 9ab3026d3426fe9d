# tests/test_balances.py
from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from commission_engine.crud.balances import apply_delta, record_click_activity


async def _credit(sessionmaker, affiliate_id: str, amount: Decimal) -> bool:
    async with sessionmaker() as session:
        applied = await apply_delta(session, affiliate_id, amount)
        await session.commit()
        return applied


@pytest.mark.asyncio
async def test_concurrent_deltas_are_not_lost(sessionmaker, db, create_affiliate):
    affiliate = await create_affiliate(pending_payouts="5.00", total_earnings="5.00")

    n = 10
    results = await asyncio.gather(*(_credit(sessionmaker, affiliate.user_id, Decimal("1.00")) for _ in range(n)))
    assert all(results)

    await db.refresh(affiliate)
    assert affiliate.pending_payouts == Decimal("15.00")
    assert affiliate.total_earnings == Decimal("15.00")


@pytest.mark.asyncio
async def test_negative_delta_can_leave_a_debt(db, create_affiliate):
    affiliate = await create_affiliate(pending_payouts="10.00", total_earnings="10.00")

    assert await apply_delta(db, affiliate.user_id, Decimal("-30.00"))
    await db.commit()

    await db.refresh(affiliate)
    assert affiliate.pending_payouts == Decimal("-20.00")
    assert affiliate.total_earnings == Decimal("-20.00")


@pytest.mark.asyncio
async def test_zero_delta_and_unknown_affiliate_are_no_ops(db, create_affiliate):
    affiliate = await create_affiliate(pending_payouts="10.00")

    assert await apply_delta(db, affiliate.user_id, Decimal("0.00")) is False
    assert await apply_delta(db, None, Decimal("5.00")) is False
    assert await apply_delta(db, "aff_missing", Decimal("5.00")) is False
    await db.commit()

    await db.refresh(affiliate)
    assert affiliate.pending_payouts == Decimal("10.00")
    assert affiliate.last_earning_date is None


@pytest.mark.asyncio
async def test_click_activity_counter(db, create_affiliate):
    affiliate = await create_affiliate()

    assert await record_click_activity(db, affiliate.user_id)
    assert await record_click_activity(db, affiliate.user_id, clicks=4)
    await db.commit()

    await db.refresh(affiliate)
    assert affiliate.total_clicks == 5
    assert affiliate.last_activity is not None
