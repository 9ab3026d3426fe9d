# commission_engine/crud/adjustments.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.errors import NotFoundError, ValidationError
from commission_engine.core.money import CENT, ZERO, to_decimal
from commission_engine.crud.affiliates import get_affiliate_profile
from commission_engine.crud.balances import apply_delta, record_click_activity
from commission_engine.models.balance_adjustment import BalanceAdjustment

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = {"commission", "clicks"}


async def create_adjustment(
    db: AsyncSession,
    *,
    affiliate_id: str,
    type: str,
    amount: Decimal,
    reason: str = "",
    processed_by: Optional[str] = None,
) -> BalanceAdjustment:
    """
    Manual correction by an admin. Commission adjustments go through the
    same atomic balance delta as ledger events.
    """
    kind = (type or "").strip().lower()
    if kind not in ADJUSTMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(sorted(ADJUSTMENT_TYPES))}", field="type")

    value = to_decimal(amount)
    if value is None or value == ZERO:
        raise ValidationError("A non-zero amount is required", field="amount")
    if kind == "clicks" and value != value.to_integral_value():
        raise ValidationError("Click adjustments must be whole numbers", field="amount")

    if await get_affiliate_profile(db, affiliate_id) is None:
        raise NotFoundError("Affiliate not found", affiliate_id=affiliate_id)

    adjustment = BalanceAdjustment(
        affiliate_id=affiliate_id,
        type=kind,
        amount=value.quantize(CENT),
        reason=reason or "",
        processed_by=processed_by or "admin",
    )
    db.add(adjustment)

    if kind == "commission":
        await apply_delta(db, affiliate_id, adjustment.amount)
    else:
        await record_click_activity(db, affiliate_id, clicks=int(value))

    await db.commit()
    await db.refresh(adjustment)

    logger.info("Adjustment %s (%s %s) applied to affiliate %s", adjustment.id, kind, value, affiliate_id)
    return adjustment


async def list_adjustments(db: AsyncSession, *, affiliate_id: Optional[str] = None, limit: int = 100) -> list[BalanceAdjustment]:
    stmt = select(BalanceAdjustment)
    if affiliate_id:
        stmt = stmt.where(BalanceAdjustment.affiliate_id == affiliate_id)
    stmt = stmt.order_by(BalanceAdjustment.created_at.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())
