# commission_engine/crud/payouts.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import utcnow
from commission_engine.core.config import settings
from commission_engine.core.errors import InsufficientBalanceError, NotFoundError, ValidationError
from commission_engine.core.money import CENT, ZERO, to_decimal
from commission_engine.crud.affiliates import get_affiliate_profile
from commission_engine.models.affiliate_profile import AffiliateProfile
from commission_engine.models.payout_record import PayoutRecord

logger = logging.getLogger(__name__)

PAYOUT_STATUS_COMPLETED = "completed"


async def process_payout(
    db: AsyncSession,
    *,
    affiliate_id: str,
    amount: Decimal,
    method: str = "manual",
    transaction_id: Optional[str] = None,
    notes: Optional[str] = None,
    processed_by: Optional[str] = None,
    currency: Optional[str] = None,
) -> PayoutRecord:
    """
    Debit pending_payouts and record the payout in one transaction.

    The debit is a single conditional UPDATE (decrement only if the pending
    balance covers the amount), so two concurrent requests can never both
    pass the balance check.
    """
    value = to_decimal(amount)
    if value is None or value <= ZERO:
        raise ValidationError("Valid amount is required", field="amount")
    if value != value.quantize(CENT):
        raise ValidationError("Amount cannot have more than 2 decimal places", field="amount")
    if not affiliate_id:
        raise ValidationError("Affiliate ID is required", field="affiliate_id")

    now = utcnow()
    stmt = (
        update(AffiliateProfile)
        .where(AffiliateProfile.user_id == affiliate_id)
        .where(AffiliateProfile.pending_payouts >= value)
        .values(
            pending_payouts=AffiliateProfile.pending_payouts - value,
            total_paid=AffiliateProfile.total_paid + value,
            last_payout_date=now,
        )
    )
    res = await db.execute(stmt)

    if not res.rowcount:
        await db.rollback()
        profile = await get_affiliate_profile(db, affiliate_id)
        if profile is None:
            raise NotFoundError("Affiliate not found", affiliate_id=affiliate_id)
        raise InsufficientBalanceError(
            "Insufficient pending balance",
            affiliate_id=affiliate_id,
            requested=str(value),
            available=str(profile.pending_payouts),
        )

    payout = PayoutRecord(
        affiliate_id=affiliate_id,
        amount=value,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        method=method or "manual",
        transaction_id=transaction_id,
        notes=notes,
        processed_by=processed_by,
        status=PAYOUT_STATUS_COMPLETED,
        completed_at=now,
    )
    db.add(payout)
    await db.commit()
    await db.refresh(payout)

    logger.info("Payout %s of %s processed for affiliate %s", payout.id, value, affiliate_id)
    return payout


async def list_payouts(
    db: AsyncSession,
    *,
    affiliate_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
) -> list[PayoutRecord]:
    stmt = select(PayoutRecord)
    if affiliate_id:
        stmt = stmt.where(PayoutRecord.affiliate_id == affiliate_id)
    if status:
        stmt = stmt.where(PayoutRecord.status == status)
    stmt = stmt.order_by(PayoutRecord.created_at.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())
