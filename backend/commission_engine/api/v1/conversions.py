# commission_engine/api/v1/conversions.py
from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.deps.permissions import Principal, require_admin
from commission_engine.core.config import settings
from commission_engine.crud.conversions import SOURCE_MANUAL, SOURCE_POSTBACK, record_conversion
from commission_engine.db.session import get_db
from commission_engine.schemas.conversions import ConversionCreate, ConversionOut

router = APIRouter(tags=["conversions"])


def _to_out(record) -> ConversionOut:
    return ConversionOut(
        click_id=record.click_id,
        transaction_id=record.transaction_id,
        affiliate_id=record.affiliate_id,
        amount=record.amount,
        commission=record.commission_amount,
    )


@router.post("/conversions", response_model=ConversionOut, status_code=status.HTTP_201_CREATED)
async def create_conversion(
    payload: ConversionCreate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """Manual conversion recording for a tracked click (admin tool)."""
    record = await record_conversion(
        db,
        click_id=payload.click_id,
        amount=payload.amount,
        currency=payload.currency,
        succeeded=payload.succeeded,
        payout_override=payload.payout,
        transaction_id=payload.transaction_id,
        source=SOURCE_MANUAL,
    )
    return _to_out(record)


@router.get("/postback", response_model=ConversionOut)
async def postback(
    click_id: str = Query(..., min_length=1, max_length=64),
    amount: Decimal = Query(Decimal("0"), ge=0, max_digits=12, decimal_places=2),
    currency: Optional[str] = Query(None, max_length=10),
    conversion_status: str = Query("success", alias="status", pattern=r"^(success|pending)$"),
    payout: Optional[Decimal] = Query(None, ge=0, max_digits=12, decimal_places=2),
    transaction_id: Optional[str] = Query(None, max_length=255),
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Server-to-server conversion notification from an advertiser.
    When POSTBACK_TOKEN is configured the caller must echo it in `token`.
    """
    expected = settings.POSTBACK_TOKEN
    if expected and not secrets.compare_digest(token or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid postback token")

    record = await record_conversion(
        db,
        click_id=click_id,
        amount=amount,
        currency=currency,
        succeeded=conversion_status == "success",
        payout_override=payout,
        transaction_id=transaction_id,
        source=SOURCE_POSTBACK,
    )
    return _to_out(record)
