# commission_engine/api/v1/affiliates.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.deps.permissions import Principal, require_admin, require_self_or_admin
from commission_engine.core.commission import resolve_commission_rate
from commission_engine.core.errors import NotFoundError
from commission_engine.crud.adjustments import create_adjustment, list_adjustments
from commission_engine.crud.affiliates import get_affiliate_profile, list_recent_payouts, list_recent_revenue
from commission_engine.crud.reports import revenue_totals
from commission_engine.db.session import get_db
from commission_engine.schemas.affiliates import (
    AdjustmentCreate,
    AdjustmentOut,
    AffiliateBalanceOut,
    AffiliateSummaryOut,
)

router = APIRouter(prefix="/affiliates", tags=["affiliates"])


@router.get("/{user_id}/summary", response_model=AffiliateSummaryOut)
async def get_affiliate_summary(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_self_or_admin),
):
    """Balances, current tier rate and recent ledger activity (dashboard KPIs)."""
    profile = await get_affiliate_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Affiliate profile not found", affiliate_id=user_id)

    totals = await revenue_totals(db, user_id)
    return AffiliateSummaryOut(
        profile=AffiliateBalanceOut.model_validate(profile),
        current_rate=resolve_commission_rate(profile),
        revenues=await list_recent_revenue(db, user_id, limit=limit),
        payouts=await list_recent_payouts(db, user_id, limit=limit),
        **totals,
    )


@router.post("/{user_id}/adjustments", response_model=AdjustmentOut, status_code=status.HTTP_201_CREATED)
async def post_adjustment(
    user_id: str,
    payload: AdjustmentCreate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    return await create_adjustment(
        db,
        affiliate_id=user_id,
        type=payload.type,
        amount=payload.amount,
        reason=payload.reason,
        processed_by=admin.user_id,
    )


@router.get("/{user_id}/adjustments", response_model=List[AdjustmentOut])
async def get_adjustments(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    return await list_adjustments(db, affiliate_id=user_id)
