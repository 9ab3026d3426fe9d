# commission_engine/api/v1/payouts.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.deps.permissions import Principal, require_admin
from commission_engine.crud.payouts import list_payouts, process_payout
from commission_engine.db.session import get_db
from commission_engine.schemas.payouts import PayoutCreate, PayoutListOut, PayoutOut

router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.get("", response_model=PayoutListOut)
async def get_payouts(
    affiliate_id: Optional[str] = None,
    payout_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    rows = await list_payouts(db, affiliate_id=affiliate_id, status=payout_status, limit=limit)
    return PayoutListOut(items=rows)


@router.post("", response_model=PayoutOut, status_code=status.HTTP_201_CREATED)
async def create_payout(
    payload: PayoutCreate,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """
    Records a payout that was transferred outside the system.
    Fails with insufficient_balance when amount > pending balance.
    """
    return await process_payout(
        db,
        affiliate_id=payload.affiliate_id,
        amount=payload.amount,
        method=payload.method,
        transaction_id=payload.transaction_id,
        notes=payload.notes,
        processed_by=admin.user_id,
    )
