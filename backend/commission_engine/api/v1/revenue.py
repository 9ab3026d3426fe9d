# commission_engine/api/v1/revenue.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.deps.permissions import Principal, require_admin
from commission_engine.crud.reports import list_revenue
from commission_engine.db.session import get_db
from commission_engine.schemas.revenue import RevenuePageOut

router = APIRouter(prefix="/revenue", tags=["revenue"])


@router.get("", response_model=RevenuePageOut)
async def get_revenue(
    affiliate_id: Optional[str] = None,
    campaign_id: Optional[str] = None,
    revenue_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """
    Attributed transactions for reporting/export.
    Pagination:
      - limit (1..200)
      - offset (>=0)
    """
    rows, total = await list_revenue(
        db,
        affiliate_id=affiliate_id,
        campaign_id=campaign_id,
        status=revenue_status,
        limit=limit,
        offset=offset,
    )
    return RevenuePageOut(items=rows, limit=limit, offset=offset, total=total)
