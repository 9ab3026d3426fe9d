# commission_engine/api/v1/fraud.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.api.deps.permissions import Principal, require_admin
from commission_engine.crud.reports import fraud_report
from commission_engine.db.session import get_db
from commission_engine.schemas.fraud import FraudReportOut

router = APIRouter(prefix="/fraud", tags=["fraud"])


@router.get("", response_model=FraudReportOut)
async def get_fraud_report(
    days: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
):
    """What the bot filter caught in the last `days` days."""
    return await fraud_report(db, days=days)
