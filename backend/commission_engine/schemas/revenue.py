# commission_engine/schemas/revenue.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RevenueRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_id: str
    session_id: Optional[str] = None
    invoice_id: Optional[str] = None
    subscription_id: Optional[str] = None

    amount: Decimal
    currency: str
    status: str

    affiliate_id: Optional[str] = None
    campaign_id: Optional[str] = None
    click_id: Optional[str] = None

    commission_amount: Decimal
    commission_reversed: Decimal
    commission_basis: Optional[str] = None

    refund_amount: Decimal
    refunded_at: Optional[datetime] = None
    disputed_at: Optional[datetime] = None
    converted_at: Optional[datetime] = None

    source: str
    is_renewal: bool
    event_metadata: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime


class RevenuePageOut(BaseModel):
    items: List[RevenueRecordOut]
    limit: int
    offset: int
    total: int
