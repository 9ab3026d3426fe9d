# commission_engine/schemas/payouts.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PayoutCreate(BaseModel):
    affiliate_id: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    method: str = Field(default="manual", max_length=40)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class PayoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    affiliate_id: str
    amount: Decimal
    currency: str
    method: str
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    status: str
    created_at: datetime
    completed_at: Optional[datetime] = None


class PayoutListOut(BaseModel):
    items: List[PayoutOut]
