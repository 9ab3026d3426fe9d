# commission_engine/schemas/conversions.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ConversionCreate(BaseModel):
    """
    Manual conversion for a tracked click.
    `payout` overrides the computed commission when given.
    """
    click_id: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=10)
    succeeded: bool = True
    payout: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    transaction_id: Optional[str] = Field(default=None, max_length=255)


class ConversionOut(BaseModel):
    success: bool = True
    message: str = "Conversion recorded"
    click_id: str
    transaction_id: str
    affiliate_id: Optional[str] = None
    amount: Decimal
    commission: Decimal
