# commission_engine/core/money.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Stripe sends these in whole units, not cents
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def round_money(value: Decimal) -> Decimal:
    """Round half-up to cents and clamp at zero."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    return rounded if rounded > ZERO else ZERO


def from_minor_units(amount: Any, currency: Optional[str]) -> Decimal:
    minor = to_decimal(amount) or Decimal("0")
    if (currency or "").upper() in ZERO_DECIMAL_CURRENCIES:
        return minor.quantize(CENT)
    return (minor / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)


# largest value a Numeric(12, 2) column holds
MAX_MONEY = Decimal("9999999999.99")


def is_storable_money(value: Optional[Decimal]) -> bool:
    if value is None or not value.is_finite():
        return False
    return ZERO <= value <= MAX_MONEY
