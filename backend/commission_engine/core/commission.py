# commission_engine/core/commission.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from commission_engine.core.config import settings
from commission_engine.core.money import ZERO, round_money, to_decimal

RULE_REVSHARE = "revshare"
RULES_FIXED = {"cpa", "fixed"}


class CommissionBasis(str, enum.Enum):
    CAMPAIGN_REVSHARE = "campaign_revshare"
    CAMPAIGN_FIXED = "campaign_fixed"
    AFFILIATE_RATE = "affiliate_rate"
    DEFAULT_RATE = "default_rate"
    # no affiliate resolvable: a recognized terminal state, commission is zero
    ATTRIBUTION_GAP = "attribution_gap"


@dataclass(frozen=True)
class CommissionResult:
    amount: Decimal
    basis: CommissionBasis
    rate: Optional[Decimal] = None


def _tier_min_revenue(tier: dict[str, Any]) -> Decimal:
    raw = tier.get("min_revenue", tier.get("minRevenue"))
    return to_decimal(raw) or ZERO


def resolve_commission_rate(profile: Any, current_revenue: Any = None) -> Decimal:
    """
    Tiered rate for an affiliate profile.

    Tiers are checked by min_revenue, highest first; the first tier whose
    threshold is <= current_revenue wins. No tiers, or none matching, falls
    back to the flat commission_rate (settings default when unset).
    """
    flat = to_decimal(getattr(profile, "commission_rate", None))
    if flat is None:
        flat = settings.DEFAULT_COMMISSION_RATE

    if current_revenue is None:
        current_revenue = getattr(profile, "total_earnings", None)
    revenue = to_decimal(current_revenue) or ZERO

    tiers = getattr(profile, "commission_tiers", None)
    if not tiers or not isinstance(tiers, list):
        return flat

    valid = [t for t in tiers if isinstance(t, dict) and to_decimal(t.get("rate")) is not None]
    for tier in sorted(valid, key=_tier_min_revenue, reverse=True):
        if revenue >= _tier_min_revenue(tier):
            return to_decimal(tier["rate"])

    return flat


def _campaign_commission(amount: Decimal, campaign: Any) -> Optional[CommissionResult]:
    rules = getattr(campaign, "payout_rules", None) if campaign is not None else None
    # free-text rules are informational only
    if not isinstance(rules, dict):
        return None

    rule_type = str(rules.get("type") or "").strip().lower()

    if rule_type == RULE_REVSHARE:
        percentage = to_decimal(rules.get("percentage"))
        if percentage:
            return CommissionResult(
                amount=amount * percentage / Decimal("100"),
                basis=CommissionBasis.CAMPAIGN_REVSHARE,
                rate=percentage / Decimal("100"),
            )
    elif rule_type in RULES_FIXED:
        fixed = to_decimal(rules.get("amount"))
        if fixed:
            return CommissionResult(amount=fixed, basis=CommissionBasis.CAMPAIGN_FIXED)

    return None


def _affiliate_commission(amount: Decimal, affiliate: Any, affiliate_id: Optional[str]) -> CommissionResult:
    if affiliate is not None:
        rate = resolve_commission_rate(affiliate)
        return CommissionResult(amount=amount * rate, basis=CommissionBasis.AFFILIATE_RATE, rate=rate)

    if affiliate_id:
        rate = settings.DEFAULT_COMMISSION_RATE
        return CommissionResult(amount=amount * rate, basis=CommissionBasis.DEFAULT_RATE, rate=rate)

    return CommissionResult(amount=ZERO, basis=CommissionBasis.ATTRIBUTION_GAP)


def compute_commission(
    amount: Any,
    *,
    campaign: Any = None,
    affiliate: Any = None,
    affiliate_id: Optional[str] = None,
) -> CommissionResult:
    """
    Decision order, first applicable wins:
      1. campaign RevShare  -> amount * percentage / 100
      2. campaign CPA/Fixed -> rules amount
      3. affiliate profile  -> amount * tiered rate
      4. affiliate id only  -> amount * default rate
      5. nothing resolvable -> 0 (attribution gap)

    Rounding and the non-negative clamp happen once, on the final value.
    """
    gross = to_decimal(amount)
    if gross is None:
        gross = ZERO

    raw = _campaign_commission(gross, campaign)
    if raw is None:
        raw = _affiliate_commission(gross, affiliate, affiliate_id)

    return CommissionResult(amount=round_money(raw.amount), basis=raw.basis, rate=raw.rate)


def compute_renewal_commission(
    amount: Any,
    *,
    affiliate: Any = None,
    affiliate_id: Optional[str] = None,
) -> CommissionResult:
    """Recurring commission: affiliate rate only, campaign rules are not reapplied."""
    gross = to_decimal(amount) or ZERO
    raw = _affiliate_commission(gross, affiliate, affiliate_id)
    return CommissionResult(amount=round_money(raw.amount), basis=raw.basis, rate=raw.rate)


def compute_refund_deduction(
    *,
    commission_amount: Decimal,
    original_amount: Decimal,
    amount_refunded: Decimal,
) -> Decimal:
    """
    Pro-rated commission to claw back for a (cumulative) refunded amount,
    rounded to cents and never more than the original commission.
    """
    if original_amount <= ZERO or commission_amount <= ZERO or amount_refunded <= ZERO:
        return ZERO

    ratio = amount_refunded / original_amount
    deduction = round_money(commission_amount * ratio)
    return min(deduction, commission_amount)
