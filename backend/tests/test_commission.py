# tests/test_commission.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from types import SimpleNamespace

import pytest

from commission_engine.core.commission import (
    CommissionBasis,
    compute_commission,
    compute_refund_deduction,
    compute_renewal_commission,
    resolve_commission_rate,
)
from commission_engine.core.money import from_minor_units, round_money

TIERS = [{"min_revenue": 0, "rate": 0.10}, {"min_revenue": 10000, "rate": 0.15}]


def profile(rate="0.10", tiers=None, total_earnings="0"):
    return SimpleNamespace(
        commission_rate=Decimal(rate) if rate is not None else None,
        commission_tiers=tiers,
        total_earnings=Decimal(total_earnings),
    )


def campaign(rules):
    return SimpleNamespace(payout_rules=rules)


@pytest.mark.parametrize(
    "amount,percentage",
    [("1000.00", 20), ("99.99", 15), ("0.05", 10), ("1234.56", "7.5")],
)
def test_revshare_ignores_affiliate_profile(amount, percentage):
    expected = (Decimal(amount) * Decimal(str(percentage)) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    result = compute_commission(
        Decimal(amount),
        campaign=campaign({"type": "RevShare", "percentage": percentage}),
        affiliate=profile(rate="0.50", tiers=TIERS, total_earnings="50000"),
        affiliate_id="aff_1",
    )
    assert result.amount == expected
    assert result.basis == CommissionBasis.CAMPAIGN_REVSHARE


@pytest.mark.parametrize("rule_type", ["CPA", "Fixed", "cpa"])
def test_fixed_campaign_amount(rule_type):
    result = compute_commission(
        Decimal("1000.00"),
        campaign=campaign({"type": rule_type, "amount": 100}),
        affiliate=profile(),
        affiliate_id="aff_1",
    )
    assert result.amount == Decimal("100.00")
    assert result.basis == CommissionBasis.CAMPAIGN_FIXED


def test_free_text_rules_fall_through_to_affiliate_rate():
    result = compute_commission(
        Decimal("200.00"),
        campaign=campaign("10% of all sales"),
        affiliate=profile(rate="0.12"),
        affiliate_id="aff_1",
    )
    assert result.amount == Decimal("24.00")
    assert result.basis == CommissionBasis.AFFILIATE_RATE


def test_revshare_without_percentage_falls_through():
    result = compute_commission(
        Decimal("200.00"),
        campaign=campaign({"type": "RevShare"}),
        affiliate=profile(rate="0.10"),
        affiliate_id="aff_1",
    )
    assert result.basis == CommissionBasis.AFFILIATE_RATE
    assert result.amount == Decimal("20.00")


def test_affiliate_id_without_profile_uses_default_rate():
    result = compute_commission(Decimal("150.00"), affiliate_id="aff_unknown")
    assert result.amount == Decimal("15.00")
    assert result.basis == CommissionBasis.DEFAULT_RATE


def test_no_affiliate_is_attribution_gap():
    result = compute_commission(Decimal("150.00"))
    assert result.amount == Decimal("0.00")
    assert result.basis == CommissionBasis.ATTRIBUTION_GAP


def test_zero_rate_is_honored():
    result = compute_commission(Decimal("150.00"), affiliate=profile(rate="0"), affiliate_id="aff_1")
    assert result.amount == Decimal("0.00")
    assert result.basis == CommissionBasis.AFFILIATE_RATE


def test_tiers_resolve_by_total_earnings():
    assert resolve_commission_rate(profile(tiers=TIERS, total_earnings="12000")) == Decimal("0.15")
    assert resolve_commission_rate(profile(tiers=TIERS, total_earnings="5000")) == Decimal("0.10")
    # boundary is inclusive
    assert resolve_commission_rate(profile(tiers=TIERS, total_earnings="10000")) == Decimal("0.15")


def test_tiers_order_in_storage_does_not_matter():
    tiers = list(reversed(TIERS)) + [{"minRevenue": 5000, "rate": "0.12"}]
    assert resolve_commission_rate(profile(tiers=tiers, total_earnings="7000")) == Decimal("0.12")


def test_no_matching_tier_falls_back_to_flat_rate():
    tiers = [{"min_revenue": 1000, "rate": 0.2}]
    assert resolve_commission_rate(profile(rate="0.07", tiers=tiers, total_earnings="10")) == Decimal("0.07")


def test_unset_flat_rate_uses_default():
    assert resolve_commission_rate(profile(rate=None)) == Decimal("0.10")


def test_rounding_happens_once():
    # 10.005 * 0.5 = 5.0025 -> 5.00; rounding the amount first would give 5.01
    assert compute_commission(Decimal("10.005"), affiliate=profile(rate="0.5"), affiliate_id="a").amount == Decimal("5.00")
    assert round_money(Decimal("0.005")) == Decimal("0.01")
    assert round_money(Decimal("-3.00")) == Decimal("0.00")


def test_renewal_commission_ignores_campaign_rules():
    result = compute_renewal_commission(Decimal("50.00"), affiliate=profile(rate="0.20"), affiliate_id="aff_1")
    assert result.amount == Decimal("10.00")
    assert result.basis == CommissionBasis.AFFILIATE_RATE


def test_refund_deduction_is_pro_rated():
    deduction = compute_refund_deduction(
        commission_amount=Decimal("100.00"),
        original_amount=Decimal("1000.00"),
        amount_refunded=Decimal("500.00"),
    )
    assert deduction == Decimal("50.00")


def test_refund_deduction_never_exceeds_commission():
    deduction = compute_refund_deduction(
        commission_amount=Decimal("100.00"),
        original_amount=Decimal("1000.00"),
        amount_refunded=Decimal("1500.00"),
    )
    assert deduction == Decimal("100.00")


def test_refund_deduction_zero_inputs():
    assert compute_refund_deduction(
        commission_amount=Decimal("0.00"),
        original_amount=Decimal("10.00"),
        amount_refunded=Decimal("10.00"),
    ) == Decimal("0.00")
    assert compute_refund_deduction(
        commission_amount=Decimal("5.00"),
        original_amount=Decimal("0.00"),
        amount_refunded=Decimal("10.00"),
    ) == Decimal("0.00")


def test_minor_units():
    assert from_minor_units(123456, "inr") == Decimal("1234.56")
    assert from_minor_units(5000, "JPY") == Decimal("5000.00")
    assert from_minor_units(None, "USD") == Decimal("0.00")
